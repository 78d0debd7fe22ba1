# ============================================================================
# apps/receipts/store.py - Ephemeral print jobs
# ============================================================================

import logging
import secrets
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptLine:
    code: str
    label: str
    issued_at: datetime


@dataclass
class PrintJob:
    token: str
    lines: List[ReceiptLine]
    expires_at: float
    created_at: float = field(default_factory=time.monotonic)


class PrintJobStore:
    """Print jobs keyed by an opaque token, forgotten after ``ttl_seconds``"""

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._jobs: Dict[str, PrintJob] = {}

    def _sweep(self, now: float) -> None:
        expired = [token for token, job in self._jobs.items() if job.expires_at <= now]
        for token in expired:
            del self._jobs[token]
        if expired:
            logger.debug(f"Expired {len(expired)} print job(s)")

    def submit(self, tickets: Iterable) -> Optional[str]:
        """Store a job for the issued tickets; ``None`` when there is nothing to print"""
        lines = [
            ReceiptLine(code=t.display_code, label=t.queue_class.label, issued_at=t.issued_at)
            for t in tickets
        ]
        if not lines:
            return None

        now = self._clock()
        token = secrets.token_urlsafe(16)
        with self._lock:
            self._sweep(now)
            self._jobs[token] = PrintJob(token=token, lines=lines, expires_at=now + self.ttl_seconds, created_at=now)
        logger.info(f"Queued print job with {len(lines)} ticket(s)")
        return token

    def get(self, token: str) -> Optional[PrintJob]:
        with self._lock:
            self._sweep(self._clock())
            return self._jobs.get(token)

    def __len__(self) -> int:
        with self._lock:
            self._sweep(self._clock())
            return len(self._jobs)


def render_receipt(job: PrintJob, title: str) -> str:
    """Plain text receipt, one block per ticket"""
    blocks = []
    for line in job.lines:
        blocks.append("\n".join([
            title,
            line.label,
            "",
            f"    {line.code}",
            "",
            line.issued_at.strftime("%d/%m/%Y %H:%M"),
        ]))
    return "\n\n----------------------------------------\n\n".join(blocks) + "\n"
