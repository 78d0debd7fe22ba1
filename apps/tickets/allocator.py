# ============================================================================
# apps/tickets/allocator.py - Ticket number allocation
# ============================================================================

from datetime import datetime
from typing import Any, Optional, Tuple, Union
import logging

from .ledger import TicketLedger
from .models import Ticket
from .queue_class import QueueClass, service_day
from .rate_limiter import RateLimiter
from .results import Failure, FailureReason, RangeResult
from .settings import QueueSettings

logger = logging.getLogger(__name__)


def to_positive_int(value: Any) -> Optional[int]:
    """Parse ``value`` as a positive integer, ``None`` otherwise"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class SequenceAllocator:
    """Issues ticket numbers within one (class, day) numbering domain.

    Every method runs against a ledger whose transaction is already holding
    the allocation lock for the class and day; the caller commits.
    """

    def __init__(self, settings: QueueSettings, rate_limiter: RateLimiter):
        self.settings = settings
        self.rate_limiter = rate_limiter

    def validate_number(self, number: Any) -> Union[int, Failure]:
        parsed = to_positive_int(number)
        if parsed is None:
            return Failure(FailureReason.INVALID_NUMBER, "Ticket number must be a positive integer.")
        return parsed

    def validate_range(self, start: Any, end: Any) -> Union[Tuple[int, int], Failure]:
        first = to_positive_int(start)
        last = to_positive_int(end)
        if first is None or last is None:
            return Failure(FailureReason.INVALID_RANGE, "Range start and end must be positive integers.")
        first, last = min(first, last), max(first, last)
        size = last - first + 1
        if size > self.settings.max_batch:
            return Failure(
                FailureReason.BATCH_TOO_LARGE,
                f"Range too large ({size} tickets). Maximum per request: {self.settings.max_batch}."
            )
        return first, last

    def issue_next(self, ledger: TicketLedger, queue_class: QueueClass, now: datetime) -> Union[Ticket, Failure]:
        rejected = self.rate_limiter.check_capacity(ledger, queue_class, 1, now)
        if rejected:
            return rejected

        day = service_day(now)
        number = ledger.max_number(queue_class, day) + 1
        ticket = ledger.insert(queue_class, day, number, now)
        logger.info(f"Issued ticket {ticket.display_code} for {day.isoformat()}")
        return ticket

    def issue_manual(
        self, ledger: TicketLedger, queue_class: QueueClass, number: int, now: datetime
    ) -> Union[Ticket, Failure]:
        rejected = self.rate_limiter.check_capacity(ledger, queue_class, 1, now)
        if rejected:
            return rejected

        ticket = ledger.insert_if_absent(queue_class, service_day(now), number, now)
        if ticket is None:
            code = queue_class.display_code(number)
            logger.info(f"Manual ticket {code} already exists today, not inserted")
            return Failure(FailureReason.DUPLICATE, f"Ticket {code} already exists today (not inserted).")
        logger.info(f"Issued manual ticket {ticket.display_code}")
        return ticket

    def issue_range(
        self, ledger: TicketLedger, queue_class: QueueClass, start: int, end: int, now: datetime
    ) -> Union[RangeResult, Failure]:
        # Capacity is checked against the full request, before duplicates are removed
        rejected = self.rate_limiter.check_capacity(ledger, queue_class, end - start + 1, now)
        if rejected:
            return rejected

        day = service_day(now)
        existing = ledger.existing_numbers(queue_class, day, start, end)
        missing = [n for n in range(start, end + 1) if n not in existing]
        tickets = ledger.insert_many(queue_class, day, missing, now)

        result = RangeResult(
            queue_class=queue_class,
            start=start,
            end=end,
            issued_numbers=[t.number for t in tickets],
            tickets=tickets,
            skipped_count=len(existing)
        )
        logger.info(
            f"Issued {result.issued_count} ticket(s) {queue_class.display_code(start)}-"
            f"{queue_class.display_code(end)}, {result.skipped_count} already existed"
        )
        return result
