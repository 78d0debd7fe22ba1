# ============================================================================
# apps/tickets/queue_class.py - Queue class identity and issuance day
# ============================================================================

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class Origin(str, Enum):
    ESTADUAL = "E"
    MUNICIPAL = "M"


class Priority(str, Enum):
    NORMAL = "N"
    PRIORITY = "P"


ORIGIN_LABELS = {Origin.ESTADUAL: "Estadual", Origin.MUNICIPAL: "Municipal"}
PRIORITY_LABELS = {Priority.NORMAL: "Normal", Priority.PRIORITY: "Prioritária"}


class InvalidQueueClass(ValueError):
    pass


@dataclass(frozen=True)
class QueueClass:
    """An independent numbering and call sequence.

    ``origin`` is ``None`` in single jurisdiction deployments, where the
    class code is just the priority letter.
    """

    priority: Priority
    origin: Optional[Origin] = None

    @property
    def code(self) -> str:
        prefix = self.origin.value if self.origin else ""
        return f"{prefix}{self.priority.value}"

    @property
    def is_normal(self) -> bool:
        return self.priority is Priority.NORMAL

    @property
    def origin_key(self) -> str:
        """Origin as stored in the ledger ("" when absent)"""
        return self.origin.value if self.origin else ""

    @property
    def label(self) -> str:
        parts = []
        if self.origin:
            parts.append(ORIGIN_LABELS[self.origin])
        parts.append(PRIORITY_LABELS[self.priority])
        return " ".join(parts)

    def display_code(self, number: int) -> str:
        return f"{self.code}{number}"

    def __str__(self) -> str:
        return self.code

    @classmethod
    def from_row(cls, origin: str, priority: str) -> "QueueClass":
        return cls(priority=Priority(priority), origin=Origin(origin) if origin else None)


def build_queue_classes(origins: Iterable[str]) -> Tuple[QueueClass, ...]:
    """Return the fixed class set for a deployment.

    Two classes (N, P) without origins, otherwise origin x priority.
    """
    parsed: List[Origin] = []
    for value in origins:
        try:
            origin = Origin(value.strip().upper())
        except ValueError:
            raise InvalidQueueClass(f"Unknown origin '{value}'")
        if origin not in parsed:
            parsed.append(origin)

    if not parsed:
        return tuple(QueueClass(priority=p) for p in Priority)
    return tuple(QueueClass(priority=p, origin=o) for o in parsed for p in Priority)


def parse_queue_class(code: Optional[str], valid: Iterable[QueueClass]) -> QueueClass:
    """Resolve a class code such as ``en`` or ``"P "`` against the deployment's classes"""
    normalized = str(code or "").strip().upper()
    for queue_class in valid:
        if queue_class.code == normalized:
            return queue_class
    raise InvalidQueueClass(f"Invalid queue class '{code}'")


def service_day(moment: datetime) -> date:
    """Issuance day of a service-local timestamp"""
    return moment.date()


def shift_bounds(moment: datetime, boundary_hour: int = 12) -> Tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of the shift containing ``moment``.

    The day is split in two at ``boundary_hour``; the second shift ends at
    midnight, expressed as the start of the next day.
    """
    day = moment.date()
    boundary = datetime.combine(day, time(boundary_hour))
    if moment < boundary:
        return datetime.combine(day, time.min), boundary
    next_day = date.fromordinal(day.toordinal() + 1)
    return boundary, datetime.combine(next_day, time.min)
