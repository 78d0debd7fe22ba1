# ============================================================================
# apps/tickets/results.py - Operation outcomes
# ============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .queue_class import QueueClass


class FailureReason(str, Enum):
    INVALID_CLASS = "invalid_class"
    INVALID_NUMBER = "invalid_number"
    INVALID_RANGE = "invalid_range"
    DAILY_CAP = "daily_cap"
    SHIFT_CAP = "shift_cap"
    BATCH_TOO_LARGE = "batch_too_large"
    DUPLICATE = "duplicate"
    EMPTY_QUEUE = "empty_queue"
    NOTHING_CALLED = "nothing_called"
    UNKNOWN_OPERATOR = "unknown_operator"
    STORE_ERROR = "store_error"


VALIDATION_REASONS = {
    FailureReason.INVALID_CLASS,
    FailureReason.INVALID_NUMBER,
    FailureReason.INVALID_RANGE,
    FailureReason.UNKNOWN_OPERATOR,
}
CAPACITY_REASONS = {
    FailureReason.DAILY_CAP,
    FailureReason.SHIFT_CAP,
    FailureReason.BATCH_TOO_LARGE,
}
# Expected outcomes reported to the caller as a normal, unsuccessful result
DOMAIN_OUTCOMES = {
    FailureReason.DUPLICATE,
    FailureReason.EMPTY_QUEUE,
    FailureReason.NOTHING_CALLED,
}


@dataclass(frozen=True)
class Failure:
    reason: FailureReason
    message: str

    @property
    def is_validation(self) -> bool:
        return self.reason in VALIDATION_REASONS

    @property
    def is_capacity(self) -> bool:
        return self.reason in CAPACITY_REASONS

    @property
    def is_domain_outcome(self) -> bool:
        return self.reason in DOMAIN_OUTCOMES


@dataclass(frozen=True)
class Station:
    room: str
    desk: str


@dataclass(frozen=True)
class CallEvent:
    queue_class: QueueClass
    number: int
    station: Station

    @property
    def display_code(self) -> str:
        return self.queue_class.display_code(self.number)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "queue": self.queue_class.code,
            "number": self.number,
            "code": self.display_code,
            "station": {"room": self.station.room, "desk": self.station.desk},
        }


@dataclass
class IssuedTicket:
    ticket: Any
    print_token: Optional[str] = None

    @property
    def number(self) -> int:
        return self.ticket.number


@dataclass
class RangeResult:
    queue_class: QueueClass
    start: int
    end: int
    issued_numbers: List[int] = field(default_factory=list)
    tickets: List[Any] = field(default_factory=list)
    skipped_count: int = 0
    print_token: Optional[str] = None

    @property
    def issued_count(self) -> int:
        return len(self.issued_numbers)

    @property
    def requested_count(self) -> int:
        return self.end - self.start + 1


def is_failure(result: Optional[object]) -> bool:
    return isinstance(result, Failure)
