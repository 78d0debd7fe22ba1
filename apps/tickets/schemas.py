from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Union
from datetime import date, datetime

from .models import Ticket


class QueueRequest(BaseModel):
    queue: str = Field(..., description="Queue class code, e.g. EN, EP, MN, MP")


class ManualIssueRequest(QueueRequest):
    # Validated by the allocator so bad numbers get the same error everywhere
    number: Union[int, str] = Field(..., description="Explicit ticket number")


class RangeIssueRequest(QueueRequest):
    start: Union[int, str] = Field(..., description="First number of the range")
    end: Union[int, str] = Field(..., description="Last number of the range")


class TicketResponse(BaseModel):
    id: int
    queue: str
    number: int
    code: str
    service_date: date
    issued_at: datetime
    called: bool
    called_by: Optional[str] = None
    called_at: Optional[datetime] = None

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            id=ticket.id,
            queue=ticket.queue_class.code,
            number=ticket.number,
            code=ticket.display_code,
            service_date=ticket.service_date,
            issued_at=ticket.issued_at,
            called=ticket.called,
            called_by=ticket.called_by,
            called_at=ticket.called_at
        )


class IssueResponse(BaseModel):
    success: bool
    message: str
    reason: Optional[str] = None
    ticket: Optional[TicketResponse] = None
    print_token: Optional[str] = None


class RangeResponse(BaseModel):
    success: bool = True
    message: str
    queue: str
    start: int
    end: int
    issued_count: int
    skipped_count: int
    issued_numbers: List[int]
    tickets: List[TicketResponse]
    print_token: Optional[str] = None


class StationResponse(BaseModel):
    room: str
    desk: str


class CallEventResponse(BaseModel):
    queue: str
    number: int
    code: str
    station: StationResponse


class CallResponse(BaseModel):
    success: bool
    message: str
    reason: Optional[str] = None
    event: Optional[CallEventResponse] = None


class PendingCountsResponse(BaseModel):
    counts: Dict[str, int]


class QueueClassResponse(BaseModel):
    code: str
    label: str
    origin: Optional[str] = None
    priority: str


class ResetResponse(BaseModel):
    success: bool
    message: str
    deleted: int
