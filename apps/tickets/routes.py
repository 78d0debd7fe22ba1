from fastapi import APIRouter, Depends, HTTPException, Request, status
from typing import Any, List

from shared.auth.api_auth import AdminKeyBearer
from shared.auth.jwt_auth import OperatorBearer
from .context import QueueContext
from .results import CallEvent, Failure, FailureReason
from .schemas import (
    CallEventResponse, CallResponse, IssueResponse, ManualIssueRequest, PendingCountsResponse,
    QueueClassResponse, QueueRequest, RangeIssueRequest, RangeResponse, ResetResponse,
    StationResponse, TicketResponse
)
from .services import TicketService

router = APIRouter(
    prefix="/api/v1/tickets",
    tags=["tickets"]
)

operator_auth = OperatorBearer()
admin_auth = AdminKeyBearer()


def get_queue_context(request: Request) -> QueueContext:
    return request.app.state.queue_context


def get_ticket_service(context: QueueContext = Depends(get_queue_context)) -> TicketService:
    return TicketService(context)


def _raise_for_failure(failure: Failure) -> None:
    """Turn validation, capacity and store failures into HTTP errors"""
    if failure.is_domain_outcome:
        return
    if failure.reason in (FailureReason.DAILY_CAP, FailureReason.SHIFT_CAP):
        code = status.HTTP_429_TOO_MANY_REQUESTS
    elif failure.reason == FailureReason.STORE_ERROR:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_400_BAD_REQUEST
    raise HTTPException(status_code=code, detail={"reason": failure.reason.value, "message": failure.message})


def _call_response(result: Any) -> CallResponse:
    if isinstance(result, Failure):
        _raise_for_failure(result)
        return CallResponse(success=False, message=result.message, reason=result.reason.value)
    event: CallEvent = result
    return CallResponse(
        success=True,
        message=f"Ticket {event.display_code} called",
        event=CallEventResponse(
            queue=event.queue_class.code,
            number=event.number,
            code=event.display_code,
            station=StationResponse(room=event.station.room, desk=event.station.desk)
        )
    )


@router.get("/classes", response_model=List[QueueClassResponse])
def list_queue_classes(context: QueueContext = Depends(get_queue_context)):
    """Queue classes configured for this deployment"""
    return [
        QueueClassResponse(
            code=qc.code,
            label=qc.label,
            origin=qc.origin.value if qc.origin else None,
            priority=qc.priority.value
        )
        for qc in context.settings.queue_classes
    ]


@router.post("/next", response_model=IssueResponse)
def issue_next(
    body: QueueRequest,
    service: TicketService = Depends(get_ticket_service),
    operator_id: str = Depends(operator_auth)
):
    """Issue the next sequential ticket of a queue class"""
    result = service.issue_next(body.queue)
    if isinstance(result, Failure):
        _raise_for_failure(result)
    return IssueResponse(
        success=True,
        message=f"Ticket issued: {result.ticket.display_code}",
        ticket=TicketResponse.from_ticket(result.ticket),
        print_token=result.print_token
    )


@router.post("/manual", response_model=IssueResponse)
def issue_manual(
    body: ManualIssueRequest,
    service: TicketService = Depends(get_ticket_service),
    operator_id: str = Depends(operator_auth)
):
    """Issue a ticket with an explicit number"""
    result = service.issue_manual(body.queue, body.number)
    if isinstance(result, Failure):
        _raise_for_failure(result)
        return IssueResponse(success=False, message=result.message, reason=result.reason.value)
    return IssueResponse(
        success=True,
        message=f"Ticket issued: {result.ticket.display_code}",
        ticket=TicketResponse.from_ticket(result.ticket),
        print_token=result.print_token
    )


@router.post("/range", response_model=RangeResponse)
def issue_range(
    body: RangeIssueRequest,
    service: TicketService = Depends(get_ticket_service),
    operator_id: str = Depends(operator_auth)
):
    """Issue every ticket of a number range that does not exist yet today"""
    result = service.issue_range(body.queue, body.start, body.end)
    if isinstance(result, Failure):
        _raise_for_failure(result)

    qc = result.queue_class
    message = f"Issued {result.issued_count} ticket(s) ({qc.display_code(result.start)} to {qc.display_code(result.end)})."
    if result.skipped_count:
        message += f" {result.skipped_count} already existed today and were skipped."
    return RangeResponse(
        message=message,
        queue=qc.code,
        start=result.start,
        end=result.end,
        issued_count=result.issued_count,
        skipped_count=result.skipped_count,
        issued_numbers=result.issued_numbers,
        tickets=[TicketResponse.from_ticket(t) for t in result.tickets],
        print_token=result.print_token
    )


@router.post("/call", response_model=CallResponse)
def call_next(
    body: QueueRequest,
    service: TicketService = Depends(get_ticket_service),
    operator_id: str = Depends(operator_auth)
):
    """Call the oldest waiting ticket of a class to the operator's station"""
    return _call_response(service.call_next(body.queue, operator_id))


@router.post("/recall", response_model=CallResponse)
def recall_last(
    service: TicketService = Depends(get_ticket_service),
    operator_id: str = Depends(operator_auth)
):
    """Announce the operator's last called ticket again"""
    return _call_response(service.recall_last(operator_id))


@router.get("/pending", response_model=PendingCountsResponse)
def pending_counts(service: TicketService = Depends(get_ticket_service)):
    """Tickets issued today and not yet called, per class"""
    result = service.pending_counts()
    if isinstance(result, Failure):
        _raise_for_failure(result)
    return PendingCountsResponse(counts=result)


@router.post("/reset", response_model=ResetResponse)
def reset_ledger(
    service: TicketService = Depends(get_ticket_service),
    api_key: str = Depends(admin_auth)
):
    """Delete all tickets and restart numbering"""
    result = service.reset_ledger()
    if isinstance(result, Failure):
        _raise_for_failure(result)
    return ResetResponse(success=True, message="Ticket table cleared", deleted=result)
