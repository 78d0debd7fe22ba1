# ============================================================================
# apps/tickets/services.py - Ticket operations, one transaction each
# ============================================================================

from contextlib import ExitStack
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from apps.display.broadcast import TICKET_CALLED
from apps.operators.services import OperatorDirectory
from .allocator import SequenceAllocator
from .context import QueueContext
from .dispatcher import Dispatcher
from .ledger import TicketLedger
from .locks import allocation_key, capacity_key
from .queue_class import InvalidQueueClass, QueueClass, parse_queue_class, service_day
from .rate_limiter import RateLimiter
from .results import CallEvent, Failure, FailureReason, IssuedTicket, RangeResult

logger = logging.getLogger(__name__)

Work = Callable[[TicketLedger, Session], Any]


class TicketService:
    """Entry point for the ticket operations.

    Each public method validates its input before touching the database,
    runs in its own transaction, and returns either a payload or a
    ``Failure``. Events and print jobs are only handed out after commit.
    """

    def __init__(self, context: QueueContext):
        self.context = context
        self.settings = context.settings
        self.rate_limiter = RateLimiter(self.settings)
        self.allocator = SequenceAllocator(self.settings, self.rate_limiter)
        self.dispatcher = Dispatcher()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def parse_class(self, code: Optional[str]) -> Union[QueueClass, Failure]:
        try:
            return parse_queue_class(code, self.settings.queue_classes)
        except InvalidQueueClass as e:
            return Failure(FailureReason.INVALID_CLASS, str(e))

    def _lock_keys(self, queue_class: QueueClass, now) -> List[Tuple[str, str]]:
        """Allocation key first, then the Normal tier cap key when it applies"""
        day = service_day(now)
        keys = [allocation_key(queue_class, day)]
        cap = capacity_key(queue_class, day, self.settings.rate_limit_scope)
        if cap is not None:
            keys.append(cap)
        return keys

    def _execute(self, operation: str, work: Work, lock_keys: Sequence[Tuple[str, str]] = ()) -> Any:
        """Run ``work`` in one transaction, under the given locks in order.

        A ``Failure`` returned by ``work`` rolls the transaction back, as does
        any exception. Store errors become ``STORE_ERROR`` failures. The
        session is pinned to one connection so named database locks are taken
        and released on the connection that owns them.
        """
        try:
            with ExitStack() as held:
                for key in lock_keys:
                    held.enter_context(self.context.locks.hold(key))
                with self.context.engine.connect() as conn:
                    db = self.context.session_factory(bind=conn)
                    ledger = TicketLedger(db)
                    locked = []
                    try:
                        for key in lock_keys:
                            ledger.lock_allocation(key)
                            locked.append(key)
                        result = work(ledger, db)
                        if isinstance(result, Failure):
                            db.rollback()
                        else:
                            db.commit()
                        return result
                    except Exception:
                        db.rollback()
                        raise
                    finally:
                        try:
                            for key in reversed(locked):
                                ledger.unlock_allocation(key)
                        finally:
                            db.close()
        except SQLAlchemyError as e:
            logger.error(f"❌ {operation} failed: {str(e)}")
            return Failure(FailureReason.STORE_ERROR, f"Database error during {operation}.")

    def _publish(self, event: CallEvent) -> None:
        try:
            self.context.broadcaster.publish(TICKET_CALLED, event.to_payload())
        except Exception as e:
            # Already committed
            logger.warning(f"Could not broadcast {event.display_code}: {e}")

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def issue_next(self, code: Optional[str]) -> Union[IssuedTicket, Failure]:
        """Issue the next sequential number for a class"""
        queue_class = self.parse_class(code)
        if isinstance(queue_class, Failure):
            return queue_class

        now = self.context.clock()
        result = self._execute(
            "issue next",
            lambda ledger, db: self.allocator.issue_next(ledger, queue_class, now),
            lock_keys=self._lock_keys(queue_class, now)
        )
        if isinstance(result, Failure):
            return result
        return IssuedTicket(ticket=result, print_token=self.context.print_jobs.submit([result]))

    def issue_manual(self, code: Optional[str], number: Any) -> Union[IssuedTicket, Failure]:
        """Issue an explicit number, skipping it when it already exists today"""
        queue_class = self.parse_class(code)
        if isinstance(queue_class, Failure):
            return queue_class
        parsed = self.allocator.validate_number(number)
        if isinstance(parsed, Failure):
            return parsed

        now = self.context.clock()
        result = self._execute(
            "manual issue",
            lambda ledger, db: self.allocator.issue_manual(ledger, queue_class, parsed, now),
            lock_keys=self._lock_keys(queue_class, now)
        )
        if isinstance(result, Failure):
            return result
        return IssuedTicket(ticket=result, print_token=self.context.print_jobs.submit([result]))

    def issue_range(self, code: Optional[str], start: Any, end: Any) -> Union[RangeResult, Failure]:
        """Issue every number of ``start..end`` not already issued today"""
        queue_class = self.parse_class(code)
        if isinstance(queue_class, Failure):
            return queue_class
        bounds = self.allocator.validate_range(start, end)
        if isinstance(bounds, Failure):
            return bounds

        first, last = bounds
        now = self.context.clock()
        result = self._execute(
            "range issue",
            lambda ledger, db: self.allocator.issue_range(ledger, queue_class, first, last, now),
            lock_keys=self._lock_keys(queue_class, now)
        )
        if isinstance(result, Failure):
            return result
        result.print_token = self.context.print_jobs.submit(result.tickets)
        return result

    # ------------------------------------------------------------------
    # Calling
    # ------------------------------------------------------------------

    def call_next(self, code: Optional[str], operator_id: str) -> Union[CallEvent, Failure]:
        """Call the oldest waiting ticket of a class to the operator's station"""
        queue_class = self.parse_class(code)
        if isinstance(queue_class, Failure):
            return queue_class

        now = self.context.clock()

        def work(ledger: TicketLedger, db: Session):
            station = OperatorDirectory(db).lookup_station(operator_id)
            if station is None:
                return Failure(FailureReason.UNKNOWN_OPERATOR, f"Operator '{operator_id}' not found.")
            return self.dispatcher.call_next(ledger, queue_class, operator_id, station, now)

        result = self._execute("call next", work)
        if isinstance(result, CallEvent):
            self._publish(result)
        return result

    def recall_last(self, operator_id: str) -> Union[CallEvent, Failure]:
        """Announce again the last ticket this operator called"""
        now = self.context.clock()

        def work(ledger: TicketLedger, db: Session):
            station = OperatorDirectory(db).lookup_station(operator_id)
            if station is None:
                return Failure(FailureReason.UNKNOWN_OPERATOR, f"Operator '{operator_id}' not found.")
            return self.dispatcher.recall_last(ledger, operator_id, station, now)

        result = self._execute("recall", work)
        if isinstance(result, CallEvent):
            self._publish(result)
        return result

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def pending_counts(self) -> Union[Dict[str, int], Failure]:
        """Uncalled tickets issued today, for every configured class"""
        day = service_day(self.context.clock())

        def work(ledger: TicketLedger, db: Session):
            counts = ledger.pending_counts(day)
            return {
                qc.code: counts.get((qc.origin_key, qc.priority.value), 0)
                for qc in self.settings.queue_classes
            }

        return self._execute("pending counts", work)

    def reset_ledger(self) -> Union[int, Failure]:
        """Delete every ticket; numbering restarts at 1 for all classes"""
        result = self._execute("reset", lambda ledger, db: ledger.purge())
        if not isinstance(result, Failure):
            logger.warning(f"Ticket ledger reset, {result} ticket(s) removed")
        return result
