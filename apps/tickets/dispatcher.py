# ============================================================================
# apps/tickets/dispatcher.py - Call cursor and recall
# ============================================================================

from datetime import datetime
from typing import List, Union
import logging

from .ledger import TicketLedger
from .queue_class import QueueClass, service_day
from .results import CallEvent, Failure, FailureReason, Station

logger = logging.getLogger(__name__)


class Dispatcher:
    """Moves tickets from waiting to called, in issuance order per class.

    The call cursor is not stored: it is always the uncalled ticket of the
    class with the smallest number today.
    """

    def call_next(
        self,
        ledger: TicketLedger,
        queue_class: QueueClass,
        operator_id: str,
        station: Station,
        now: datetime
    ) -> Union[CallEvent, Failure]:
        day = service_day(now)
        lost: List[int] = []
        while True:
            ticket = ledger.oldest_uncalled(queue_class, day, exclude=lost)
            if ticket is None:
                return Failure(FailureReason.EMPTY_QUEUE, f"No tickets waiting in queue {queue_class.code}.")
            if ledger.mark_called(ticket.id, operator_id, now):
                break
            # Another counter called it between our select and update
            lost.append(ticket.id)

        logger.info(f"Operator {operator_id} called {ticket.display_code} to room {station.room} desk {station.desk}")
        return CallEvent(queue_class=queue_class, number=ticket.number, station=station)

    def recall_last(
        self,
        ledger: TicketLedger,
        operator_id: str,
        station: Station,
        now: datetime
    ) -> Union[CallEvent, Failure]:
        ticket = ledger.last_called_by(operator_id)
        if ticket is None:
            return Failure(FailureReason.NOTHING_CALLED, "You have not called any ticket yet.")

        ledger.touch(ticket.id, now)
        logger.info(f"Operator {operator_id} recalled {ticket.display_code}")
        return CallEvent(queue_class=ticket.queue_class, number=ticket.number, station=station)
