# ============================================================================
# apps/tickets/rate_limiter.py - Daily and shift caps for the Normal tier
# ============================================================================

from datetime import datetime
from typing import Optional
import logging

from .ledger import TicketLedger
from .queue_class import QueueClass, service_day, shift_bounds
from .results import Failure, FailureReason
from .settings import QueueSettings

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(self, settings: QueueSettings):
        self.settings = settings

    def check_capacity(
        self,
        ledger: TicketLedger,
        queue_class: QueueClass,
        quantity: int,
        now: datetime
    ) -> Optional[Failure]:
        """Return a Failure when adding ``quantity`` tickets would pass a cap.

        Priority tickets are never limited. Counts come from today's ledger
        and are compared with the prospective post-insert total.
        """
        if not queue_class.is_normal:
            return None

        day = service_day(now)
        origin = queue_class.origin_key if self.settings.rate_limit_scope == "origin" else None
        scope = f"origin {queue_class.origin_key}" if origin is not None else "global"

        day_count = ledger.count_normal(day, origin=origin)
        if day_count + quantity > self.settings.daily_normal_cap:
            logger.warning(
                f"Daily cap reached for normal tickets ({scope}): {day_count} + {quantity} > {self.settings.daily_normal_cap}"
            )
            return Failure(
                FailureReason.DAILY_CAP,
                f"Daily limit of normal tickets reached ({self.settings.daily_normal_cap})."
            )

        since, until = shift_bounds(now, self.settings.shift_boundary_hour)
        shift_count = ledger.count_normal(day, since=since, until=until, origin=origin)
        if shift_count + quantity > self.settings.shift_normal_cap:
            logger.warning(
                f"Shift cap reached for normal tickets ({scope}): {shift_count} + {quantity} > {self.settings.shift_normal_cap}"
            )
            return Failure(
                FailureReason.SHIFT_CAP,
                f"Shift limit of normal tickets reached ({self.settings.shift_normal_cap})."
            )

        return None
