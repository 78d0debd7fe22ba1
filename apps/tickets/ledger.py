# ============================================================================
# apps/tickets/ledger.py - Durable ordered set of issued tickets
# ============================================================================

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .locks import advisory_lock_id, advisory_lock_name
from .models import Ticket
from .queue_class import Priority, QueueClass

logger = logging.getLogger(__name__)


class AllocationLockTimeout(SQLAlchemyError):
    """Allocation lock could not be taken in time"""


class TicketLedger:
    """Ticket queries and mutations inside the caller's transaction.

    The ledger never commits; the service owning the session decides when
    the unit of work is complete.
    """

    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    def _for_class(self, queue_class: QueueClass, day: date):
        return self.db.query(Ticket).filter(
            Ticket.origin == queue_class.origin_key,
            Ticket.priority == queue_class.priority.value,
            Ticket.service_date == day
        )

    def lock_allocation(self, key: Tuple[str, str]) -> None:
        """Database side exclusion for one (class, day) numbering domain.

        SQLite transactions already start with BEGIN IMMEDIATE, so only the
        server databases need an explicit lock. The PostgreSQL lock ends with
        the transaction; the MySQL one belongs to the connection and must be
        released with ``unlock_allocation`` on that same connection.
        """
        if self.dialect == "postgresql":
            self.db.execute(text("SELECT pg_advisory_xact_lock(:lock_id)"), {"lock_id": advisory_lock_id(key)})
        elif self.dialect in ("mysql", "mariadb"):
            acquired = self.db.execute(
                text("SELECT GET_LOCK(:name, 30)"), {"name": advisory_lock_name(key)}
            ).scalar()
            if acquired != 1:
                raise AllocationLockTimeout(f"Could not acquire allocation lock for {key}")

    def unlock_allocation(self, key: Tuple[str, str]) -> None:
        if self.dialect in ("mysql", "mariadb"):
            self.db.execute(text("SELECT RELEASE_LOCK(:name)"), {"name": advisory_lock_name(key)})

    def max_number(self, queue_class: QueueClass, day: date) -> int:
        value = self._for_class(queue_class, day).with_entities(func.max(Ticket.number)).scalar()
        return value or 0

    def exists(self, queue_class: QueueClass, day: date, number: int) -> bool:
        return self._for_class(queue_class, day).filter(Ticket.number == number).first() is not None

    def existing_numbers(self, queue_class: QueueClass, day: date, start: int, end: int) -> Set[int]:
        rows = self._for_class(queue_class, day).filter(
            Ticket.number >= start,
            Ticket.number <= end
        ).with_entities(Ticket.number).all()
        return {row[0] for row in rows}

    def _new_ticket(self, queue_class: QueueClass, day: date, number: int, issued_at: datetime) -> Ticket:
        return Ticket(
            origin=queue_class.origin_key,
            priority=queue_class.priority.value,
            number=number,
            service_date=day,
            issued_at=issued_at,
            called=False
        )

    def insert(self, queue_class: QueueClass, day: date, number: int, issued_at: datetime) -> Ticket:
        ticket = self._new_ticket(queue_class, day, number, issued_at)
        self.db.add(ticket)
        self.db.flush()
        return ticket

    def insert_if_absent(
        self, queue_class: QueueClass, day: date, number: int, issued_at: datetime
    ) -> Optional[Ticket]:
        """Insert unless ``number`` already exists for the class today.

        Returns ``None`` for a duplicate. The savepoint keeps the outer
        transaction usable when the unique constraint catches a writer from
        another process.
        """
        if self.exists(queue_class, day, number):
            return None
        try:
            with self.db.begin_nested():
                ticket = self.insert(queue_class, day, number, issued_at)
        except IntegrityError:
            logger.info(f"Ticket {queue_class.display_code(number)} inserted concurrently, skipping")
            return None
        return ticket

    def insert_many(
        self, queue_class: QueueClass, day: date, numbers: Iterable[int], issued_at: datetime
    ) -> List[Ticket]:
        tickets = [self._new_ticket(queue_class, day, n, issued_at) for n in numbers]
        if tickets:
            self.db.add_all(tickets)
            self.db.flush()
        return tickets

    def oldest_uncalled(self, queue_class: QueueClass, day: date, exclude: Iterable[int] = ()) -> Optional[Ticket]:
        query = self._for_class(queue_class, day).filter(Ticket.called.is_(False))
        excluded = list(exclude)
        if excluded:
            query = query.filter(Ticket.id.notin_(excluded))
        return query.order_by(Ticket.number.asc(), Ticket.id.asc()).first()

    def mark_called(self, ticket_id: int, operator_id: str, at: datetime) -> bool:
        """Flip ``called`` once; False when another caller got there first"""
        updated = self.db.query(Ticket).filter(
            Ticket.id == ticket_id,
            Ticket.called.is_(False)
        ).update(
            {Ticket.called: True, Ticket.called_by: operator_id, Ticket.called_at: at, Ticket.updated_at: at},
            synchronize_session=False
        )
        return updated == 1

    def last_called_by(self, operator_id: str) -> Optional[Ticket]:
        return self.db.query(Ticket).filter(
            Ticket.called_by == operator_id,
            Ticket.called.is_(True)
        ).order_by(Ticket.id.desc()).first()

    def touch(self, ticket_id: int, at: datetime) -> None:
        self.db.query(Ticket).filter(Ticket.id == ticket_id).update(
            {Ticket.updated_at: at}, synchronize_session=False
        )

    def count_normal(
        self,
        day: date,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        origin: Optional[str] = None
    ) -> int:
        query = self.db.query(func.count(Ticket.id)).filter(
            Ticket.priority == Priority.NORMAL.value,
            Ticket.service_date == day
        )
        if origin is not None:
            query = query.filter(Ticket.origin == origin)
        if since is not None:
            query = query.filter(Ticket.issued_at >= since)
        if until is not None:
            query = query.filter(Ticket.issued_at < until)
        return query.scalar() or 0

    def pending_counts(self, day: date) -> Dict[Tuple[str, str], int]:
        rows = self.db.query(Ticket.origin, Ticket.priority, func.count(Ticket.id)).filter(
            Ticket.service_date == day,
            Ticket.called.is_(False)
        ).group_by(Ticket.origin, Ticket.priority).all()
        return {(origin, priority): count for origin, priority, count in rows}

    def purge(self) -> int:
        """Delete every ticket and restart the id sequence"""
        deleted = self.db.query(Ticket).delete(synchronize_session=False)
        if self.dialect == "postgresql":
            self.db.execute(text("ALTER SEQUENCE tickets_id_seq RESTART WITH 1"))
        elif self.dialect in ("mysql", "mariadb"):
            self.db.execute(text("ALTER TABLE tickets AUTO_INCREMENT = 1"))
        # SQLite reuses max(id) + 1, which is 1 on an empty table
        return deleted
