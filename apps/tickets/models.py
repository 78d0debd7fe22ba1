from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, UniqueConstraint, Index
from shared.database import Base
from .queue_class import QueueClass


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    origin = Column(String(1), nullable=False, default="")
    priority = Column(String(1), nullable=False)
    number = Column(Integer, nullable=False)
    service_date = Column(Date, nullable=False, index=True)
    issued_at = Column(DateTime, nullable=False)
    called = Column(Boolean, nullable=False, default=False)
    called_by = Column(String(255), index=True)
    called_at = Column(DateTime)
    updated_at = Column(DateTime)

    __table_args__ = (
        UniqueConstraint("origin", "priority", "service_date", "number", name="uq_ticket_number_per_day"),
        Index("ix_tickets_queue_pending", "origin", "priority", "service_date", "called", "number"),
    )

    @property
    def queue_class(self) -> QueueClass:
        return QueueClass.from_row(self.origin, self.priority)

    @property
    def display_code(self) -> str:
        return self.queue_class.display_code(self.number)
