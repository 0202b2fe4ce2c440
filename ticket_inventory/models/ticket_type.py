"""
Ticket type row: the durable baseline for one ticket type's inventory.

Key design decisions:
- `quantity_available` excludes sold units; capacity is available + sold
- Held units are never stored here, holds live in the inventory service
- CHECK constraints are the last line of defence against overselling:
  the sale UPDATE is conditional on quantity_available >= quantity
"""

from sqlalchemy import Column, String, Integer, CheckConstraint, Index

from ticket_inventory.db.base import Base, TimestampMixin


class TicketType(Base, TimestampMixin):
    __tablename__ = "ticket_types"

    id = Column(String(64), primary_key=True)
    event_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=True)
    quantity_available = Column(Integer, nullable=False, default=0)
    quantity_sold = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("quantity_available >= 0", name="check_quantity_available_non_negative"),
        CheckConstraint("quantity_sold >= 0", name="check_quantity_sold_non_negative"),
        # Event summaries group ticket types by event
        Index("ix_ticket_types_event_id", "event_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TicketType(id={self.id}, event={self.event_id}, "
            f"available={self.quantity_available}, sold={self.quantity_sold})>"
        )
