"""
Durable ticket-type store interface.
Lets the inventory service run against PostgreSQL in production and an
in-memory double in tests without changing business logic.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ticket_inventory.schemas.inventory import TicketTypeBaseline


class TicketTypeStore(ABC):
    """
    Source of the sold/available baseline for every ticket type.

    Implementations:
    - SqlTicketTypeStore: ticket_types table via SQLAlchemy async

    Every method raises PersistenceError on driver failure; a write that
    raised must be treated as not applied.
    """

    @abstractmethod
    async def fetch(self, ticket_type_id: str) -> Optional[TicketTypeBaseline]:
        """
        Read one ticket type.

        Returns:
            The baseline, or None if the ticket type does not exist
        """

    @abstractmethod
    async def fetch_all(self) -> list[TicketTypeBaseline]:
        """Read every ticket type (cache warm-up)."""

    @abstractmethod
    async def record_sale(self, ticket_type_id: str, quantity: int) -> None:
        """
        Move `quantity` units from available to sold.

        Must be atomic and conditional on quantity_available >= quantity;
        a rejected update raises PersistenceError.
        """

    @abstractmethod
    async def adjust_capacity(self, ticket_type_id: str, delta: int) -> None:
        """
        Apply an administrative +/- change to quantity_available.

        Must refuse to drive quantity_available below zero.
        """
