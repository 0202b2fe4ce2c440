"""
PostgreSQL ticket-type store.

CONCURRENCY: the sale write is the authority
============================================

Holds are tracked in process memory and are advisory: two service instances
(or a cache miss racing a hold) can both think the last ticket is theirs.
The write that turns a hold into a sale is therefore a single conditional
statement:

  UPDATE ticket_types
     SET quantity_sold = quantity_sold + :q,
         quantity_available = quantity_available - :q
   WHERE id = :id AND quantity_available >= :q

If rows_affected == 0 the row vanished or was already sold out, and the
purchase is refused. The CHECK constraints on the table are the final
safety net.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ticket_inventory.core.exceptions import PersistenceError
from ticket_inventory.core.logging import get_logger
from ticket_inventory.core.metrics import record_store_failure
from ticket_inventory.models.ticket_type import TicketType
from ticket_inventory.schemas.inventory import TicketTypeBaseline
from ticket_inventory.services.interfaces.ticket_store import TicketTypeStore

logger = get_logger(__name__)


def _to_baseline(row: TicketType) -> TicketTypeBaseline:
    return TicketTypeBaseline(
        id=row.id,
        event_id=row.event_id,
        quantity_available=row.quantity_available or 0,
        quantity_sold=row.quantity_sold or 0,
    )


class SqlTicketTypeStore(TicketTypeStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def fetch(self, ticket_type_id: str) -> Optional[TicketTypeBaseline]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(TicketType).where(TicketType.id == ticket_type_id)
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            record_store_failure("fetch")
            logger.error("ticket_type_fetch_failed", ticket_type_id=ticket_type_id, error=str(e))
            raise PersistenceError(f"Failed to read ticket type {ticket_type_id}") from e

        return _to_baseline(row) if row is not None else None

    async def fetch_all(self) -> list[TicketTypeBaseline]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(TicketType))
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            record_store_failure("fetch")
            logger.error("ticket_type_scan_failed", error=str(e))
            raise PersistenceError("Failed to read ticket types") from e

        return [_to_baseline(row) for row in rows]

    async def record_sale(self, ticket_type_id: str, quantity: int) -> None:
        stmt = (
            update(TicketType)
            .where(
                TicketType.id == ticket_type_id,
                TicketType.quantity_available >= quantity,
            )
            .values(
                quantity_sold=TicketType.quantity_sold + quantity,
                quantity_available=TicketType.quantity_available - quantity,
            )
        )
        await self._execute_write("record_sale", ticket_type_id, stmt)

    async def adjust_capacity(self, ticket_type_id: str, delta: int) -> None:
        stmt = (
            update(TicketType)
            .where(
                TicketType.id == ticket_type_id,
                TicketType.quantity_available + delta >= 0,
            )
            .values(quantity_available=TicketType.quantity_available + delta)
        )
        await self._execute_write("adjust", ticket_type_id, stmt)

    async def _execute_write(self, operation: str, ticket_type_id: str, stmt) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    rowcount = result.rowcount
        except SQLAlchemyError as e:
            record_store_failure(operation)
            logger.error(
                "ticket_type_write_failed",
                operation=operation,
                ticket_type_id=ticket_type_id,
                error=str(e),
            )
            raise PersistenceError(f"Failed to update ticket type {ticket_type_id}") from e

        if rowcount == 0:
            record_store_failure(operation)
            logger.warning(
                "ticket_type_write_rejected",
                operation=operation,
                ticket_type_id=ticket_type_id,
            )
            raise PersistenceError(
                f"Update rejected for ticket type {ticket_type_id}: row missing or insufficient stock"
            )
