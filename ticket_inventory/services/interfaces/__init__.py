"""
Service interfaces for dependency inversion.
Allows swapping the durable store without changing inventory logic.
"""

from .ticket_store import TicketTypeStore

__all__ = ['TicketTypeStore']
