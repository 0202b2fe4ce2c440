"""
Infrastructure layer - external system integrations.
Keeps inventory logic clean from persistence details.
"""

from .sql_ticket_store import SqlTicketTypeStore

__all__ = ['SqlTicketTypeStore']
