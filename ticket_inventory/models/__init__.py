from ticket_inventory.models.ticket_type import TicketType

__all__ = ["TicketType"]
