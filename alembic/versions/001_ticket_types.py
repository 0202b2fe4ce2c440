"""Ticket types: durable sold/available baseline for inventory holds.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "ticket_types",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("event_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("quantity_available", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("quantity_sold", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # The sale UPDATE is conditional; these make a buggy writer fail loudly
        sa.CheckConstraint("quantity_available >= 0", name="check_quantity_available_non_negative"),
        sa.CheckConstraint("quantity_sold >= 0", name="check_quantity_sold_non_negative"),
    )
    # Event summaries and hold releases group ticket types by event
    op.create_index("ix_ticket_types_event_id", "ticket_types", ["event_id"])


def downgrade() -> None:
    op.drop_index("ix_ticket_types_event_id", table_name="ticket_types")
    op.drop_table("ticket_types")
