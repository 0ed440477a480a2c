"""create countdown deadline

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the per-identity deadline table."""
    op.create_table(
        "countdown_deadline",
        sa.Column("identity", sa.String(length=255), nullable=False),
        sa.Column("deadline_timestamp_ms", sa.BigInteger(), nullable=False),
        sa.Column("set_at_ms", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("identity"),
    )


def downgrade() -> None:
    """Drop the per-identity deadline table."""
    op.drop_table("countdown_deadline")
