"""Background task claims

Revision ID: 0002_task_claims
Revises: 0001_initial_schema
Create Date: 2026-10-19

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0002_task_claims"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def _has_column(insp: sa.Inspector, table: str, column: str) -> bool:
    return column in {c["name"] for c in insp.get_columns(table)}


def upgrade() -> None:
    insp = sa.inspect(op.get_bind())
    if _has_column(insp, "background_tasks", "claimed_at"):
        return
    with op.batch_alter_table("background_tasks", schema=None) as batch_op:
        batch_op.add_column(sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("background_tasks", schema=None) as batch_op:
        batch_op.drop_column("claimed_at")
