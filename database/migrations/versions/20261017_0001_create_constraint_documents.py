"""create constraint documents and generated timetables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "constraint_documents",
        sa.Column("institution_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("document", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "generated_timetables",
        sa.Column("institution_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("entries", sa.JSON(), nullable=False),
        sa.Column("unscheduled_sessions", sa.JSON(), nullable=False),
        sa.Column("runtime_ms", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("generated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("generated_timetables")
    op.drop_table("constraint_documents")
