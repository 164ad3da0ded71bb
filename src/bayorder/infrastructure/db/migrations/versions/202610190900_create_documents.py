"""create documents table

Revision ID: 202610190900
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("collection", sa.String(length=64), nullable=False),
        sa.Column("id", sa.String(length=255), nullable=False),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("collection", "id"),
    )
    op.create_index(
        "ix_documents_collection_cafe_created",
        "documents",
        ["collection", sa.text("(data->>'cafeId')"), sa.text("(data->>'createdAt')")],
        unique=False,
    )
    op.create_index(
        "ix_documents_collection_status",
        "documents",
        ["collection", sa.text("(data->>'status')")],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_documents_collection_status", table_name="documents")
    op.drop_index("ix_documents_collection_cafe_created", table_name="documents")
    op.drop_table("documents")
