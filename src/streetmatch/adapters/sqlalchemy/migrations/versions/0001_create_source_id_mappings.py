"""Create the source_id_mappings table.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_ENTITY_TYPES = ("geo", "street", "complex", "topzone")
_MATCH_METHODS = (
    "exact_name",
    "renamed",
    "fuzzy_city",
    "fuzzy_region",
    "text_parsed",
    "text_found",
    "nearest",
    "coordinates",
    "manual",
)


def upgrade() -> None:
    op.create_table(
        "source_id_mappings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("source", sa.String(length=30), nullable=False),
        sa.Column(
            "entity_type",
            sa.Enum(*_ENTITY_TYPES, name="entitytype", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("source_id", sa.Integer(), nullable=False),
        sa.Column("local_id", sa.Integer(), nullable=False),
        sa.Column(
            "confidence",
            sa.Numeric(precision=3, scale=2, asdecimal=False),
            server_default="1.0",
            nullable=False,
        ),
        sa.Column(
            "match_method",
            sa.Enum(*_MATCH_METHODS, name="matchmethod", native_enum=False, length=30),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_source_id_mappings")),
        sa.UniqueConstraint(
            "source",
            "entity_type",
            "source_id",
            name=op.f("uq_source_id_mappings_source"),
        ),
    )
    with op.batch_alter_table("source_id_mappings", schema=None) as batch_op:
        batch_op.create_index(
            "ix_source_id_mappings_local",
            ["source", "entity_type", "local_id"],
            unique=False,
        )


def downgrade() -> None:
    with op.batch_alter_table("source_id_mappings", schema=None) as batch_op:
        batch_op.drop_index("ix_source_id_mappings_local")
    op.drop_table("source_id_mappings")
