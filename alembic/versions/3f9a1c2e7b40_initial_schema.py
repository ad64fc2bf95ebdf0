"""initial_schema

Revision ID: 3f9a1c2e7b40
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the farm data tables the norms engine reads from: farms,
farm_years, fields and fertilizer_applications, plus the land_use enum.
Requires PostgreSQL 13+ for ``gen_random_uuid()``.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2e7b40"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM_LAND_USE = postgresql.ENUM("arable", "grassland", name="land_use", create_type=False)


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # ── 1. Enum types ───────────────────────────────────────────────────
    ENUM_LAND_USE.create(op.get_bind(), checkfirst=True)

    # ── 2. Tables ───────────────────────────────────────────────────────

    # farms
    op.create_table(
        "farms",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("business_id", sa.String(64), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_farms"),
    )

    # farm_years
    op.create_table(
        "farm_years",
        _id_column(),
        sa.Column("farm_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column(
            "grazing_intention",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column(
            "derogation",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(
            ["farm_id"], ["farms.id"], ondelete="CASCADE", name="fk_farm_years_farm_id_farms"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_farm_years"),
        sa.UniqueConstraint("farm_id", "year", name="uq_farm_years_farm_year"),
    )

    # fields
    op.create_table(
        "fields",
        _id_column(),
        sa.Column("farm_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("area_ha", sa.Numeric(12, 4), nullable=True),
        sa.Column("soil_type", sa.String(32), nullable=True),
        sa.Column("land_use", ENUM_LAND_USE, nullable=True),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(
            ["farm_id"], ["farms.id"], ondelete="CASCADE", name="fk_fields_farm_id_farms"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_fields"),
    )
    op.create_index("ix_fields_farm_id", "fields", ["farm_id"])

    # fertilizer_applications
    op.create_table(
        "fertilizer_applications",
        _id_column(),
        sa.Column("field_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("applied_on", sa.Date(), nullable=False),
        sa.Column("fertilizer_code", sa.String(16), nullable=True),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column(
            "nitrogen_content",
            sa.Numeric(12, 4),
            server_default=sa.text("0"),
            nullable=False,
        ),
        sa.Column(
            "phosphate_content",
            sa.Numeric(12, 4),
            server_default=sa.text("0"),
            nullable=False,
        ),
        sa.Column(
            "potassium_content",
            sa.Numeric(12, 4),
            server_default=sa.text("0"),
            nullable=False,
        ),
        sa.Column("on_farm_produced", sa.Boolean(), nullable=True),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(
            ["field_id"], ["fields.id"], ondelete="CASCADE", name="fk_fertilizer_applications_field_id_fields"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_fertilizer_applications"),
    )
    op.create_index(
        "ix_fertilizer_applications_field_date",
        "fertilizer_applications",
        ["field_id", "applied_on"],
    )


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_index("ix_fertilizer_applications_field_date", table_name="fertilizer_applications")
    op.drop_table("fertilizer_applications")
    op.drop_index("ix_fields_farm_id", table_name="fields")
    op.drop_table("fields")
    op.drop_table("farm_years")
    op.drop_table("farms")

    # ── Drop enum types ─────────────────────────────────────────────────
    ENUM_LAND_USE.drop(op.get_bind(), checkfirst=True)
