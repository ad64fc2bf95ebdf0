"""Farm, FarmYear, Field and FertilizerApplication ORM models.

These tables are the data layer the calculation engine reads from.  The
engine never touches them directly: ``FarmDataService`` converts rows into
the engine's plain records.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nutrinorm.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from nutrinorm.models.enums import LandUseEnum

# ═══════════════════════════════════════════════════════════════════════════
# Farm
# ═══════════════════════════════════════════════════════════════════════════


class Farm(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A farm — owner of fields and of per-year regulatory attributes."""

    __tablename__ = "farms"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    business_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    fields: Mapped[list[Field]] = relationship(
        back_populates="farm",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    years: Mapped[list[FarmYear]] = relationship(
        back_populates="farm",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Farm id={self.id} name={self.name!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# FarmYear
# ═══════════════════════════════════════════════════════════════════════════


class FarmYear(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Grazing intention and derogation status of a farm for one calendar year."""

    __tablename__ = "farm_years"
    __table_args__ = (
        UniqueConstraint("farm_id", "year", name="uq_farm_years_farm_year"),
    )

    farm_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("farms.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    grazing_intention: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    derogation: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    farm: Mapped[Farm] = relationship(back_populates="years")

    def __repr__(self) -> str:
        return f"<FarmYear farm={self.farm_id} year={self.year}>"


# ═══════════════════════════════════════════════════════════════════════════
# Field
# ═══════════════════════════════════════════════════════════════════════════


class Field(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A parcel of land.  ``area_ha`` may be zero for fields still being mapped."""

    __tablename__ = "fields"
    __table_args__ = (Index("ix_fields_farm_id", "farm_id"),)

    farm_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("farms.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    area_ha: Mapped[Decimal | None] = mapped_column(nullable=True)
    soil_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    land_use: Mapped[LandUseEnum | None] = mapped_column(
        Enum(
            LandUseEnum,
            name="land_use",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )

    # ── Relationships ────────────────────────────────────────────────────
    farm: Mapped[Farm] = relationship(back_populates="fields")
    applications: Mapped[list[FertilizerApplication]] = relationship(
        back_populates="field",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<Field id={self.id} name={self.name!r} farm={self.farm_id}>"


# ═══════════════════════════════════════════════════════════════════════════
# FertilizerApplication
# ═══════════════════════════════════════════════════════════════════════════


class FertilizerApplication(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One fertilizer application on a field.

    ``fertilizer_code`` is the RVO mestcode.  Nutrient contents are kg per
    unit of ``quantity`` (e.g. kg N per tonne with quantity in tonnes).
    """

    __tablename__ = "fertilizer_applications"
    __table_args__ = (
        Index("ix_fertilizer_applications_field_date", "field_id", "applied_on"),
    )

    field_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("fields.id", ondelete="CASCADE"),
        nullable=False,
    )
    applied_on: Mapped[date] = mapped_column(Date, nullable=False)
    fertilizer_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    nitrogen_content: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal(0), server_default=text("0")
    )
    phosphate_content: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal(0), server_default=text("0")
    )
    potassium_content: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal(0), server_default=text("0")
    )
    on_farm_produced: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    field: Mapped[Field] = relationship(back_populates="applications")

    def __repr__(self) -> str:
        return (
            f"<FertilizerApplication id={self.id} field={self.field_id} "
            f"code={self.fertilizer_code} on={self.applied_on}>"
        )
