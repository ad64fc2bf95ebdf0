"""Plain input records handed to the engine by the data layer.

The engine never loads these itself: the calling layer fetches snapshots
(applications, field contexts, farm context) and passes them in.  Amounts
are already normalised to kilograms.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum


class LandUse(StrEnum):
    """Land-use class of a field."""

    arable = "arable"
    grassland = "grassland"


class Nutrient(StrEnum):
    """Nutrients tracked by the dose calculator."""

    nitrogen = "nitrogen"
    phosphate = "phosphate"
    potassium = "potassium"


def to_decimal(value: Decimal | float | int | str | None) -> Decimal | None:
    """Convert a numeric input to ``Decimal`` without binary float noise."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True, slots=True)
class FertilizerApplication:
    """A single fertilizer application as recorded on a field.

    ``*_content`` is kilograms of nutrient per unit of ``quantity``.
    """

    id: str
    field_id: str | None
    applied_on: date
    fertilizer_code: str | None
    quantity: Decimal
    nitrogen_content: Decimal = Decimal(0)
    phosphate_content: Decimal = Decimal(0)
    potassium_content: Decimal = Decimal(0)
    on_farm_produced: bool | None = None

    def content(self, nutrient: Nutrient) -> Decimal:
        if nutrient == Nutrient.nitrogen:
            return self.nitrogen_content
        if nutrient == Nutrient.phosphate:
            return self.phosphate_content
        return self.potassium_content


@dataclass(frozen=True, slots=True)
class FieldContext:
    id: str
    farm_id: str
    area_ha: Decimal | None
    soil_type: str | None
    land_use: LandUse | None

    @property
    def is_arable(self) -> bool | None:
        if self.land_use is None:
            return None
        return self.land_use == LandUse.arable

    @property
    def has_area(self) -> bool:
        return self.area_ha is not None and self.area_ha > 0


@dataclass(frozen=True, slots=True)
class FarmContext:
    """Per-year farm attributes, keyed by calendar year."""

    id: str
    grazing_intention: dict[int, bool] = field(default_factory=dict)
    derogation: dict[int, bool] = field(default_factory=dict)

    def has_grazing_intention(self, year: int) -> bool | None:
        return self.grazing_intention.get(year)

    def has_derogation(self, year: int) -> bool | None:
        return self.derogation.get(year)


@dataclass(frozen=True, slots=True)
class Timeframe:
    """Inclusive date window used to select applications."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("timeframe end must not be before its start")

    @classmethod
    def calendar_year(cls, year: int) -> Timeframe:
        return cls(start=date(year, 1, 1), end=date(year, 12, 31))

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end
