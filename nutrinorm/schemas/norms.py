"""Pydantic schemas for dose and usage-norm endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator


class TimeframeQuery(BaseModel):
	year: int = Field(ge=1900, le=2200)
	start: date | None = None
	end: date | None = None

	@model_validator(mode="after")
	def _validate_window(self) -> "TimeframeQuery":
		if (self.start is None) != (self.end is None):
			raise ValueError("provide both start and end, or neither")
		if self.start is not None and self.end is not None and self.end < self.start:
			raise ValueError("end must not be before start")
		if self.start is not None and self.end is not None:
			if self.start > date(self.year, 12, 31) or self.end < date(self.year, 1, 1):
				raise ValueError(f"timeframe must overlap regulation year {self.year}")
		return self


class IssueRead(BaseModel):
	kind: str
	message: str
	record_id: str | None = None
	field_id: str | None = None


class NutrientDoseRead(BaseModel):
	total_kg: float
	working_kg: float
	total_kg_per_ha: float | None = None
	working_kg_per_ha: float | None = None


class DoseRead(BaseModel):
	area_ha: float | None = None
	nitrogen: NutrientDoseRead
	phosphate: NutrientDoseRead
	potassium: NutrientDoseRead
	manure_nitrogen: NutrientDoseRead


class FieldDoseRead(DoseRead):
	field_id: uuid.UUID


class ApplicationDoseRead(BaseModel):
	application_id: uuid.UUID
	field_id: uuid.UUID
	coefficient: float
	working_nitrogen_kg: float
	is_manure: bool
	matched: bool
	explanation: str


class DoseResponse(BaseModel):
	farm_id: uuid.UUID
	year: int
	start: date
	end: date
	generated_at: datetime
	farm: DoseRead
	fields: list[FieldDoseRead] = Field(default_factory=list)
	applications: list[ApplicationDoseRead] = Field(default_factory=list)
	issues: list[IssueRead] = Field(default_factory=list)


class NormFigureRead(BaseModel):
	ceiling_kg: float | None = None
	ceiling_kg_per_ha: float | None = None
	filling_kg: float
	# farm figures: filling of the fields with a known ceiling
	compared_filling_kg: float | None = None
	percentage_filled: float | None = None
	source: str | None = None


class FieldNormsRead(BaseModel):
	field_id: uuid.UUID
	area_ha: float | None = None
	nitrogen: NormFigureRead
	phosphate: NormFigureRead
	manure: NormFigureRead


class FarmNormsRead(BaseModel):
	nitrogen: NormFigureRead
	phosphate: NormFigureRead
	manure: NormFigureRead
	excluded_field_ids: dict[str, list[uuid.UUID]] = Field(default_factory=dict)


class NormsResponse(BaseModel):
	farm_id: uuid.UUID
	year: int
	generated_at: datetime
	farm: FarmNormsRead
	fields: list[FieldNormsRead] = Field(default_factory=list)
	issues: list[IssueRead] = Field(default_factory=list)


class RegulationYearRead(BaseModel):
	year: int
	coefficient_rules: int
	nitrogen_rules: int
	phosphate_rules: int
	manure_rules: int


class RegulationsResponse(BaseModel):
	years: list[RegulationYearRead] = Field(default_factory=list)
