"""Pydantic request/response schemas for farm data."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from nutrinorm.models.enums import LandUseEnum, SoilTypeEnum


class FarmCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	business_id: str | None = Field(default=None, max_length=64)


class FarmYearUpsert(BaseModel):
	grazing_intention: bool = False
	derogation: bool = False


class FieldCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	area_ha: Decimal | None = Field(default=None, ge=0)
	soil_type: SoilTypeEnum | None = None
	land_use: LandUseEnum | None = None


class ApplicationCreate(BaseModel):
	applied_on: date
	fertilizer_code: str | None = Field(default=None, min_length=1, max_length=16)
	quantity: Decimal = Field(ge=0)
	nitrogen_content: Decimal = Field(default=Decimal(0), ge=0)
	phosphate_content: Decimal = Field(default=Decimal(0), ge=0)
	potassium_content: Decimal = Field(default=Decimal(0), ge=0)
	on_farm_produced: bool | None = None


class FarmYearRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	year: int
	grazing_intention: bool
	derogation: bool


class FieldRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	farm_id: uuid.UUID
	name: str
	area_ha: float | None
	soil_type: str | None
	land_use: LandUseEnum | None
	created_at: datetime
	updated_at: datetime


class ApplicationRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	field_id: uuid.UUID
	applied_on: date
	fertilizer_code: str | None
	quantity: float
	nitrogen_content: float
	phosphate_content: float
	potassium_content: float
	on_farm_produced: bool | None
	created_at: datetime


class FarmRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	business_id: str | None = None
	created_at: datetime
	updated_at: datetime
	fields: list[FieldRead] = Field(default_factory=list)
	years: list[FarmYearRead] = Field(default_factory=list)


class FarmListRead(BaseModel):
	items: list[FarmRead]
