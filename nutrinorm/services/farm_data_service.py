"""Read interface between the database and the calculation engine.

Every method returns plain engine records (``nutrinorm.engine.records``);
ORM objects never cross into the engine.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nutrinorm.engine.records import (
	FarmContext,
	FertilizerApplication,
	FieldContext,
	LandUse,
	Timeframe,
	to_decimal,
)
from nutrinorm.models.farm import Farm, FarmYear
from nutrinorm.models.farm import FertilizerApplication as ApplicationRow
from nutrinorm.models.farm import Field as FieldRow


class FarmDataService:
	"""Fetches snapshots of farm, field and application records."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def get_fertilizer_applications(
		self,
		timeframe: Timeframe,
		*,
		farm_id: uuid.UUID | None = None,
		field_id: uuid.UUID | None = None,
	) -> list[FertilizerApplication]:
		if (farm_id is None) == (field_id is None):
			raise ValueError("provide exactly one of farm_id or field_id")

		stmt = (
			select(ApplicationRow)
			.where(
				ApplicationRow.applied_on >= timeframe.start,
				ApplicationRow.applied_on <= timeframe.end,
			)
			.order_by(ApplicationRow.applied_on.asc(), ApplicationRow.id.asc())
		)
		if field_id is not None:
			stmt = stmt.where(ApplicationRow.field_id == field_id)
		else:
			stmt = stmt.join(FieldRow, FieldRow.id == ApplicationRow.field_id).where(
				FieldRow.farm_id == farm_id
			)
		rows = await self.db.execute(stmt)
		return [self.application_to_record(row) for row in rows.scalars().all()]

	async def get_field_context(self, field_id: uuid.UUID) -> FieldContext:
		row = await self.db.execute(select(FieldRow).where(FieldRow.id == field_id))
		field = row.scalar_one_or_none()
		if field is None:
			raise LookupError(f"Field {field_id} not found")
		return self.field_to_context(field)

	async def get_field_contexts(self, farm_id: uuid.UUID) -> list[FieldContext]:
		await self._require_farm(farm_id)
		stmt = select(FieldRow).where(FieldRow.farm_id == farm_id).order_by(FieldRow.created_at.asc())
		rows = await self.db.execute(stmt)
		return [self.field_to_context(field) for field in rows.scalars().all()]

	async def get_farm_context(self, farm_id: uuid.UUID, year: int) -> FarmContext:
		await self._require_farm(farm_id)
		stmt = select(FarmYear).where(FarmYear.farm_id == farm_id, FarmYear.year == year)
		row = await self.db.execute(stmt)
		return self.farm_year_to_context(farm_id, year, row.scalar_one_or_none())

	async def _require_farm(self, farm_id: uuid.UUID) -> None:
		row = await self.db.execute(select(Farm.id).where(Farm.id == farm_id))
		if row.scalar_one_or_none() is None:
			raise LookupError(f"Farm {farm_id} not found")

	@staticmethod
	def farm_year_to_context(farm_id: uuid.UUID, year: int, farm_year: FarmYear | None) -> FarmContext:
		# No row recorded for the year means neither grazing nor derogation.
		grazing = bool(farm_year.grazing_intention) if farm_year is not None else False
		derogation = bool(farm_year.derogation) if farm_year is not None else False
		return FarmContext(
			id=str(farm_id),
			grazing_intention={year: grazing},
			derogation={year: derogation},
		)

	@staticmethod
	def field_to_context(field: FieldRow) -> FieldContext:
		return FieldContext(
			id=str(field.id),
			farm_id=str(field.farm_id),
			area_ha=to_decimal(field.area_ha),
			soil_type=field.soil_type,
			land_use=LandUse(field.land_use.value) if field.land_use is not None else None,
		)

	@staticmethod
	def application_to_record(row: ApplicationRow) -> FertilizerApplication:
		return FertilizerApplication(
			id=str(row.id),
			field_id=str(row.field_id) if row.field_id is not None else None,
			applied_on=row.applied_on,
			fertilizer_code=row.fertilizer_code,
			quantity=to_decimal(row.quantity) or Decimal(0),
			nitrogen_content=to_decimal(row.nitrogen_content) or Decimal(0),
			phosphate_content=to_decimal(row.phosphate_content) or Decimal(0),
			potassium_content=to_decimal(row.potassium_content) or Decimal(0),
			on_farm_produced=row.on_farm_produced,
		)
