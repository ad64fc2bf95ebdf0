"""Farm, field and fertilizer-application CRUD service."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from nutrinorm.models.farm import Farm, FarmYear, FertilizerApplication, Field
from nutrinorm.schemas.farm import ApplicationCreate, FarmCreate, FarmYearUpsert, FieldCreate


class FarmService:
	"""Service for farm CRUD and the records the norms engine reads."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def create_farm(self, payload: FarmCreate) -> Farm:
		farm = Farm(name=payload.name, business_id=payload.business_id)
		self.db.add(farm)
		await self.db.flush()
		await self.db.refresh(farm)
		return farm

	async def list_farms(self) -> list[Farm]:
		stmt = (
			select(Farm)
			.options(selectinload(Farm.fields), selectinload(Farm.years))
			.order_by(Farm.created_at.desc())
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_farm(self, farm_id: uuid.UUID) -> Farm:
		stmt = (
			select(Farm)
			.where(Farm.id == farm_id)
			.options(selectinload(Farm.fields), selectinload(Farm.years))
		)
		row = await self.db.execute(stmt)
		farm = row.scalar_one_or_none()
		if farm is None:
			raise LookupError(f"Farm {farm_id} not found")
		return farm

	async def add_field(self, farm_id: uuid.UUID, payload: FieldCreate) -> Field:
		farm = await self.get_farm(farm_id)
		field = Field(
			farm_id=farm.id,
			name=payload.name,
			area_ha=payload.area_ha,
			soil_type=payload.soil_type.value if payload.soil_type is not None else None,
			land_use=payload.land_use,
		)
		self.db.add(field)
		await self.db.flush()
		await self.db.refresh(field)
		return field

	async def set_farm_year(self, farm_id: uuid.UUID, year: int, payload: FarmYearUpsert) -> FarmYear:
		farm = await self.get_farm(farm_id)
		stmt = select(FarmYear).where(FarmYear.farm_id == farm.id, FarmYear.year == year)
		row = await self.db.execute(stmt)
		farm_year = row.scalar_one_or_none()
		if farm_year is None:
			farm_year = FarmYear(farm_id=farm.id, year=year)
			self.db.add(farm_year)
		farm_year.grazing_intention = payload.grazing_intention
		farm_year.derogation = payload.derogation
		await self.db.flush()
		await self.db.refresh(farm_year)
		return farm_year

	async def add_application(self, field_id: uuid.UUID, payload: ApplicationCreate) -> FertilizerApplication:
		await self._get_field(field_id)
		application = FertilizerApplication(
			field_id=field_id,
			applied_on=payload.applied_on,
			fertilizer_code=payload.fertilizer_code,
			quantity=payload.quantity,
			nitrogen_content=payload.nitrogen_content,
			phosphate_content=payload.phosphate_content,
			potassium_content=payload.potassium_content,
			on_farm_produced=payload.on_farm_produced,
		)
		self.db.add(application)
		await self.db.flush()
		await self.db.refresh(application)
		return application

	async def _get_field(self, field_id: uuid.UUID) -> Field:
		row = await self.db.execute(select(Field).where(Field.id == field_id))
		field = row.scalar_one_or_none()
		if field is None:
			raise LookupError(f"Field {field_id} not found")
		return field
