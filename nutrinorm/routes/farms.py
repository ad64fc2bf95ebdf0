"""Farm, field and farm-year CRUD routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from nutrinorm.database import get_db
from nutrinorm.schemas.farm import (
	FarmCreate,
	FarmListRead,
	FarmRead,
	FarmYearRead,
	FarmYearUpsert,
	FieldCreate,
	FieldRead,
)
from nutrinorm.services.farm_service import FarmService

router = APIRouter(prefix="/farms", tags=["farms"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected farm service failure",
	)


@router.post("", response_model=FarmRead, status_code=status.HTTP_201_CREATED)
async def create_farm(
	payload: FarmCreate,
	db: AsyncSession = Depends(get_db),
) -> FarmRead:
	service = FarmService(db)
	try:
		farm = await service.create_farm(payload)
		farm = await service.get_farm(farm.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FarmRead.model_validate(farm)


@router.get("", response_model=FarmListRead)
async def list_farms(db: AsyncSession = Depends(get_db)) -> FarmListRead:
	service = FarmService(db)
	try:
		farms = await service.list_farms()
	except Exception as exc:
		raise _map_error(exc) from exc
	return FarmListRead(items=[FarmRead.model_validate(farm) for farm in farms])


@router.get("/{farm_id}", response_model=FarmRead)
async def get_farm(
	farm_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
) -> FarmRead:
	service = FarmService(db)
	try:
		farm = await service.get_farm(farm_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FarmRead.model_validate(farm)


@router.post("/{farm_id}/fields", response_model=FieldRead, status_code=status.HTTP_201_CREATED)
async def add_field(
	farm_id: uuid.UUID,
	payload: FieldCreate,
	db: AsyncSession = Depends(get_db),
) -> FieldRead:
	service = FarmService(db)
	try:
		field = await service.add_field(farm_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FieldRead.model_validate(field)


@router.put("/{farm_id}/years/{year}", response_model=FarmYearRead)
async def set_farm_year(
	farm_id: uuid.UUID,
	payload: FarmYearUpsert,
	year: int = Path(ge=1900, le=2200),
	db: AsyncSession = Depends(get_db),
) -> FarmYearRead:
	service = FarmService(db)
	try:
		farm_year = await service.set_farm_year(farm_id, year, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return FarmYearRead.model_validate(farm_year)
