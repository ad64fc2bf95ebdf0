"""Dose, usage-norm and regulation-table routes."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from nutrinorm.database import get_db
from nutrinorm.engine import RegulationStore
from nutrinorm.schemas.norms import (
	DoseResponse,
	NormsResponse,
	RegulationsResponse,
	TimeframeQuery,
)
from nutrinorm.services.norms_service import NormsService, load_configured_store

router = APIRouter(tags=["norms"])


def get_regulation_store(request: Request) -> RegulationStore:
	"""Store loaded at startup, or the configured default when running without lifespan."""
	store = getattr(request.app.state, "regulation_store", None)
	if store is None:
		store = load_configured_store()
	return store


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="norms calculation failure")


def _timeframe_query(year: int, start: date | None, end: date | None) -> TimeframeQuery:
	try:
		return TimeframeQuery(year=year, start=start, end=end)
	except ValidationError as exc:
		raise HTTPException(
			status_code=422,
			detail=exc.errors(include_url=False, include_context=False),
		) from exc


@router.get("/farms/{farm_id}/dose", response_model=DoseResponse)
async def get_farm_dose(
	farm_id: uuid.UUID,
	year: int = Query(ge=1900, le=2200),
	start: date | None = Query(default=None),
	end: date | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
	store: RegulationStore = Depends(get_regulation_store),
) -> DoseResponse:
	query = _timeframe_query(year, start, end)
	service = NormsService(db, store)
	try:
		return await service.farm_dose(farm_id, query)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/fields/{field_id}/dose", response_model=DoseResponse)
async def get_field_dose(
	field_id: uuid.UUID,
	year: int = Query(ge=1900, le=2200),
	start: date | None = Query(default=None),
	end: date | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
	store: RegulationStore = Depends(get_regulation_store),
) -> DoseResponse:
	query = _timeframe_query(year, start, end)
	service = NormsService(db, store)
	try:
		return await service.field_dose(field_id, query)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/farms/{farm_id}/norms", response_model=NormsResponse)
async def get_farm_norms(
	farm_id: uuid.UUID,
	year: int = Query(ge=1900, le=2200),
	db: AsyncSession = Depends(get_db),
	store: RegulationStore = Depends(get_regulation_store),
) -> NormsResponse:
	service = NormsService(db, store)
	try:
		return await service.farm_norms(farm_id, year)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/regulations", response_model=RegulationsResponse)
async def list_regulations(
	db: AsyncSession = Depends(get_db),
	store: RegulationStore = Depends(get_regulation_store),
) -> RegulationsResponse:
	return NormsService(db, store).regulations()
