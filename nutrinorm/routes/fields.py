"""Fertilizer application routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from nutrinorm.database import get_db
from nutrinorm.schemas.farm import ApplicationCreate, ApplicationRead
from nutrinorm.services.farm_service import FarmService

router = APIRouter(prefix="/fields", tags=["fields"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="field service failure")


@router.post(
	"/{field_id}/applications",
	response_model=ApplicationRead,
	status_code=status.HTTP_201_CREATED,
)
async def add_application(
	field_id: uuid.UUID,
	payload: ApplicationCreate,
	db: AsyncSession = Depends(get_db),
) -> ApplicationRead:
	service = FarmService(db)
	try:
		application = await service.add_application(field_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ApplicationRead.model_validate(application)
