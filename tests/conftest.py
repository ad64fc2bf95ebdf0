"""Shared pytest fixtures — async test client, regulation store, record builders."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from nutrinorm.database import get_db
from nutrinorm.engine import (
	FarmContext,
	FertilizerApplication,
	FieldContext,
	LandUse,
	RegulationStore,
	load_regulation_store,
)
from nutrinorm.main import app
from nutrinorm.routes.norms import get_regulation_store


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()


@pytest.fixture(scope="session")
def store() -> RegulationStore:
	"""Built-in regulation tables, compiled once per test session."""
	return load_regulation_store()


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
async def client(
	fake_db_session: FakeAsyncSession,
	store: RegulationStore,
) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and DB/store dependencies mocked."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_regulation_store] = lambda: store
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()


# ── Record builders ─────────────────────────────────────────────────────────


def make_field(
	field_id: str = "field-1",
	*,
	area_ha: str | None = "2",
	soil_type: str | None = "zand_nwc",
	land_use: LandUse | None = LandUse.grassland,
	farm_id: str = "farm-1",
) -> FieldContext:
	return FieldContext(
		id=field_id,
		farm_id=farm_id,
		area_ha=Decimal(area_ha) if area_ha is not None else None,
		soil_type=soil_type,
		land_use=land_use,
	)


def make_farm(
	year: int = 2025,
	*,
	grazing: bool = True,
	derogation: bool = False,
	farm_id: str = "farm-1",
) -> FarmContext:
	return FarmContext(
		id=farm_id,
		grazing_intention={year: grazing},
		derogation={year: derogation},
	)


def make_application(
	application_id: str = "app-1",
	*,
	field_id: str | None = "field-1",
	applied_on: date = date(2025, 3, 15),
	fertilizer_code: str | None = "14",
	quantity: str = "10",
	nitrogen: str = "10",
	phosphate: str = "0",
	potassium: str = "0",
	on_farm_produced: bool | None = True,
) -> FertilizerApplication:
	return FertilizerApplication(
		id=application_id,
		field_id=field_id,
		applied_on=applied_on,
		fertilizer_code=fertilizer_code,
		quantity=Decimal(quantity),
		nitrogen_content=Decimal(nitrogen),
		phosphate_content=Decimal(phosphate),
		potassium_content=Decimal(potassium),
		on_farm_produced=on_farm_produced,
	)
