from __future__ import annotations

import uuid
from datetime import date

import pytest
from httpx import AsyncClient

from conftest import make_application, make_farm, make_field
from nutrinorm.engine import LandUse, Timeframe
from nutrinorm.services.farm_data_service import FarmDataService

FARM_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
FIELD_A = uuid.UUID("33333333-3333-3333-3333-333333333333")
FIELD_B = uuid.UUID("44444444-4444-4444-4444-444444444444")


@pytest.fixture
def farm_data(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
	"""Replace the database reads with a two-field grazing farm."""
	fields = [
		make_field(str(FIELD_A), farm_id=str(FARM_ID), area_ha="2"),
		make_field(str(FIELD_B), farm_id=str(FARM_ID), area_ha="3", soil_type="dal"),
	]
	applications = [
		make_application(str(uuid.uuid4()), field_id=str(FIELD_A)),
		make_application(str(uuid.uuid4()), field_id=str(FIELD_B), applied_on=date(2025, 6, 1)),
	]
	seen: dict[str, object] = {}

	async def fake_field_contexts(self: FarmDataService, farm_id: uuid.UUID):
		if farm_id != FARM_ID:
			raise LookupError(f"Farm {farm_id} not found")
		return fields

	async def fake_field_context(self: FarmDataService, field_id: uuid.UUID):
		for field in fields:
			if field.id == str(field_id):
				return field
		raise LookupError(f"Field {field_id} not found")

	async def fake_farm_context(self: FarmDataService, farm_id: uuid.UUID, year: int):
		return make_farm(year, grazing=True, farm_id=str(farm_id))

	async def fake_applications(
		self: FarmDataService,
		timeframe: Timeframe,
		*,
		farm_id: uuid.UUID | None = None,
		field_id: uuid.UUID | None = None,
	):
		seen["timeframe"] = timeframe
		return [
			item
			for item in applications
			if timeframe.contains(item.applied_on)
			and (field_id is None or item.field_id == str(field_id))
		]

	monkeypatch.setattr(FarmDataService, "get_field_contexts", fake_field_contexts)
	monkeypatch.setattr(FarmDataService, "get_field_context", fake_field_context)
	monkeypatch.setattr(FarmDataService, "get_farm_context", fake_farm_context)
	monkeypatch.setattr(FarmDataService, "get_fertilizer_applications", fake_applications)
	return seen


@pytest.mark.asyncio
async def test_farm_dose(client: AsyncClient, farm_data: dict[str, object]) -> None:
	response = await client.get(f"/api/v1/farms/{FARM_ID}/dose", params={"year": 2025})

	assert response.status_code == 200
	body = response.json()
	assert body["start"] == "2025-01-01"
	assert body["end"] == "2025-12-31"
	assert body["farm"]["area_ha"] == 5.0
	assert body["farm"]["nitrogen"]["total_kg"] == 200.0
	assert body["farm"]["nitrogen"]["working_kg"] == 90.0
	assert body["farm"]["manure_nitrogen"]["working_kg"] == 90.0

	by_field = {item["field_id"]: item for item in body["fields"]}
	assert by_field[str(FIELD_A)]["nitrogen"]["working_kg_per_ha"] == 22.5
	assert len(body["applications"]) == 2
	assert body["applications"][0]["explanation"].startswith("Werkingscoefficient: 45%")
	assert body["issues"] == []


@pytest.mark.asyncio
async def test_farm_dose_custom_window(client: AsyncClient, farm_data: dict[str, object]) -> None:
	response = await client.get(
		f"/api/v1/farms/{FARM_ID}/dose",
		params={"year": 2025, "start": "2025-03-01", "end": "2025-03-31"},
	)

	assert response.status_code == 200
	assert farm_data["timeframe"] == Timeframe(start=date(2025, 3, 1), end=date(2025, 3, 31))
	assert response.json()["farm"]["nitrogen"]["total_kg"] == 100.0


@pytest.mark.asyncio
async def test_dose_window_needs_both_bounds(client: AsyncClient, farm_data: dict[str, object]) -> None:
	response = await client.get(
		f"/api/v1/farms/{FARM_ID}/dose",
		params={"year": 2025, "start": "2025-03-01"},
	)
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_dose_window_outside_year_is_rejected(
	client: AsyncClient, farm_data: dict[str, object]
) -> None:
	response = await client.get(
		f"/api/v1/farms/{FARM_ID}/dose",
		params={"year": 2025, "start": "2024-03-01", "end": "2024-03-31"},
	)
	assert response.status_code == 422
	assert "timeframe" not in farm_data


@pytest.mark.asyncio
async def test_field_dose(client: AsyncClient, farm_data: dict[str, object]) -> None:
	response = await client.get(f"/api/v1/fields/{FIELD_B}/dose", params={"year": 2025})

	assert response.status_code == 200
	body = response.json()
	assert body["farm_id"] == str(FARM_ID)
	assert [item["field_id"] for item in body["fields"]] == [str(FIELD_B)]
	assert body["farm"]["nitrogen"]["working_kg"] == 45.0


@pytest.mark.asyncio
async def test_farm_norms_excludes_undetermined_ceiling(
	client: AsyncClient, farm_data: dict[str, object]
) -> None:
	response = await client.get(f"/api/v1/farms/{FARM_ID}/norms", params={"year": 2025})

	assert response.status_code == 200
	body = response.json()
	nitrogen = body["farm"]["nitrogen"]
	assert nitrogen["ceiling_kg"] == 500.0
	assert nitrogen["filling_kg"] == 90.0
	assert nitrogen["compared_filling_kg"] == 45.0
	assert nitrogen["percentage_filled"] == 9.0
	assert body["farm"]["excluded_field_ids"] == {"nitrogen": [str(FIELD_B)]}
	assert body["farm"]["manure"]["ceiling_kg"] == 850.0

	by_field = {item["field_id"]: item for item in body["fields"]}
	assert by_field[str(FIELD_B)]["nitrogen"]["ceiling_kg"] is None
	assert by_field[str(FIELD_B)]["nitrogen"]["percentage_filled"] is None
	assert [issue["kind"] for issue in body["issues"]] == ["undetermined_ceiling"]


@pytest.mark.asyncio
async def test_unknown_farm_is_404(client: AsyncClient, farm_data: dict[str, object]) -> None:
	response = await client.get(f"/api/v1/farms/{uuid.uuid4()}/norms", params={"year": 2025})
	assert response.status_code == 404


@pytest.mark.asyncio
async def test_unknown_field_is_404(client: AsyncClient, farm_data: dict[str, object]) -> None:
	response = await client.get(f"/api/v1/fields/{uuid.uuid4()}/dose", params={"year": 2025})
	assert response.status_code == 404


@pytest.mark.asyncio
async def test_unsupported_year_is_404(client: AsyncClient, farm_data: dict[str, object]) -> None:
	response = await client.get(f"/api/v1/farms/{FARM_ID}/norms", params={"year": 2019})

	assert response.status_code == 404
	assert "2019" in response.json()["detail"]


@pytest.mark.asyncio
async def test_year_is_required(client: AsyncClient, farm_data: dict[str, object]) -> None:
	response = await client.get(f"/api/v1/farms/{FARM_ID}/dose")
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_regulations(client: AsyncClient) -> None:
	response = await client.get("/api/v1/regulations")

	assert response.status_code == 200
	years = {item["year"]: item for item in response.json()["years"]}
	assert set(years) == {2025, 2026}
	assert years[2025]["manure_rules"] == 2
	assert years[2026]["manure_rules"] == 1
	assert years[2025]["coefficient_rules"] > 0


@pytest.mark.asyncio
async def test_health_carries_request_id(client: AsyncClient) -> None:
	response = await client.get("/health", headers={"x-request-id": "req-123"})

	assert response.status_code == 200
	assert response.json()["service"] == "nutrinorm"
	assert response.headers["x-request-id"] == "req-123"


@pytest.mark.asyncio
async def test_arable_field_uses_arable_ceiling(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch, farm_data: dict[str, object]
) -> None:
	arable = make_field(str(FIELD_A), farm_id=str(FARM_ID), land_use=LandUse.arable, soil_type="klei")

	async def only_arable(self: FarmDataService, farm_id: uuid.UUID):
		return [arable]

	monkeypatch.setattr(FarmDataService, "get_field_contexts", only_arable)
	response = await client.get(f"/api/v1/farms/{FARM_ID}/norms", params={"year": 2025})

	body = response.json()
	assert body["farm"]["nitrogen"]["ceiling_kg"] == 370.0
	assert body["farm"]["phosphate"]["ceiling_kg"] == 140.0
