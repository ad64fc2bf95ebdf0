from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from nutrinorm.models.enums import LandUseEnum
from nutrinorm.schemas.farm import ApplicationCreate, FarmYearUpsert, FieldCreate
from nutrinorm.services.farm_service import FarmService


def _field_obj(farm_id: UUID) -> SimpleNamespace:
    now = datetime.now(UTC)
    return SimpleNamespace(
        id=uuid4(),
        farm_id=farm_id,
        name="Achter de schuur",
        area_ha=Decimal("2.5000"),
        soil_type="klei",
        land_use=LandUseEnum.grassland,
        created_at=now,
        updated_at=now,
    )


def _farm_obj() -> SimpleNamespace:
    now = datetime.now(UTC)
    farm_id = uuid4()
    return SimpleNamespace(
        id=farm_id,
        name="Hoeve De Linde",
        business_id="123456789",
        created_at=now,
        updated_at=now,
        fields=[_field_obj(farm_id)],
        years=[SimpleNamespace(year=2025, grazing_intention=True, derogation=False)],
    )


@pytest.mark.asyncio
async def test_create_and_get_farm(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    farm = _farm_obj()

    async def fake_create(self: FarmService, payload: object) -> object:
        return farm

    async def fake_get(self: FarmService, farm_id: object) -> object:
        return farm

    monkeypatch.setattr(FarmService, "create_farm", fake_create)
    monkeypatch.setattr(FarmService, "get_farm", fake_get)

    response = await client.post(
        "/api/v1/farms",
        json={"name": "Hoeve De Linde", "business_id": "123456789"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Hoeve De Linde"
    assert body["fields"][0]["area_ha"] == 2.5
    assert body["years"] == [{"year": 2025, "grazing_intention": True, "derogation": False}]


@pytest.mark.asyncio
async def test_list_farms(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    farm = _farm_obj()

    async def fake_list(self: FarmService) -> list[object]:
        return [farm]

    monkeypatch.setattr(FarmService, "list_farms", fake_list)

    response = await client.get("/api/v1/farms")

    assert response.status_code == 200
    assert len(response.json()["items"]) == 1


@pytest.mark.asyncio
async def test_get_missing_farm_is_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_get(self: FarmService, farm_id: object) -> object:
        raise LookupError(f"Farm {farm_id} not found")

    monkeypatch.setattr(FarmService, "get_farm", fake_get)

    response = await client.get(f"/api/v1/farms/{uuid4()}")

    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


@pytest.mark.asyncio
async def test_add_field(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    farm_id = uuid4()
    field = _field_obj(farm_id)
    captured: dict[str, FieldCreate] = {}

    async def fake_add(self: FarmService, target: object, payload: FieldCreate) -> object:
        captured["payload"] = payload
        return field

    monkeypatch.setattr(FarmService, "add_field", fake_add)

    response = await client.post(
        f"/api/v1/farms/{farm_id}/fields",
        json={"name": "Achter de schuur", "area_ha": "2.5", "soil_type": "klei", "land_use": "grassland"},
    )

    assert response.status_code == 201
    assert response.json()["soil_type"] == "klei"
    assert captured["payload"].area_ha == Decimal("2.5")


@pytest.mark.asyncio
async def test_add_field_rejects_unknown_soil(client: AsyncClient) -> None:
    response = await client.post(
        f"/api/v1/farms/{uuid4()}/fields",
        json={"name": "Perceel", "area_ha": 1, "soil_type": "basalt"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_add_field_rejects_negative_area(client: AsyncClient) -> None:
    response = await client.post(
        f"/api/v1/farms/{uuid4()}/fields",
        json={"name": "Perceel", "area_ha": -1},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_set_farm_year(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    async def fake_set(self: FarmService, farm_id: object, year: int, payload: FarmYearUpsert) -> object:
        captured["year"] = year
        return SimpleNamespace(year=year, grazing_intention=payload.grazing_intention, derogation=payload.derogation)

    monkeypatch.setattr(FarmService, "set_farm_year", fake_set)

    response = await client.put(
        f"/api/v1/farms/{uuid4()}/years/2025",
        json={"grazing_intention": True, "derogation": True},
    )

    assert response.status_code == 200
    assert captured["year"] == 2025
    assert response.json() == {"year": 2025, "grazing_intention": True, "derogation": True}


@pytest.mark.asyncio
async def test_add_application(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    field_id = uuid4()

    async def fake_add(self: FarmService, target: UUID, payload: ApplicationCreate) -> object:
        return SimpleNamespace(
            id=uuid4(),
            field_id=target,
            created_at=datetime.now(UTC),
            **payload.model_dump(),
        )

    monkeypatch.setattr(FarmService, "add_application", fake_add)

    response = await client.post(
        f"/api/v1/fields/{field_id}/applications",
        json={
            "applied_on": "2025-03-15",
            "fertilizer_code": "14",
            "quantity": "25",
            "nitrogen_content": "4.2",
            "on_farm_produced": True,
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["field_id"] == str(field_id)
    assert body["applied_on"] == date(2025, 3, 15).isoformat()
    assert body["nitrogen_content"] == 4.2
    assert body["phosphate_content"] == 0.0


@pytest.mark.asyncio
async def test_add_application_to_missing_field_is_404(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def fake_add(self: FarmService, target: UUID, payload: ApplicationCreate) -> object:
        raise LookupError(f"Field {target} not found")

    monkeypatch.setattr(FarmService, "add_application", fake_add)

    response = await client.post(
        f"/api/v1/fields/{uuid4()}/applications",
        json={"applied_on": "2025-03-15", "quantity": 1},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_add_application_rejects_negative_quantity(client: AsyncClient) -> None:
    response = await client.post(
        f"/api/v1/fields/{uuid4()}/applications",
        json={"applied_on": "2025-03-15", "quantity": -5},
    )
    assert response.status_code == 422
