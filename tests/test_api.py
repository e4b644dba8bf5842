from __future__ import annotations
import asyncio

import httpx
import pytest

from app.api.dependencies import get_lookup_service
from app.main import app
from app.services.lookup_service import LookupConfig


@pytest.fixture
def use_service(make_service):
    def _use(reply, config: LookupConfig | None = None):
        service = make_service(reply, config=config)
        app.dependency_overrides[get_lookup_service] = lambda: service
        return service
    return _use


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_location_info_success(client, use_service):
    use_service([{"nombre_municipio": "Pasto", "nombre_departamento": "Nariño", "direccion": "Cra 42", "horario": "7-3"}])

    r = client.get("/api/location-info", params={"id": "52001"})
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "data": {
            "municipio": "Pasto",
            "departamento": "Nariño",
            "direccion": "Cra 42",
            "horario_atencion": "7-3",
            "servicios_sub": "",
            "servicios_cont": "",
        },
    }


def test_location_info_missing_id(client, use_service, upstream_calls):
    use_service([])
    r = client.get("/api/location-info")
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "ID is required", "reason": "InvalidInput"}
    assert upstream_calls == []


def test_location_info_invalid_id(client, use_service):
    use_service([])
    r = client.get("/api/location-info", params={"id": "abc"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid ID format. Only numbers are allowed"


def test_location_info_not_configured(client, use_service):
    use_service([], config=LookupConfig(base_url=None, api_key=None))
    r = client.get("/api/location-info", params={"id": "11001"})
    assert r.status_code == 500
    assert r.json()["message"] == "Server configuration error."


@pytest.mark.parametrize("reply,status,message", [
    ([], 404, "No data found in upstream response."),
    ({"success": True, "data": {"municipio": "Pasto"}}, 502, "Incomplete data received from server"),
    (httpx.Response(401, text="bad key"), 401, "Error from upstream: Unauthorized"),
    (httpx.Response(200, text="not json"), 500, "Internal server error"),
])
def test_location_info_failures(client, use_service, reply, status, message):
    use_service(reply)
    r = client.get("/api/location-info", params={"id": "52001"})
    assert r.status_code == status
    assert r.json()["success"] is False
    assert r.json()["message"] == message


def test_location_info_timeout(client, use_service):
    async def slow(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json=[])

    use_service(slow, config=LookupConfig(base_url="https://example.supabase.co", api_key="k", timeout_ms=50))
    r = client.get("/api/location-info", params={"id": "52001"})
    assert r.status_code == 504
    assert r.json() == {"success": False, "message": "Request timeout", "reason": "Timeout"}


def test_list_locations_with_viewport(client):
    body = client.get("/api/locations", params={"department": "Nariño"}).json()
    assert body["count"] == 2
    assert body["viewport"]["zoom"] == 8
    assert {p["id_dane"] for p in body["points"]} == {"52001", "52356"}
    assert body["points"][0]["nivel"] == "municipality"


def test_list_locations_default_viewport(client):
    body = client.get("/api/locations").json()
    assert body["count"] == 3
    assert body["viewport"] == {"center": [4.7110, -74.0721], "zoom": 5}


def test_departments_and_municipalities(client):
    assert client.get("/api/locations/departments").json() == {"departments": ["Cauca", "Nariño"]}

    body = client.get("/api/locations/departments/Nariño/municipalities").json()
    assert [m["nombre"] for m in body["municipalities"]] == ["Ipiales", "Pasto"]

    assert client.get("/api/locations/departments/Atlántico/municipalities").status_code == 404


def test_get_location_by_code(client):
    body = client.get("/api/locations/19001").json()
    assert body["nombre"] == "Popayán"
    assert body["departamento"] == "Cauca"
    assert client.get("/api/locations/00000").status_code == 404
