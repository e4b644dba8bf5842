from __future__ import annotations
import json
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from app.services.location_service import LocationIndex, parse_locations
from app.services.lookup_service import LocationLookupService, LookupConfig

# ---------- DATASET DE PRUEBA ----------

NESTED_DATASET = {
    "Nariño": [
        {"nombre_municipio": "Pasto", "id_dane": "52001", "latitud": 1.2, "longitud": -77.2},
        {"nombre_municipio": "Ipiales", "id_dane": "52356", "latitud": 0.8, "longitud": -77.6},
    ],
    "Cauca": [
        {"nombre_municipio": "Popayán", "id_dane": "19001", "latitud": 2.4, "longitud": -76.6},
    ],
}


@pytest.fixture
def nested_dataset() -> dict:
    return json.loads(json.dumps(NESTED_DATASET))


@pytest.fixture
def location_index(nested_dataset) -> LocationIndex:
    return parse_locations(nested_dataset)


@pytest.fixture
def tmp_locations_file(tmp_path: Path, nested_dataset) -> Path:
    out = tmp_path / "locations.json"
    out.write_text(json.dumps(nested_dataset, ensure_ascii=False), encoding="utf-8")
    return out


# ---------- UPSTREAM SIMULADO ----------

@pytest.fixture
def lookup_config() -> LookupConfig:
    return LookupConfig(
        base_url="https://example.supabase.co/",
        api_key="test-key",
        timeout_ms=5000,
    )


@pytest.fixture
def upstream_calls() -> list:
    return []


@pytest.fixture
def make_service(lookup_config, upstream_calls):
    """
    Fábrica de servicios con transporte simulado.
    `reply` es un httpx.Response, un payload JSON o un handler (sync/async).
    """
    def _make(reply, config: LookupConfig | None = None) -> LocationLookupService:
        def handler(request: httpx.Request):
            upstream_calls.append(request)
            if callable(reply):
                return reply(request)
            if isinstance(reply, httpx.Response):
                return reply
            return httpx.Response(200, json=reply)

        return LocationLookupService(config or lookup_config, transport=httpx.MockTransport(handler))
    return _make


# ---------- CLIENTE HTTP ----------

@pytest.fixture
def client(location_index):
    from app.main import app
    from app.api.dependencies import get_locations

    app.dependency_overrides[get_locations] = lambda: location_index
    yield TestClient(app)
    app.dependency_overrides.clear()
