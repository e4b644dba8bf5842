# app/services/location_service.py
"""
Dataset estático de ubicaciones (códigos DANE) y estado de selección
departamento -> municipio -> viewport del mapa.

Formatos soportados del JSON:
  - anidado: {"<departamento>": [{id_dane, nombre_municipio, latitud, longitud}, ...]}
  - plano:   [{id_dane, nombre, latitud, longitud, departamento?}, ...]
"""
from __future__ import annotations

import json
import logging
import unicodedata
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from app.core.config import get_settings
from app.schemas.location import LocationLevel, LocationPoint, Viewport

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent.parent

DEFAULT_CENTER: Tuple[float, float] = (4.7110, -74.0721)
DEFAULT_ZOOM = 5
DEPARTMENT_ZOOM = 8
MUNICIPALITY_ZOOM = 12


class DatasetError(Exception):
    """No se pudo leer o interpretar el dataset de ubicaciones"""


def _sort_key(s: Optional[str]) -> str:
    s = unicodedata.normalize("NFKD", s or "")
    return "".join(c for c in s if not unicodedata.combining(c)).casefold()


class LocationIndex:
    """Colección inmutable de puntos con acceso por código"""

    def __init__(self, points: Iterable[LocationPoint] = ()):
        self._points: Tuple[LocationPoint, ...] = tuple(points)
        self._by_code: Dict[str, LocationPoint] = {p.code: p for p in self._points}

    @property
    def points(self) -> Tuple[LocationPoint, ...]:
        return self._points

    def __len__(self) -> int:
        return len(self._points)

    def find(self, code: Optional[str]) -> Optional[LocationPoint]:
        if not code:
            return None
        return self._by_code.get(str(code).strip())

    def departments(self) -> List[str]:
        names = {p.department for p in self._points if p.department}
        return sorted(names, key=_sort_key)

    def municipalities(self, department: str) -> List[LocationPoint]:
        munis = [
            p for p in self._points
            if p.department == department and p.level is not LocationLevel.DEPARTMENT
        ]
        return sorted(munis, key=lambda p: _sort_key(p.name))


# ============================================
# CARGA
# ============================================

def _nested_records(raw: Dict[str, Any]) -> Iterable[Dict[str, Any]]:
    for department, entries in raw.items():
        if not isinstance(entries, list):
            raise DatasetError(f"Departamento '{department}' no contiene una lista")
        for entry in entries:
            if not isinstance(entry, dict):
                raise DatasetError(f"Registro inválido en '{department}': {entry!r}")
            yield {
                "id_dane": entry.get("id_dane"),
                "nombre": entry.get("nombre_municipio") or entry.get("nombre"),
                "latitud": entry.get("latitud"),
                "longitud": entry.get("longitud"),
                "departamento": department,
            }


def _flat_records(raw: List[Any]) -> Iterable[Dict[str, Any]]:
    for entry in raw:
        if not isinstance(entry, dict):
            raise DatasetError(f"Registro inválido en dataset plano: {entry!r}")
        record = dict(entry)
        record.setdefault("nombre", entry.get("nombre_municipio"))
        yield record


def _resolve_departments(points: List[LocationPoint]) -> List[LocationPoint]:
    """Completa el departamento de los municipios usando el prefijo de 2 dígitos"""
    dept_names = {
        p.code.zfill(2): p.name
        for p in points
        if p.level is LocationLevel.DEPARTMENT
    }
    resolved = []
    for p in points:
        if p.department:
            resolved.append(p)
        elif p.level is LocationLevel.DEPARTMENT:
            resolved.append(p.model_copy(update={"department": p.name}))
        elif p.parent_code in dept_names:
            resolved.append(p.model_copy(update={"department": dept_names[p.parent_code]}))
        else:
            resolved.append(p)
    return resolved


def parse_locations(raw: Any) -> LocationIndex:
    if isinstance(raw, dict):
        records = _nested_records(raw)
    elif isinstance(raw, list):
        records = _flat_records(raw)
    else:
        raise DatasetError(f"Formato de dataset no soportado: {type(raw).__name__}")

    points: List[LocationPoint] = []
    skipped = 0
    for record in records:
        try:
            points.append(LocationPoint.model_validate(record))
        except ValidationError as e:
            skipped += 1
            logger.warning(f"[Locations] Registro omitido {record.get('id_dane')!r}: {e.error_count()} errores")

    if skipped:
        logger.warning(f"[Locations] {skipped} registros omitidos")

    return LocationIndex(_resolve_departments(points))


def load_locations(path: str | Path) -> LocationIndex:
    path = Path(path)
    if not path.is_absolute():
        path = BASE_DIR / path

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DatasetError(f"No se pudo cargar {path}: {e}") from e

    index = parse_locations(raw)
    logger.info(f"[Locations] {len(index)} ubicaciones cargadas desde {path}")
    return index


@lru_cache(maxsize=1)
def get_location_index() -> LocationIndex:
    """Dataset cargado una sola vez por proceso"""
    try:
        return load_locations(get_settings().LOCATIONS_FILE)
    except DatasetError as e:
        logger.error(f"[Locations] {e}")
        return LocationIndex()


# ============================================
# SELECCIÓN (funciones puras)
# ============================================

def filter_points(
    index: LocationIndex,
    department: Optional[str] = None,
    municipality_code: Optional[str] = None,
) -> List[LocationPoint]:
    if municipality_code:
        point = index.find(municipality_code)
        return [point] if point is not None else []
    if department:
        return [p for p in index.points if p.department == department]
    return list(index.points)


def compute_viewport(
    index: LocationIndex,
    department: Optional[str] = None,
    municipality_code: Optional[str] = None,
) -> Viewport:
    active = index.find(municipality_code)
    if active is not None:
        return Viewport(center=(active.latitude, active.longitude), zoom=MUNICIPALITY_ZOOM)

    if department:
        points = filter_points(index, department=department)
        if points:
            lat = sum(p.latitude for p in points) / len(points)
            lon = sum(p.longitude for p in points) / len(points)
            return Viewport(center=(lat, lon), zoom=DEPARTMENT_ZOOM)

    return Viewport(center=DEFAULT_CENTER, zoom=DEFAULT_ZOOM)
