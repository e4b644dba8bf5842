# app/api/v1/locations.py
"""
Endpoints del dataset de ubicaciones (departamentos, municipios, viewport)
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_locations
from app.services.location_service import LocationIndex, compute_viewport, filter_points


router = APIRouter(prefix="/locations", tags=["Locations"])


def _point_out(point) -> dict:
    data = point.model_dump(by_alias=True)
    data["nivel"] = point.level.value
    return data


@router.get("")
async def list_locations(
    department: Optional[str] = Query(None, description="Nombre del departamento"),
    municipality: Optional[str] = Query(None, description="Código DANE del municipio"),
    index: LocationIndex = Depends(get_locations)
):
    """Puntos filtrados por la selección actual y el viewport del mapa."""
    points = filter_points(index, department=department, municipality_code=municipality)
    viewport = compute_viewport(index, department=department, municipality_code=municipality)

    return {
        "count": len(points),
        "points": [_point_out(p) for p in points],
        "viewport": viewport.model_dump()
    }


@router.get("/departments")
async def list_departments(index: LocationIndex = Depends(get_locations)):
    """Lista todos los departamentos ordenados."""
    return {"departments": index.departments()}


@router.get("/departments/{department}/municipalities")
async def list_municipalities(
    department: str,
    index: LocationIndex = Depends(get_locations)
):
    """Lista los municipios de un departamento."""
    if department not in index.departments():
        raise HTTPException(status_code=404, detail="Departamento no encontrado")

    return {
        "department": department,
        "municipalities": [_point_out(p) for p in index.municipalities(department)]
    }


@router.get("/{code}")
async def get_location(code: str, index: LocationIndex = Depends(get_locations)):
    point = index.find(code)
    if point is None:
        raise HTTPException(status_code=404, detail="Ubicación no encontrada")
    return _point_out(point)
