# app/api/v1/location_info.py
"""
Endpoint de detalle de ubicación (proxy al RPC de Supabase)
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.api.dependencies import get_lookup_service
from app.services.lookup_service import LocationLookupService


router = APIRouter(prefix="/location-info", tags=["Location info"])


@router.get("")
async def get_location_info(
    id: Optional[str] = Query(None, description="Código DANE de la ubicación"),
    service: LocationLookupService = Depends(get_lookup_service)
):
    """
    Devuelve dirección, horario y servicios del punto de atención.

    - 200: `{success: true, data: {...}}`
    - 400/404/500/502/504: `{success: false, message, reason}`
    """
    result = await service.lookup(id)
    return JSONResponse(status_code=result.status_code, content=result.to_response_body())
