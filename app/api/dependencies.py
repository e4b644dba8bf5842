# app/api/dependencies.py
from fastapi import Depends

from app.core.config import Settings, get_settings
from app.services.location_service import LocationIndex, get_location_index
from app.services.lookup_service import LocationLookupService, LookupConfig


def get_lookup_service(settings: Settings = Depends(get_settings)) -> LocationLookupService:
    """Servicio de consulta con la configuración vigente"""
    return LocationLookupService(LookupConfig.from_settings(settings))


def get_locations() -> LocationIndex:
    return get_location_index()
