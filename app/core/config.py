"""
Configuración de la aplicación
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    # App
    PROJECT_NAME: str = "GeoExplorer"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    APP_NAME: str = "GEOEXPLORER"
    LOG_LEVEL: str = "INFO"

    # Supabase
    SUPABASE_URL: Optional[str] = None
    SUPABASE_API_KEY: Optional[str] = None
    SUPABASE_RPC_FUNCTION: str = "of_emssanar"
    SUPABASE_ID_PARAM: str = "id_dane"

    # Lookup
    LOOKUP_TIMEOUT_MS: int = 5000
    STRICT_ID_VALIDATION: bool = True

    # Dataset estático de ubicaciones
    LOCATIONS_FILE: str = "app/data/locations.json"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=True
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
