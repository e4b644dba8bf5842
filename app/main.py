# app/main.py
"""
GeoExplorer - Consulta de puntos de atención por municipio
Main Application Entry Point
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dotenv import load_dotenv
load_dotenv()

from app.core.config import settings
from app.services.location_service import get_location_index


# ========================================
# IMPORTAR ROUTERS API
# ========================================
from app.api.v1 import (
    location_info,
    locations
)

# ========================================
# LOGGING
# ========================================
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)
logger = logging.getLogger("app")


# ========================================
# LIFESPAN EVENT
# ========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup y shutdown events"""

    # ===== STARTUP =====
    logger.info("=" * 60)
    logger.info(f"{settings.APP_NAME} - SERVIDOR INICIADO")
    logger.info("=" * 60)

    index = get_location_index()
    logger.info(f"Dataset de ubicaciones: {len(index)} puntos, {len(index.departments())} departamentos")

    if not (settings.SUPABASE_URL and settings.SUPABASE_API_KEY):
        logger.warning("SUPABASE_URL / SUPABASE_API_KEY no configurados: /api/location-info responderá 500")

    # Listar rutas registradas
    routes_api = []
    for route in app.routes:
        if hasattr(route, 'methods') and hasattr(route, 'path'):
            methods = ', '.join(sorted(route.methods - {'HEAD', 'OPTIONS'}))
            if methods and route.path.startswith('/api/'):
                routes_api.append(f"  {methods:12} {route.path}")

    logger.info("RUTAS API:")
    for route in sorted(set(routes_api)):
        logger.info(route)

    logger.info(f"Servidor listo en: http://0.0.0.0:{os.getenv('PORT', '8080')}")

    yield

    # ===== SHUTDOWN =====
    logger.info("Servidor detenido")


# ========================================
# CREAR APP
# ========================================
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan
)


# ========================================
# MIDDLEWARE - CORS
# ========================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========================================
# ROUTERS API (prefix /api)
# ========================================
app.include_router(location_info.router, prefix="/api")
app.include_router(locations.router, prefix="/api")


@app.get("/health")
async def health():
    """Health check"""
    return {"status": "healthy", "app": "geoexplorer"}
