# app/services/lookup_service.py
"""
Servicio de consulta de puntos de atención por código DANE.

Proxy de lectura hacia una función RPC de Supabase:
  1. Validar el código recibido
  2. Verificar la configuración (URL + API key)
  3. POST al RPC con timeout acotado
  4. Detectar la forma de la respuesta (envelope, lista o registro)
  5. Normalizar nombres de campos al contrato estable (LocationDetail)
  6. Validar campos obligatorios

Toda salida es un LookupResult; ningún error escapa como excepción.
"""
import asyncio
import httpx
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.config import Settings
from app.schemas.location import LocationDetail, LookupFailure, LookupResult

logger = logging.getLogger(__name__)

NUMERIC_ID = re.compile(r"[0-9]+")

# Campo canónico -> nombres observados en las variantes del RPC
FIELD_ALIASES = {
    "municipality": ("municipio", "nombre_municipio"),
    "department": ("departamento", "nombre_departamento"),
    "address": ("direccion",),
    "hours": ("horario_atencion", "horario"),
    "subsidized_services": ("servicios_sub", "servicios_subsidiados"),
    "contributory_services": ("servicios_cont", "servicios_contributivos"),
}

REQUIRED_FIELDS = ("municipality", "department", "address")


class RecordNotFound(Exception):
    """El RPC respondió, pero sin registro para el código"""


class UpstreamShapeError(Exception):
    """El RPC devolvió algo que no es envelope, lista ni registro"""


@dataclass(frozen=True)
class LookupConfig:
    """Configuración explícita del proxy (se construye desde Settings)"""
    base_url: Optional[str]
    api_key: Optional[str]
    timeout_ms: int = 5000
    rpc_function: str = "of_emssanar"
    id_param: str = "id_dane"
    strict: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "LookupConfig":
        return cls(
            base_url=settings.SUPABASE_URL,
            api_key=settings.SUPABASE_API_KEY,
            timeout_ms=settings.LOOKUP_TIMEOUT_MS,
            rpc_function=settings.SUPABASE_RPC_FUNCTION,
            id_param=settings.SUPABASE_ID_PARAM,
            strict=settings.STRICT_ID_VALIDATION,
        )

    def is_configured(self) -> bool:
        return bool(self.base_url and self.base_url.strip() and self.api_key and self.api_key.strip())

    @property
    def rpc_url(self) -> str:
        base = self.base_url.strip().rstrip("/")
        return f"{base}/rest/v1/rpc/{self.rpc_function}"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


# ============================================
# NORMALIZACIÓN (funciones puras)
# ============================================

def _first_record(items: list) -> Dict[str, Any]:
    if not items:
        raise RecordNotFound()
    first = items[0]
    if not isinstance(first, dict):
        raise UpstreamShapeError(f"elemento de tipo {type(first).__name__}")
    return first


def extract_record(payload: Any) -> Dict[str, Any]:
    """
    Obtiene el registro crudo según la forma de la respuesta:
    - envelope {success, data?, message?}
    - lista de 0..n registros (se toma el primero)
    - registro suelto
    """
    if payload is None:
        raise RecordNotFound()

    if isinstance(payload, list):
        return _first_record(payload)

    if isinstance(payload, dict):
        if "success" not in payload:
            return payload

        data = payload.get("data")
        if not payload.get("success") or data is None:
            message = payload.get("message")
            raise RecordNotFound(str(message) if message else "")
        if isinstance(data, list):
            return _first_record(data)
        if isinstance(data, dict):
            return data
        raise UpstreamShapeError(f"data de tipo {type(data).__name__}")

    raise UpstreamShapeError(f"respuesta de tipo {type(payload).__name__}")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_record(record: Dict[str, Any]) -> Dict[str, str]:
    """Mapea cualquier variante de nombres al contrato canónico; ausentes -> ''"""
    normalized = {}
    for field, aliases in FIELD_ALIASES.items():
        value = next(
            (record[key] for key in aliases if _text(record.get(key))),
            None
        )
        normalized[field] = _text(value)
    return normalized


def build_result(payload: Any) -> LookupResult:
    """Convierte la respuesta parseada del RPC en un LookupResult"""
    try:
        record = extract_record(payload)
    except RecordNotFound as e:
        message = str(e) or None
        logger.warning(f"[Lookup] RPC sin datos: {message or '(sin mensaje)'}")
        return LookupResult.fail(LookupFailure.NOT_FOUND, message=message)

    fields = normalize_record(record)
    missing = [field for field in REQUIRED_FIELDS if not fields[field]]
    if missing:
        logger.error(f"[Lookup] Campos obligatorios ausentes: {missing} | recibido={record}")
        return LookupResult.fail(LookupFailure.INCOMPLETE_UPSTREAM_DATA)

    return LookupResult.ok(LocationDetail(**fields))


# ============================================
# SERVICIO
# ============================================

class LocationLookupService:
    """Consulta el detalle de una ubicación en el RPC de Supabase"""

    def __init__(self, config: LookupConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    def validate_code(self, code: str) -> Optional[LookupResult]:
        """Devuelve un fallo InvalidInput o None si el código es aceptable"""
        if not code.strip():
            return LookupResult.fail(LookupFailure.INVALID_INPUT)
        if self.config.strict and not NUMERIC_ID.fullmatch(code):
            return LookupResult.fail(
                LookupFailure.INVALID_INPUT,
                message="Invalid ID format. Only numbers are allowed"
            )
        return None

    async def lookup(self, code: Optional[str]) -> LookupResult:
        code = code or ""

        invalid = self.validate_code(code)
        if invalid is not None:
            return invalid
        code = code.strip()

        if not self.config.is_configured():
            logger.error("[Lookup] Configuración de Supabase ausente (SUPABASE_URL / SUPABASE_API_KEY)")
            return LookupResult.fail(LookupFailure.CONFIGURATION_ERROR)

        try:
            return await asyncio.wait_for(self._fetch(code), timeout=self.config.timeout_seconds)

        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.error(f"[Lookup] Timeout consultando RPC: id={code} timeout={self.config.timeout_ms}ms")
            return LookupResult.fail(LookupFailure.TIMEOUT)
        except httpx.RequestError as e:
            logger.error(f"[Lookup] Error de conexión: {str(e)}")
            return LookupResult.fail(
                LookupFailure.UPSTREAM_ERROR,
                message="Could not connect to upstream service"
            )
        except UpstreamShapeError as e:
            logger.error(f"[Lookup] Forma de respuesta inesperada: {str(e)}")
            return LookupResult.fail(LookupFailure.INTERNAL_ERROR)
        except Exception as e:
            logger.exception(f"[Lookup] Error inesperado: id={code} error={str(e)}")
            return LookupResult.fail(LookupFailure.INTERNAL_ERROR)

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "apikey": self.config.api_key,
            "Authorization": f"Bearer {self.config.api_key}",
        }

    async def _fetch(self, code: str) -> LookupResult:
        payload = {self.config.id_param: code}
        api_url = self.config.rpc_url
        logger.info(f"[Lookup] POST {api_url} body={payload}")

        async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport) as client:
            response = await client.post(api_url, json=payload, headers=self._headers())

        logger.info(f"[Lookup] Respuesta: status={response.status_code}")

        if not response.is_success:
            body_preview = response.text[:500] if response.text else "(vacío)"
            logger.error(
                f"[Lookup] Error del RPC: status={response.status_code} "
                f"statusText={response.reason_phrase} body={body_preview}"
            )
            status_code = response.status_code if 400 <= response.status_code < 600 else 502
            return LookupResult.fail(
                LookupFailure.UPSTREAM_ERROR,
                message=f"Error from upstream: {response.reason_phrase}",
                status_code=status_code
            )

        if response.status_code == 204 or not response.content:
            logger.warning(f"[Lookup] RPC sin contenido para id={code}")
            return LookupResult.fail(LookupFailure.NOT_FOUND)

        try:
            data = response.json()
        except ValueError:
            body_preview = response.text[:500]
            logger.error(f"[Lookup] Respuesta no-JSON: {body_preview}")
            return LookupResult.fail(LookupFailure.INTERNAL_ERROR)

        logger.debug(f"[Lookup] Respuesta cruda: {data}")
        return build_result(data)
