# app/schemas/location.py
"""
Schemas de ubicaciones: puntos del dataset estático, detalle devuelto por el
RPC de Supabase y resultado etiquetado de una consulta.
"""
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEPARTMENT_CODE_MAX_LENGTH = 2
MUNICIPALITY_CODE_LENGTH = 5


class LocationLevel(str, Enum):
    DEPARTMENT = "department"
    MUNICIPALITY = "municipality"
    UNKNOWN = "unknown"


class LocationPoint(BaseModel):
    """
    Unidad geográfica identificada por código DANE.

    La longitud del código define el nivel: 1-2 caracteres = departamento,
    5 caracteres = municipio (su departamento son los 2 primeros).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    code: str = Field(..., min_length=1, alias="id_dane")
    name: str = Field(..., alias="nombre")
    latitude: float = Field(..., ge=-90, le=90, alias="latitud")
    longitude: float = Field(..., ge=-180, le=180, alias="longitud")
    department: Optional[str] = Field(default=None, alias="departamento")

    @field_validator("code", mode="before")
    @classmethod
    def _norm_code(cls, v):
        if v is None:
            return v
        return str(v).strip()

    @field_validator("name", mode="before")
    @classmethod
    def _norm_name(cls, v):
        return "" if v is None else str(v).strip()

    @property
    def level(self) -> LocationLevel:
        if len(self.code) <= DEPARTMENT_CODE_MAX_LENGTH:
            return LocationLevel.DEPARTMENT
        if len(self.code) == MUNICIPALITY_CODE_LENGTH:
            return LocationLevel.MUNICIPALITY
        return LocationLevel.UNKNOWN

    @property
    def parent_code(self) -> Optional[str]:
        if self.level is LocationLevel.MUNICIPALITY:
            return self.code[:DEPARTMENT_CODE_MAX_LENGTH]
        return None


class Viewport(BaseModel):
    model_config = ConfigDict(frozen=True)

    center: Tuple[float, float]
    zoom: int


class LocationDetail(BaseModel):
    """Detalle normalizado de un punto de atención"""
    model_config = ConfigDict(populate_by_name=True)

    municipality: str = Field(..., alias="municipio")
    department: str = Field(..., alias="departamento")
    address: str = Field(..., alias="direccion")
    hours: str = Field("", alias="horario_atencion")
    subsidized_services: str = Field("", alias="servicios_sub")
    contributory_services: str = Field("", alias="servicios_cont")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class LookupFailure(str, Enum):
    INVALID_INPUT = "InvalidInput"
    CONFIGURATION_ERROR = "ConfigurationError"
    TIMEOUT = "Timeout"
    UPSTREAM_ERROR = "UpstreamError"
    NOT_FOUND = "NotFound"
    INCOMPLETE_UPSTREAM_DATA = "IncompleteUpstreamData"
    INTERNAL_ERROR = "InternalError"

    @property
    def status_code(self) -> int:
        return FAILURE_STATUS[self]

    @property
    def default_message(self) -> str:
        return FAILURE_MESSAGES[self]


FAILURE_STATUS = {
    LookupFailure.INVALID_INPUT: 400,
    LookupFailure.CONFIGURATION_ERROR: 500,
    LookupFailure.TIMEOUT: 504,
    LookupFailure.UPSTREAM_ERROR: 502,
    LookupFailure.NOT_FOUND: 404,
    LookupFailure.INCOMPLETE_UPSTREAM_DATA: 502,
    LookupFailure.INTERNAL_ERROR: 500,
}

FAILURE_MESSAGES = {
    LookupFailure.INVALID_INPUT: "ID is required",
    LookupFailure.CONFIGURATION_ERROR: "Server configuration error.",
    LookupFailure.TIMEOUT: "Request timeout",
    LookupFailure.UPSTREAM_ERROR: "Error from upstream",
    LookupFailure.NOT_FOUND: "No data found in upstream response.",
    LookupFailure.INCOMPLETE_UPSTREAM_DATA: "Incomplete data received from server",
    LookupFailure.INTERNAL_ERROR: "Internal server error",
}


class LookupResult(BaseModel):
    """
    Resultado de una consulta: Success(detail) o Failure(reason, status).
    Exactamente uno de los dos lados está poblado.
    """
    model_config = ConfigDict(frozen=True)

    detail: Optional[LocationDetail] = None
    reason: Optional[LookupFailure] = None
    message: Optional[str] = None
    status_code: int = 200

    @model_validator(mode="after")
    def _one_side(self):
        if (self.detail is None) == (self.reason is None):
            raise ValueError("LookupResult requiere detail o reason, no ambos")
        return self

    @property
    def success(self) -> bool:
        return self.detail is not None

    @classmethod
    def ok(cls, detail: LocationDetail) -> "LookupResult":
        return cls(detail=detail)

    @classmethod
    def fail(
        cls,
        reason: LookupFailure,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> "LookupResult":
        return cls(
            reason=reason,
            message=message or reason.default_message,
            status_code=status_code or reason.status_code,
        )

    def to_response_body(self) -> dict:
        if self.success:
            return {"success": True, "data": self.detail.to_wire()}
        return {"success": False, "message": self.message, "reason": self.reason.value}
