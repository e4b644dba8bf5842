from .location import (
    LocationDetail,
    LocationLevel,
    LocationPoint,
    LookupFailure,
    LookupResult,
    Viewport,
)
