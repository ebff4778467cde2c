"""
Admin API resource client core: transport, envelope normalization, typed results and view caches.
"""
from .errors import ApiError, ApiErrorKind, classify_error
from .result import ApiResult
from .envelope import EnvelopeShape, NormalizationResult, normalize_item, normalize_list
from .cache import ViewCache
from .transport import ApiTransport, build_query
from .base import UNEXPECTED_FORMAT, CrudResourceClient, ResourceClient
from .screen import ListScreen, ScreenStatus

__all__ = [
    "ApiError",
    "ApiErrorKind",
    "classify_error",
    "ApiResult",
    "EnvelopeShape",
    "NormalizationResult",
    "normalize_item",
    "normalize_list",
    "ViewCache",
    "ApiTransport",
    "build_query",
    "UNEXPECTED_FORMAT",
    "CrudResourceClient",
    "ResourceClient",
    "ListScreen",
    "ScreenStatus",
]
