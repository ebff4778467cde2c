"""
Error taxonomy for backend API calls.
Every layer passes ApiError upward with its kind unchanged; only the caller
(screen / CLI) decides how to present it.
"""
from enum import Enum
from typing import Any

from pydantic import ValidationError


class ApiErrorKind(str, Enum):
    """Kinds of failure a resource operation can report."""

    NETWORK = "network"  # no HTTP response: DNS, connection refused, reset
    TIMEOUT = "timeout"  # explicit client timeout elapsed
    HTTP = "http"  # response outside 2xx
    NOT_FOUND = "not_found"  # HTTP 404
    UNRECOGNIZED_SHAPE = "unrecognized_shape"  # 2xx, but no known envelope matched
    VALIDATION = "validation"  # rejected locally, nothing was sent


# Methods a caller may repeat without side effects
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def classify_error(kind: ApiErrorKind, http_status: int | None, method: str | None) -> bool:
    """
    Return True when the failed request is safe to retry as-is.
    Only idempotent requests that failed transiently qualify; the client itself never retries.
    """
    if method is None or method.upper() not in IDEMPOTENT_METHODS:
        return False
    if kind in (ApiErrorKind.NETWORK, ApiErrorKind.TIMEOUT):
        return True
    if kind == ApiErrorKind.HTTP and http_status is not None:
        return http_status == 429 or 500 <= http_status < 600
    return False


class ApiError(Exception):
    """Typed API failure; detail holds safe-to-log context (never request bodies)."""

    def __init__(
        self,
        kind: ApiErrorKind,
        message: str,
        http_status: int | None = None,
        *,
        method: str | None = None,
        path: str | None = None,
        detail: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.http_status = http_status
        self.method = method
        self.path = path
        self.detail = detail or {}

    @property
    def retryable(self) -> bool:
        return classify_error(self.kind, self.http_status, self.method)

    @property
    def is_not_found(self) -> bool:
        return self.kind == ApiErrorKind.NOT_FOUND

    def __repr__(self) -> str:
        status = f", http_status={self.http_status}" if self.http_status is not None else ""
        return f"ApiError({self.kind.value}{status}: {self.message})"


def validation_error(message: str, **detail: Any) -> ApiError:
    return ApiError(ApiErrorKind.VALIDATION, message, detail=detail or None)


def from_pydantic(exc: ValidationError) -> ApiError:
    """Convert a draft ValidationError into a VALIDATION ApiError with a readable message."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        msg = err.get("msg", "invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{loc}: {msg}" if loc else msg)
    return ApiError(
        ApiErrorKind.VALIDATION,
        "; ".join(parts) or "invalid draft",
        detail={"fields": [".".join(str(p) for p in e.get("loc", ())) for e in exc.errors()]},
    )
