"""
Async HTTP transport for the storefront backend (httpx).
Knows nothing about resources: sends JSON, decodes JSON, maps failures to ApiError.
Never retries; see ApiError.retryable for what a caller may safely repeat.
"""
import logging
import time
import uuid
from typing import Any, Mapping

import httpx

from shopadmin.core.config import Settings
from shopadmin.services.api.errors import ApiError, ApiErrorKind
from shopadmin.utils.metrics import api_request_duration_seconds, api_requests_total


logger = logging.getLogger(__name__)


def build_query(params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """
    Query pairs in insertion order, skipping None and empty strings.
    Booleans are sent as true/false, sequences as comma-separated values.
    """
    pairs: list[tuple[str, str]] = []
    if not params:
        return pairs
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        pairs.append((key, str(value)))
    return pairs


def _error_message(resp: httpx.Response) -> str:
    """Best-effort human message from an error body."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return f"HTTP error {resp.status_code}"


class ApiTransport:
    """
    Sends requests to the configured backend.
    One instance per application; pass transport= (e.g. httpx.MockTransport) to fake the backend.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = settings.api_base_url
        self._timeout = settings.http_client_timeout
        self._request_id_header = settings.request_id_header
        self._headers = {
            **settings.default_headers,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
            )
        return self._client

    def _record_request(self, method: str, status: str, duration: float) -> None:
        api_requests_total.labels(method=method, status=status).inc()
        api_request_duration_seconds.labels(method=method).observe(duration)

    async def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Perform one request and return the decoded JSON (None for an empty body).
        Raises ApiError: NETWORK / TIMEOUT when no usable response arrived, NOT_FOUND on 404,
        HTTP for any other non-2xx, UNRECOGNIZED_SHAPE for a 2xx body that is not JSON.
        """
        method = method.upper()
        url = f"{self._base_url}{path}"
        request_id = uuid.uuid4().hex
        start = time.time()
        log_extra = {"method": method, "path": path, "request_id": request_id}

        try:
            resp = await self.client.request(
                method,
                url,
                json=body,
                params=build_query(query) or None,
                headers={self._request_id_header: request_id},
            )
        except httpx.TimeoutException as e:
            self._record_request(method, "timeout", time.time() - start)
            logger.warning("api_request_timeout", extra={**log_extra, "error": type(e).__name__})
            raise ApiError(
                ApiErrorKind.TIMEOUT,
                f"Request timed out after {self._timeout}s",
                method=method,
                path=path,
            ) from e
        except httpx.RequestError as e:
            # TransportError plus body-level failures such as DecodingError
            self._record_request(method, "network", time.time() - start)
            logger.warning("api_request_network_error", extra={**log_extra, "error": str(e)})
            raise ApiError(
                ApiErrorKind.NETWORK,
                f"Network error: {e}" if str(e) else "Network error",
                method=method,
                path=path,
            ) from e

        duration = time.time() - start
        self._record_request(method, str(resp.status_code), duration)
        logger.info(
            "api_request",
            extra={**log_extra, "status_code": resp.status_code, "latency_ms": round(duration * 1000, 1)},
        )

        if not 200 <= resp.status_code <= 299:
            kind = ApiErrorKind.NOT_FOUND if resp.status_code == 404 else ApiErrorKind.HTTP
            raise ApiError(
                kind,
                _error_message(resp),
                resp.status_code,
                method=method,
                path=path,
            )

        if not resp.content or not resp.content.strip():
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(
                ApiErrorKind.UNRECOGNIZED_SHAPE,
                "Response body is not valid JSON",
                resp.status_code,
                method=method,
                path=path,
            ) from e

    async def close(self) -> None:
        """Close httpx client."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def __aenter__(self) -> "ApiTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
