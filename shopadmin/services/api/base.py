"""
Generic resource client: HTTP via ApiTransport, shape resolution via the envelope
normalizer, canonical models via pydantic, and reconciliation into a ViewCache.

Every public operation returns ApiResult and never raises for API failures.
Cache writes happen only after the server call resolved successfully, except for the
explicit optimistic variant of status transitions.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, Generic, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from shopadmin.schemas.common import CanonicalModel, DraftModel
from shopadmin.schemas.queries import ListQuery
from shopadmin.services.api.cache import ViewCache
from shopadmin.services.api.envelope import describe_shape, normalize_item, normalize_list
from shopadmin.services.api.errors import ApiError, ApiErrorKind, from_pydantic, validation_error
from shopadmin.services.api.result import ApiResult
from shopadmin.services.api.transport import ApiTransport
from shopadmin.utils.metrics import envelope_unrecognized_total, optimistic_fallback_total

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=CanonicalModel)
D = TypeVar("D", bound=BaseModel)

UNEXPECTED_FORMAT = "API returned unexpected data format"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_model(model: type[D], data: Any) -> D:
    """Validate a draft / query from a model instance or a plain dict; raises VALIDATION ApiError."""
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        raise from_pydantic(e) from e


class ResourceClient(Generic[M]):
    """Read side shared by every resource: list and get."""

    resource: ClassVar[str]
    path: ClassVar[str]
    model: ClassVar[type[CanonicalModel]]
    # Key of the list in {"<list_key>": [...], "total": n} envelopes
    list_key: ClassVar[str | None] = None
    # Key of the entity in {"<item_key>": {...}} envelopes
    item_key: ClassVar[str | None] = None
    query_model: ClassVar[type[ListQuery]] = ListQuery

    def __init__(self, transport: ApiTransport, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.transport = transport
        self._clock = clock

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _item_path(self, entity_id: str, suffix: str = "") -> str:
        return f"{self.path}/{quote(entity_id, safe='')}{suffix}"

    @staticmethod
    def _require_id(entity_id: Any) -> str:
        if entity_id is None or not str(entity_id).strip():
            raise validation_error("id must not be empty")
        return str(entity_id).strip()

    def _fail(self, operation: str, error: ApiError, entity_id: str | None = None) -> ApiResult[Any]:
        logger.warning(
            "resource_operation_failed",
            extra={
                "resource": self.resource,
                "operation": operation,
                "entity_id": entity_id,
                "error_kind": error.kind.value,
                "status_code": error.http_status,
                "error": error.message,
            },
        )
        return ApiResult.failure(error)

    def _unrecognized(self, raw: Any, message: str = UNEXPECTED_FORMAT) -> ApiError:
        envelope_unrecognized_total.labels(resource=self.resource).inc()
        shape = describe_shape(raw)
        logger.warning(
            "envelope_unrecognized",
            extra={"resource": self.resource, "envelope_shape": shape},
        )
        return ApiError(ApiErrorKind.UNRECOGNIZED_SHAPE, message, detail={"shape": shape})

    def _parse_entity(self, data: Any) -> M | None:
        try:
            return self.model.model_validate(data)  # type: ignore[return-value]
        except ValidationError as e:
            logger.warning(
                "entity_rejected",
                extra={"resource": self.resource, "error": f"{e.error_count()} validation errors"},
            )
            return None

    def _to_entities(self, raw: Any) -> list[M]:
        """List payload -> canonical entities. Items that fail the schema are dropped and logged."""
        result = normalize_list(raw, self.list_key)
        if not result.recognized:
            raise self._unrecognized(raw)
        entities = []
        for item in result.value:
            entity = self._parse_entity(item)
            if entity is not None:
                entities.append(entity)
        if len(entities) != len(result.value):
            logger.warning(
                "entities_dropped",
                extra={"resource": self.resource, "count": len(result.value) - len(entities)},
            )
        return entities

    def _to_entity(self, raw: Any) -> M:
        """Item payload -> canonical entity; raises UNRECOGNIZED_SHAPE."""
        result = normalize_item(raw, self.item_key)
        if not result.recognized:
            raise self._unrecognized(raw)
        entity = self._parse_entity(result.value)
        if entity is None:
            raise self._unrecognized(raw, f"API returned a {self.item_key or self.resource} that does not match the schema")
        return entity

    def _to_entity_or_none(self, raw: Any) -> M | None:
        """For action endpoints that may answer with a bare acknowledgement."""
        result = normalize_item(raw, self.item_key)
        if not result.recognized:
            return None
        return self._parse_entity(result.value)

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def list(self, params: Any = None, *, cache: ViewCache[M] | None = None) -> ApiResult[list[M]]:
        """
        GET the collection. An unrecognized envelope is reported as UNRECOGNIZED_SHAPE and
        empties the cache; transport failures leave the cache as it was.
        """
        try:
            query = build_model(self.query_model, params).to_params() if params is not None else None
            raw = await self.transport.send("GET", self.path, query=query)
            items = self._to_entities(raw)
        except ApiError as e:
            if cache is not None and e.kind == ApiErrorKind.UNRECOGNIZED_SHAPE:
                cache.replace([])
            return self._fail("list", e)
        if cache is not None:
            cache.replace(items)
        return ApiResult.success(items)

    async def get(self, entity_id: str, *, cache: ViewCache[M] | None = None) -> ApiResult[M]:
        """GET one entity; 404 is reported as NOT_FOUND."""
        try:
            entity_id = self._require_id(entity_id)
            raw = await self.transport.send("GET", self._item_path(entity_id))
            entity = self._to_entity(raw)
        except ApiError as e:
            return self._fail("get", e, entity_id)
        if cache is not None:
            cache.upsert(entity)
        return ApiResult.success(entity)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def _transition(
        self,
        operation: str,
        entity_id: Any,
        path_suffix: str,
        method: str,
        body: dict[str, Any],
        *,
        check: Callable[[M], ApiError | None],
        apply_local: Callable[[M, datetime], M],
        reconcile: Callable[[M, datetime], M],
        cache: ViewCache[M] | None,
        optimistic: bool = False,
    ) -> ApiResult[M | None]:
        """
        Server call first. On success the cache gets the echoed entity (reconciled) or, for a
        bare acknowledgement, the cached entry patched by apply_local. On failure the cache is
        untouched unless optimistic=True, in which case apply_local is still applied.
        The result value is None when the server did not echo and nothing was cached.
        """
        try:
            entity_id = self._require_id(entity_id)
        except ApiError as e:
            return self._fail(operation, e)

        cached = cache.get(entity_id) if cache is not None else None
        if cached is not None:
            rejected = check(cached)
            if rejected is not None:
                return self._fail(operation, rejected, entity_id)

        try:
            raw = await self.transport.send(method, self._item_path(entity_id, path_suffix), body=body)
        except ApiError as e:
            if optimistic and cache is not None and cached is not None:
                observed_at = self._clock()
                cache.patch(entity_id, lambda current: apply_local(current, observed_at))
                optimistic_fallback_total.labels(resource=self.resource).inc()
                logger.warning(
                    "optimistic_fallback_applied",
                    extra={"resource": self.resource, "operation": operation, "entity_id": entity_id},
                )
            return self._fail(operation, e, entity_id)

        observed_at = self._clock()
        echoed = self._to_entity_or_none(raw)
        if echoed is not None:
            entity = reconcile(echoed, observed_at)
            if cache is not None:
                cache.upsert(entity)
            return ApiResult.success(entity)

        patched = None
        if cache is not None:
            patched = cache.patch(entity_id, lambda current: apply_local(current, observed_at))
        return ApiResult.success(patched)


class CrudResourceClient(ResourceClient[M]):
    """Resources the dashboard can create, update and delete."""

    create_model: ClassVar[type[DraftModel]]
    update_model: ClassVar[type[DraftModel]]

    def _prepare_create(self, draft: Any) -> dict[str, Any]:
        return draft.to_payload()

    def _prepare_update(self, entity_id: str, draft: Any, cache: ViewCache[M] | None) -> dict[str, Any]:
        return draft.to_payload(partial=True)

    def _cache_created(self, cache: ViewCache[M], entity: M) -> None:
        cache.upsert(entity)

    async def create(self, draft: Any, *, cache: ViewCache[M] | None = None) -> ApiResult[M]:
        """POST a validated draft. Invalid drafts fail with VALIDATION before any request."""
        try:
            payload = self._prepare_create(build_model(self.create_model, draft))
            raw = await self.transport.send("POST", self.path, body=payload)
            entity = self._to_entity(raw)
        except ApiError as e:
            return self._fail("create", e)
        if cache is not None:
            self._cache_created(cache, entity)
        logger.info("resource_created", extra={"resource": self.resource, "entity_id": entity.id})
        return ApiResult.success(entity)

    async def update(self, entity_id: str, changes: Any, *, cache: ViewCache[M] | None = None) -> ApiResult[M]:
        """PUT only the fields the caller set; the cache takes the server's representation."""
        try:
            entity_id = self._require_id(entity_id)
            payload = self._prepare_update(entity_id, build_model(self.update_model, changes), cache)
            if not payload:
                raise validation_error("no fields to update")
            raw = await self.transport.send("PUT", self._item_path(entity_id), body=payload)
            entity = self._to_entity(raw)
        except ApiError as e:
            return self._fail("update", e, entity_id)
        if cache is not None:
            cache.upsert(entity)
        return ApiResult.success(entity)

    async def delete(self, entity_id: str, *, cache: ViewCache[M] | None = None) -> ApiResult[None]:
        """
        DELETE one entity. A repeated delete answered with 404 returns NOT_FOUND; the entry is
        dropped from the cache in that case too since the server no longer has it.
        """
        try:
            entity_id = self._require_id(entity_id)
            await self.transport.send("DELETE", self._item_path(entity_id))
        except ApiError as e:
            if e.is_not_found and cache is not None:
                cache.remove(entity_id)
            return self._fail("delete", e, entity_id)
        if cache is not None:
            cache.remove(entity_id)
        logger.info("resource_deleted", extra={"resource": self.resource, "entity_id": entity_id})
        return ApiResult.success(None)
