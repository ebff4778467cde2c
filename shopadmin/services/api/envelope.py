"""
Envelope normalization: find the list / item inside whatever wrapper a backend endpoint used.

List resolution order (first match wins):
  1. bare array                      -> ARRAY
  2. {"data": [...]}                 -> DATA_WRAPPER
  3. {"<resource_key>": [...]}       -> KEYED_WRAPPER   (e.g. "orders", "transactions")
  4. anything else                   -> UNRECOGNIZED    (value is an empty list)

Item resolution order:
  1. the object itself carries "_id" / "id" (endpoint echoed the entity) -> ENTITY
  2. {"data": {...}}                 -> DATA_WRAPPER
  3. {"<resource_key>": {...}}       -> KEYED_WRAPPER
  4. anything else                   -> UNRECOGNIZED    (value is None)

Never raises: callers branch on result.shape.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class EnvelopeShape(str, Enum):
    ARRAY = "array"
    DATA_WRAPPER = "data_wrapper"
    KEYED_WRAPPER = "keyed_wrapper"
    ENTITY = "entity"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class NormalizationResult(Generic[T]):
    shape: EnvelopeShape
    value: T
    raw: Any = None

    @property
    def recognized(self) -> bool:
        return self.shape != EnvelopeShape.UNRECOGNIZED


def normalize_list(raw: Any, resource_key: str | None = None) -> NormalizationResult[list[Any]]:
    """Resolve a list payload: bare array, then {"data": [...]}, then {resource_key: [...]}."""
    if isinstance(raw, list):
        return NormalizationResult(EnvelopeShape.ARRAY, list(raw), raw)
    if isinstance(raw, dict):
        data = raw.get("data")
        if isinstance(data, list):
            return NormalizationResult(EnvelopeShape.DATA_WRAPPER, list(data), raw)
        if resource_key:
            keyed = raw.get(resource_key)
            if isinstance(keyed, list):
                return NormalizationResult(EnvelopeShape.KEYED_WRAPPER, list(keyed), raw)
    return NormalizationResult(EnvelopeShape.UNRECOGNIZED, [], raw)


def _is_entity(value: Any) -> bool:
    return isinstance(value, dict) and ("_id" in value or "id" in value)


def normalize_item(raw: Any, resource_key: str | None = None) -> NormalizationResult[dict[str, Any] | None]:
    """Resolve a single-entity payload: echoed entity, then {"data": {...}}, then {resource_key: {...}}."""
    if not isinstance(raw, dict):
        return NormalizationResult(EnvelopeShape.UNRECOGNIZED, None, raw)
    # An echoed entity may itself have a "data" field (notifications do); identity wins
    if _is_entity(raw):
        return NormalizationResult(EnvelopeShape.ENTITY, raw, raw)
    data = raw.get("data")
    if isinstance(data, dict):
        return NormalizationResult(EnvelopeShape.DATA_WRAPPER, data, raw)
    if resource_key:
        keyed = raw.get(resource_key)
        if isinstance(keyed, dict):
            return NormalizationResult(EnvelopeShape.KEYED_WRAPPER, keyed, raw)
    return NormalizationResult(EnvelopeShape.UNRECOGNIZED, None, raw)


def describe_shape(raw: Any) -> str:
    """Short, content-free description of a payload for logs (keys and types only)."""
    if isinstance(raw, dict):
        keys = sorted(str(k) for k in raw.keys())[:10]
        return f"object(keys={keys})"
    if isinstance(raw, list):
        return f"array(len={len(raw)})"
    return type(raw).__name__
