"""
Shared building blocks for canonical entities and request drafts.
Wire format is camelCase with Mongo-style `_id`; attributes are snake_case.
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


def _coerce_ref(v: Any) -> Any:
    """Accept a populated reference ({"_id": ..., "name": ...}) where an id is expected."""
    if isinstance(v, dict):
        v = v.get("_id", v.get("id"))
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


# Ids are opaque strings; numeric ids from older backends are stringified.
EntityId = Annotated[str, BeforeValidator(_coerce_ref)]

# Decimal in memory, JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
PositiveMoney = Annotated[Money, Field(gt=0)]


class CanonicalModel(BaseModel):
    """Base for server-owned entities. Unknown wire fields are ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: EntityId = Field(validation_alias=AliasChoices("_id", "id"))
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DraftModel(BaseModel):
    """Base for client-built request bodies (create / partial update)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_payload(self, *, partial: bool = False) -> dict[str, Any]:
        """camelCase JSON body; a partial update only carries fields the caller set."""
        if partial:
            return self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StatusHistoryEntry(BaseModel):
    """One append-only status log record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    status: str
    timestamp: datetime
    note: str | None = None


def strip_required(value: str, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    return value
