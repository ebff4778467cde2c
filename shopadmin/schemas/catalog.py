"""
Products and categories: canonical entities and drafts.
"""
from pydantic import AliasChoices, Field, field_validator, model_validator

from shopadmin.schemas.common import (
    CanonicalModel,
    DraftModel,
    EntityId,
    Money,
    PositiveMoney,
    strip_required,
)


def clean_digital_content(items: list[str] | None) -> list[str]:
    """Drop blank inventory units; keep order and inner whitespace."""
    return [item.strip() for item in (items or []) if item and item.strip()]


class Product(CanonicalModel):
    name: str
    price: Money
    description: str | None = None
    category_id: EntityId | None = None
    # Older backends call the inventory list "content"
    digital_content: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("digitalContent", "content", "digital_content"),
    )
    is_available: bool = False
    allow_preorder: bool = False
    preorder_note: str | None = None

    @property
    def stock(self) -> int:
        return len(self.digital_content)


class ProductCreate(DraftModel):
    """
    New product. Blank content lines are dropped; with no content left the product
    is submitted unavailable regardless of is_available.
    """

    name: str
    category_id: str
    price: PositiveMoney
    description: str | None = None
    digital_content: list[str] = Field(default_factory=list)
    is_available: bool = True
    allow_preorder: bool = False
    preorder_note: str | None = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return strip_required(v, "name")

    @field_validator("category_id")
    @classmethod
    def category_required(cls, v: str) -> str:
        return strip_required(v, "category_id")

    @field_validator("digital_content", mode="before")
    @classmethod
    def drop_blank_content(cls, v: list[str] | None) -> list[str]:
        return clean_digital_content(v)

    @model_validator(mode="after")
    def unavailable_without_content(self) -> "ProductCreate":
        if not self.digital_content:
            self.is_available = False
        return self


class ProductUpdate(DraftModel):
    """Partial product update; only fields the caller sets are sent."""

    name: str | None = None
    category_id: str | None = None
    price: PositiveMoney | None = None
    description: str | None = None
    digital_content: list[str] | None = None
    is_available: bool | None = None
    allow_preorder: bool | None = None
    preorder_note: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        return None if v is None else strip_required(v, "name")

    @field_validator("category_id")
    @classmethod
    def category_not_blank(cls, v: str | None) -> str | None:
        return None if v is None else strip_required(v, "category_id")

    @field_validator("digital_content", mode="before")
    @classmethod
    def drop_blank_content(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else clean_digital_content(v)

    @model_validator(mode="after")
    def unavailable_without_content(self) -> "ProductUpdate":
        if self.digital_content is not None and not self.digital_content:
            self.is_available = False
        return self


class Category(CanonicalModel):
    name: str
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True


class CategoryCreate(DraftModel):
    name: str
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return strip_required(v, "name")


class CategoryUpdate(DraftModel):
    name: str | None = None
    description: str | None = None
    sort_order: int | None = None
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        return None if v is None else strip_required(v, "name")
