"""
List query parameters per resource. Serialized camelCase; unset values are not sent.
"""
from typing import Any

from pydantic import Field

from shopadmin.schemas.common import DraftModel


class ListQuery(DraftModel):
    """Pagination parameters shared by every list endpoint."""

    page: int | None = Field(default=None, ge=1, description="Page number")
    limit: int | None = Field(default=None, ge=1, le=100, description="Items per page")

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProductQuery(ListQuery):
    category: str | None = None
    search: str | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)


class CategoryQuery(ListQuery):
    pass


class OrderQuery(ListQuery):
    status: str | None = None


class PaymentQuery(ListQuery):
    status: str | None = None
    provider: str | None = None
    user_id: str | None = None


class UserQuery(ListQuery):
    search: str | None = None


class NotificationQuery(ListQuery):
    user_id: str | None = None
    type: str | None = None
