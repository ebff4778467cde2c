"""
Orders: canonical entity, status machine and drafts.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator

from shopadmin.schemas.common import (
    CanonicalModel,
    DraftModel,
    EntityId,
    Money,
    StatusHistoryEntry,
    strip_required,
)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderType(str, Enum):
    PURCHASE = "purchase"
    PREORDER = "preorder"


ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.DELIVERED, OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Statuses that stamp completed_at
FULFILLED_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.DELIVERED})


def is_terminal_order_status(status: OrderStatus) -> bool:
    return not ORDER_TRANSITIONS[status]


def can_transition_order(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ORDER_TRANSITIONS[current]


class Order(CanonicalModel):
    user_id: EntityId
    product_id: EntityId
    quantity: int = 1
    # Snapshot at purchase time; total_amount is computed by the server and trusted as given
    unit_price: Money | None = None
    total_amount: Money | None = None
    status: OrderStatus = OrderStatus.PENDING
    type: OrderType = OrderType.PURCHASE
    delivered_content: list[str] = Field(default_factory=list)
    status_history: list[StatusHistoryEntry] = Field(default_factory=list)
    completed_at: datetime | None = None

    @field_validator("type", mode="before")
    @classmethod
    def legacy_type(cls, v: Any) -> Any:
        # One dashboard generation labelled plain purchases "regular"
        if v in (None, "", "regular"):
            return OrderType.PURCHASE
        return v

    @model_validator(mode="after")
    def history_ends_in_status(self) -> "Order":
        """Backends without a status log (or with a stale one) get a record for the current status."""
        if not self.status_history or self.status_history[-1].status != self.status.value:
            stamped = self.updated_at or self.created_at or datetime.now(timezone.utc)
            self.status_history = [
                *self.status_history,
                StatusHistoryEntry(status=self.status.value, timestamp=stamped),
            ]
        return self

    @property
    def is_terminal(self) -> bool:
        return is_terminal_order_status(self.status)

    def with_status(
        self,
        status: OrderStatus,
        observed_at: datetime,
        note: str | None = None,
        delivered_content: list[str] | None = None,
    ) -> "Order":
        """Copy with the new status and one appended history record stamped observed_at."""
        update: dict[str, Any] = {
            "status": status,
            "updated_at": observed_at,
            "status_history": [
                *self.status_history,
                StatusHistoryEntry(status=status.value, timestamp=observed_at, note=note),
            ],
        }
        if status in FULFILLED_STATUSES:
            update["completed_at"] = observed_at
        if delivered_content is not None:
            update["delivered_content"] = list(delivered_content)
        return self.model_copy(update=update)

    def with_history_synced(self, observed_at: datetime, note: str | None = None) -> "Order":
        """Append a record if the history does not already end in the current status."""
        if self.status_history and self.status_history[-1].status == self.status.value:
            return self
        entry = StatusHistoryEntry(status=self.status.value, timestamp=observed_at, note=note)
        return self.model_copy(update={"status_history": [*self.status_history, entry]})


class OrderCreate(DraftModel):
    user_id: str
    product_id: str
    quantity: int = Field(default=1, ge=1)

    @field_validator("user_id", "product_id")
    @classmethod
    def ids_required(cls, v: str, info) -> str:
        return strip_required(v, info.field_name)


class OrderStatusUpdate(DraftModel):
    status: OrderStatus
    note: str | None = None


class OrderFulfillment(DraftModel):
    """Fulfil body; the content field name is chosen per backend at send time."""

    content: list[str]
    note: str | None = None

    @field_validator("content", mode="before")
    @classmethod
    def content_required(cls, v: list[str] | None) -> list[str]:
        items = [str(item).strip() for item in (v or []) if item is not None and str(item).strip()]
        if not items:
            raise ValueError("content must contain at least one item")
        return items

    def to_body(self, content_field: str) -> dict[str, Any]:
        body: dict[str, Any] = {content_field: self.content}
        if self.note:
            body["note"] = self.note
        return body
