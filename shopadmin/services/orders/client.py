"""
Orders: read side, purchase creation and the two status-changing actions
(update_status and fulfill), both checked against the order state machine.
"""
import logging
from datetime import datetime
from typing import Any
from urllib.parse import quote

from shopadmin.schemas.orders import (
    Order,
    OrderCreate,
    OrderFulfillment,
    OrderStatus,
    OrderStatusUpdate,
    can_transition_order,
)
from shopadmin.schemas.queries import ListQuery, OrderQuery
from shopadmin.services.api.base import ResourceClient, build_model, utcnow
from shopadmin.services.api.cache import ViewCache
from shopadmin.services.api.errors import ApiError, validation_error
from shopadmin.services.api.result import ApiResult
from shopadmin.services.api.transport import ApiTransport

logger = logging.getLogger(__name__)

# Status fulfil moves to when the backend does not echo the order
FULFILLED_STATUS = OrderStatus.COMPLETED


def _unwrap_data(raw: Any) -> Any:
    if isinstance(raw, dict) and "data" in raw:
        return raw["data"]
    return raw


class OrderClient(ResourceClient[Order]):
    resource = "orders"
    path = "/orders"
    model = Order
    list_key = "orders"
    item_key = "order"
    query_model = OrderQuery

    def __init__(
        self,
        transport: ApiTransport,
        *,
        fulfill_content_field: str = "content",
        clock=utcnow,
    ) -> None:
        super().__init__(transport, clock=clock)
        self.fulfill_content_field = fulfill_content_field

    async def create(self, draft: Any, *, cache: ViewCache[Order] | None = None) -> ApiResult[Order]:
        try:
            payload = build_model(OrderCreate, draft).to_payload()
            raw = await self.transport.send("POST", self.path, body=payload)
            order = self._to_entity(raw)
        except ApiError as e:
            return self._fail("create", e)
        if cache is not None:
            cache.upsert(order)
        logger.info("resource_created", extra={"resource": self.resource, "entity_id": order.id})
        return ApiResult.success(order)

    async def list_by_user(
        self,
        user_id: str,
        params: Any = None,
        *,
        cache: ViewCache[Order] | None = None,
    ) -> ApiResult[list[Order]]:
        """Orders of one user (GET /orders/user/{id}); pagination only."""
        try:
            user_id = self._require_id(user_id)
            query = build_model(ListQuery, params).to_params() if params is not None else None
            raw = await self.transport.send("GET", f"{self.path}/user/{quote(user_id, safe='')}", query=query)
            orders = self._to_entities(raw)
        except ApiError as e:
            return self._fail("list_by_user", e, user_id)
        if cache is not None:
            cache.replace(orders)
        return ApiResult.success(orders)

    @staticmethod
    def _check_transition(order: Order, new_status: OrderStatus) -> ApiError | None:
        if order.is_terminal:
            return validation_error(
                f"Order {order.id} is {order.status.value} and can no longer change status",
                current_status=order.status.value,
            )
        if not can_transition_order(order.status, new_status):
            return validation_error(
                f"Order {order.id} cannot move from {order.status.value} to {new_status.value}",
                current_status=order.status.value,
            )
        return None

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus | str,
        note: str | None = None,
        *,
        cache: ViewCache[Order] | None = None,
    ) -> ApiResult[Order | None]:
        """PUT /orders/{id}/status. The cache changes only after the server accepted it."""
        try:
            draft = build_model(OrderStatusUpdate, {"status": status, "note": note})
        except ApiError as e:
            return self._fail("update_status", e, order_id)
        new_status = draft.status

        def reconcile(echoed: Order, observed_at: datetime) -> Order:
            return echoed.with_history_synced(observed_at, note)

        return await self._transition(
            "update_status",
            order_id,
            "/status",
            "PUT",
            draft.to_payload(),
            check=lambda order: self._check_transition(order, new_status),
            apply_local=lambda order, at: order.with_status(new_status, at, note),
            reconcile=reconcile,
            cache=cache,
        )

    async def fulfill(
        self,
        order_id: str,
        content: list[str],
        note: str | None = None,
        *,
        cache: ViewCache[Order] | None = None,
    ) -> ApiResult[Order | None]:
        """
        POST /orders/{id}/fulfill: attach delivered content and finish the order in one step.
        Orders already delivered, completed or cancelled are rejected locally when cached.
        """
        try:
            draft = build_model(OrderFulfillment, {"content": content, "note": note})
        except ApiError as e:
            return self._fail("fulfill", e, order_id)

        def check(order: Order) -> ApiError | None:
            if order.is_terminal:
                return validation_error(
                    f"Order {order.id} is already {order.status.value}",
                    current_status=order.status.value,
                )
            return None

        def reconcile(echoed: Order, observed_at: datetime) -> Order:
            if not echoed.delivered_content:
                echoed = echoed.model_copy(update={"delivered_content": list(draft.content)})
            return echoed.with_history_synced(observed_at, note)

        return await self._transition(
            "fulfill",
            order_id,
            "/fulfill",
            "POST",
            draft.to_body(self.fulfill_content_field),
            check=check,
            apply_local=lambda order, at: order.with_status(FULFILLED_STATUS, at, note, delivered_content=draft.content),
            reconcile=reconcile,
            cache=cache,
        )

    async def sync_statuses(self) -> ApiResult[Any]:
        """Ask the backend to reconcile order statuses with payments (POST /orders/sync-statuses)."""
        try:
            raw = await self.transport.send("POST", f"{self.path}/sync-statuses")
        except ApiError as e:
            return self._fail("sync_statuses", e)
        return ApiResult.success(_unwrap_data(raw))

    async def sales_stats(self, start_date: str | None = None, end_date: str | None = None) -> ApiResult[Any]:
        """Aggregated sales from GET /orders/stats/sales; the payload is passed through as-is."""
        try:
            raw = await self.transport.send(
                "GET",
                f"{self.path}/stats/sales",
                query={"startDate": start_date, "endDate": end_date},
            )
        except ApiError as e:
            return self._fail("sales_stats", e)
        return ApiResult.success(_unwrap_data(raw))
