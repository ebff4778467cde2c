"""
Dashboard aggregate: five independent list fetches joined concurrently.

The join fails if any constituent fails, and the failure names every resource
that failed rather than reporting one undifferentiated error.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from shopadmin.schemas.catalog import Category, Product
from shopadmin.schemas.orders import Order
from shopadmin.schemas.payments import PaymentTransaction
from shopadmin.schemas.users import User
from shopadmin.services.api.errors import ApiError
from shopadmin.services.api.factory import ShopAdminClient
from shopadmin.services.api.result import ApiResult
from shopadmin.services.payments.client import summarize_payments

logger = logging.getLogger(__name__)

DASHBOARD_RESOURCES = ("users", "orders", "products", "payments", "categories")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class DashboardLoadError(ApiError):
    """At least one dashboard fetch failed; failures maps resource name to its error."""

    def __init__(self, failures: dict[str, ApiError]):
        names = ", ".join(failures)
        first = next(iter(failures.values()))
        # Kind of the first failure; per-resource kinds are in failures
        super().__init__(
            first.kind,
            f"Failed to load dashboard data: {names}",
            first.http_status,
            detail={"failures": {name: e.kind.value for name, e in failures.items()}},
        )
        self.failures = failures


@dataclass(frozen=True)
class DashboardSnapshot:
    total_users: int
    accepted_users: int
    total_orders: int
    orders_by_status: dict[str, int]
    total_products: int
    available_products: int
    total_categories: int
    active_categories: int
    total_revenue: Decimal
    payments: dict[str, Any]
    recent_orders: list[Order] = field(default_factory=list)
    recent_users: list[User] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalUsers": self.total_users,
            "acceptedUsers": self.accepted_users,
            "totalOrders": self.total_orders,
            "ordersByStatus": self.orders_by_status,
            "totalProducts": self.total_products,
            "availableProducts": self.available_products,
            "totalCategories": self.total_categories,
            "activeCategories": self.active_categories,
            "totalRevenue": float(self.total_revenue),
            "payments": {
                "counts": self.payments["counts"],
                "total": self.payments["total"],
                "totalRevenue": float(self.payments["total_revenue"]),
            },
            "recentOrders": [o.model_dump(mode="json", by_alias=True) for o in self.recent_orders],
            "recentUsers": [u.model_dump(mode="json", by_alias=True) for u in self.recent_users],
        }


def _created_key(entity: Any) -> datetime:
    created = entity.created_at or _EPOCH
    # naive timestamps from older backends are UTC
    return created if created.tzinfo else created.replace(tzinfo=timezone.utc)


def _most_recent(items: list[Any], limit: int) -> list[Any]:
    return sorted(items, key=_created_key, reverse=True)[:limit]


def build_snapshot(
    users: list[User],
    orders: list[Order],
    products: list[Product],
    payments: list[PaymentTransaction],
    categories: list[Category],
    recent_limit: int = 5,
) -> DashboardSnapshot:
    """Totals and recent activity from already fetched lists."""
    payment_summary = summarize_payments(payments)
    orders_by_status: dict[str, int] = {}
    for order in orders:
        orders_by_status[order.status.value] = orders_by_status.get(order.status.value, 0) + 1
    return DashboardSnapshot(
        total_users=len(users),
        accepted_users=sum(1 for u in users if u.is_accepted),
        total_orders=len(orders),
        orders_by_status=orders_by_status,
        total_products=len(products),
        available_products=sum(1 for p in products if p.is_available),
        total_categories=len(categories),
        active_categories=sum(1 for c in categories if c.is_active),
        total_revenue=payment_summary["total_revenue"],
        payments=payment_summary,
        recent_orders=_most_recent(orders, recent_limit),
        recent_users=_most_recent(users, recent_limit),
    )


class DashboardService:
    def __init__(self, client: ShopAdminClient, recent_limit: int | None = None) -> None:
        self.client = client
        self.recent_limit = recent_limit if recent_limit is not None else client.settings.recent_items_limit

    async def load(self) -> ApiResult[DashboardSnapshot]:
        """
        Fetch users, orders, products, payments and categories concurrently.
        Success only when all five succeeded; otherwise DashboardLoadError listing each failure.
        """
        results = await asyncio.gather(
            self.client.users.list(),
            self.client.orders.list(),
            self.client.products.list(),
            self.client.payments.list(),
            self.client.categories.list(),
        )
        by_name = dict(zip(DASHBOARD_RESOURCES, results))
        failures = {name: r.error for name, r in by_name.items() if not r.ok}
        if failures:
            logger.warning(
                "dashboard_load_failed",
                extra={"failures": {name: e.kind.value for name, e in failures.items()}},
            )
            return ApiResult.failure(DashboardLoadError(failures))

        snapshot = build_snapshot(
            users=by_name["users"].value,
            orders=by_name["orders"].value,
            products=by_name["products"].value,
            payments=by_name["payments"].value,
            categories=by_name["categories"].value,
            recent_limit=self.recent_limit,
        )
        logger.info("dashboard_loaded", extra={"count": snapshot.total_orders})
        return ApiResult.success(snapshot)
