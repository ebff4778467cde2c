"""
Payment transactions: read side and admin status changes.

update_status is strict: a failed call leaves the cache untouched.
update_status_optimistic applies the new status locally even when the server call
failed. It still returns the failure and is counted in optimistic_fallback_total.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any

from shopadmin.schemas.payments import (
    PaymentStatus,
    PaymentStatusUpdate,
    PaymentTransaction,
    can_transition_payment,
)
from shopadmin.schemas.queries import PaymentQuery
from shopadmin.services.api.base import ResourceClient, build_model
from shopadmin.services.api.cache import ViewCache
from shopadmin.services.api.errors import ApiError, validation_error
from shopadmin.services.api.result import ApiResult


class PaymentClient(ResourceClient[PaymentTransaction]):
    resource = "payments"
    path = "/payments"
    model = PaymentTransaction
    list_key = "transactions"
    item_key = "transaction"
    query_model = PaymentQuery

    @staticmethod
    def _check_transition(payment: PaymentTransaction, new_status: PaymentStatus) -> ApiError | None:
        if not can_transition_payment(payment.status, new_status):
            return validation_error(
                f"Payment {payment.id} cannot move from {payment.status.value} to {new_status.value}",
                current_status=payment.status.value,
            )
        return None

    async def _update_status(
        self,
        operation: str,
        payment_id: str,
        status: PaymentStatus | str,
        cache: ViewCache[PaymentTransaction] | None,
        optimistic: bool,
    ) -> ApiResult[PaymentTransaction | None]:
        try:
            draft = build_model(PaymentStatusUpdate, {"status": status})
        except ApiError as e:
            return self._fail(operation, e, payment_id)
        new_status = draft.status
        if new_status == PaymentStatus.REFUNDED:
            return self._fail(
                operation,
                validation_error("Refunds are set by the payment processor, not by the dashboard"),
                payment_id,
            )

        def reconcile(echoed: PaymentTransaction, observed_at: datetime) -> PaymentTransaction:
            # completed_at iff completed, even if the backend echo disagrees
            if (echoed.completed_at is not None) != (echoed.status == PaymentStatus.COMPLETED):
                return echoed.with_status(echoed.status, echoed.updated_at or observed_at)
            return echoed

        return await self._transition(
            operation,
            payment_id,
            "/status",
            "PUT",
            draft.to_payload(),
            check=lambda payment: self._check_transition(payment, new_status),
            apply_local=lambda payment, at: payment.with_status(new_status, at),
            reconcile=reconcile,
            cache=cache,
            optimistic=optimistic,
        )

    async def update_status(
        self,
        payment_id: str,
        status: PaymentStatus | str,
        *,
        cache: ViewCache[PaymentTransaction] | None = None,
    ) -> ApiResult[PaymentTransaction | None]:
        """PUT /payments/{id}/status; the cache changes only on success."""
        return await self._update_status("update_status", payment_id, status, cache, optimistic=False)

    async def update_status_optimistic(
        self,
        payment_id: str,
        status: PaymentStatus | str,
        *,
        cache: ViewCache[PaymentTransaction] | None = None,
    ) -> ApiResult[PaymentTransaction | None]:
        """Like update_status, but a failed server call is still applied to the cached entry."""
        return await self._update_status("update_status_optimistic", payment_id, status, cache, optimistic=True)


def summarize_payments(payments: list[PaymentTransaction]) -> dict[str, Any]:
    """Counts per status plus revenue from completed payments."""
    counts = {status.value: 0 for status in PaymentStatus}
    revenue = Decimal("0")
    for payment in payments:
        counts[payment.status.value] += 1
        if payment.status == PaymentStatus.COMPLETED:
            revenue += payment.amount
    return {"counts": counts, "total": len(payments), "total_revenue": revenue}
