"""
Payment transactions: canonical entity and status machine.
"""
from datetime import datetime
from enum import Enum
from typing import Any

from shopadmin.schemas.common import CanonicalModel, DraftModel, EntityId, Money


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    # Set only by the payment processor webhook; never a client transition target
    REFUNDED = "refunded"


class PaymentProvider(str, Enum):
    PAYPAL = "paypal"
    CRYPTO = "crypto"
    OTHER = "others"


PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED}),
    PaymentStatus.COMPLETED: frozenset(),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


def can_transition_payment(current: PaymentStatus, new: PaymentStatus) -> bool:
    return new in PAYMENT_TRANSITIONS[current]


class PaymentTransaction(CanonicalModel):
    order_id: EntityId | None = None
    user_id: EntityId | None = None
    amount: Money
    currency: str | None = None
    payment_provider: str = PaymentProvider.OTHER.value
    status: PaymentStatus = PaymentStatus.PENDING
    completed_at: datetime | None = None

    # PayPal
    paypal_order_id: str | None = None
    paypal_capture_id: str | None = None
    # Crypto
    crypto_type: str | None = None
    crypto_address: str | None = None
    crypto_tx_hash: str | None = None
    # Generic processors
    provider_transaction_id: str | None = None
    payment_url: str | None = None

    def with_status(self, status: PaymentStatus, observed_at: datetime) -> "PaymentTransaction":
        """Copy with the new status; completed_at is kept only for completed payments."""
        update: dict[str, Any] = {
            "status": status,
            "updated_at": observed_at,
            "completed_at": (self.completed_at or observed_at) if status == PaymentStatus.COMPLETED else None,
        }
        return self.model_copy(update=update)


class PaymentStatusUpdate(DraftModel):
    status: PaymentStatus
