"""
Canonical entities, drafts and query models.
"""
from shopadmin.schemas.catalog import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    Product,
    ProductCreate,
    ProductUpdate,
)
from shopadmin.schemas.common import StatusHistoryEntry
from shopadmin.schemas.notifications import (
    Notification,
    NotificationAudience,
    NotificationCreate,
    NotificationStatus,
    NotificationUpdate,
)
from shopadmin.schemas.orders import (
    Order,
    OrderCreate,
    OrderFulfillment,
    OrderStatus,
    OrderStatusUpdate,
    OrderType,
)
from shopadmin.schemas.payments import (
    PaymentProvider,
    PaymentStatus,
    PaymentStatusUpdate,
    PaymentTransaction,
)
from shopadmin.schemas.queries import (
    CategoryQuery,
    NotificationQuery,
    OrderQuery,
    PaymentQuery,
    ProductQuery,
    UserQuery,
)
from shopadmin.schemas.users import SendMessage, User, UserCreate, UserUpdate

__all__ = [
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryQuery",
    "Notification",
    "NotificationAudience",
    "NotificationCreate",
    "NotificationQuery",
    "NotificationStatus",
    "NotificationUpdate",
    "Order",
    "OrderCreate",
    "OrderFulfillment",
    "OrderQuery",
    "OrderStatus",
    "OrderStatusUpdate",
    "OrderType",
    "PaymentProvider",
    "PaymentQuery",
    "PaymentStatus",
    "PaymentStatusUpdate",
    "PaymentTransaction",
    "Product",
    "ProductCreate",
    "ProductQuery",
    "ProductUpdate",
    "SendMessage",
    "StatusHistoryEntry",
    "User",
    "UserCreate",
    "UserQuery",
    "UserUpdate",
]
