"""
Factory for the admin API clients: one transport shared by every resource client.
Built explicitly at application start; there is no module-level client instance.
"""
import logging
from typing import Any

import httpx

from shopadmin.core.config import DEFAULT_API_BASE_URL, Settings
from shopadmin.services.api.transport import ApiTransport
from shopadmin.services.categories.client import CategoryClient
from shopadmin.services.notifications.client import NotificationClient
from shopadmin.services.orders.client import OrderClient
from shopadmin.services.payments.client import PaymentClient
from shopadmin.services.products.client import ProductClient
from shopadmin.services.users.client import UserClient

logger = logging.getLogger(__name__)


class ShopAdminClient:
    """All six resource clients over one ApiTransport."""

    def __init__(self, transport: ApiTransport, settings: Settings) -> None:
        self.transport = transport
        self.settings = settings
        self.products = ProductClient(transport)
        self.categories = CategoryClient(transport)
        self.orders = OrderClient(transport, fulfill_content_field=settings.fulfill_content_field)
        self.payments = PaymentClient(transport)
        self.users = UserClient(transport)
        self.notifications = NotificationClient(transport)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ShopAdminClient":
        """
        Create the client from application settings.

        Args:
            settings: Settings object; the module-level settings when omitted
            transport: httpx transport override (tests pass httpx.MockTransport)
        """
        if settings is None:
            from shopadmin.core.config import settings as app_settings

            settings = app_settings
        if settings.uses_default_api_base_url:
            logger.warning(
                "api_base_url_default",
                extra={"path": DEFAULT_API_BASE_URL},
            )
        logger.info("api_client_created", extra={"path": settings.api_base_url})
        return cls(ApiTransport(settings, transport=transport), settings)

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "ShopAdminClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
