"""
Bot users: CRUD, lookup by Telegram identity, acceptance gate and direct messages.
"""
import logging
from datetime import datetime
from typing import Any
from urllib.parse import quote

from shopadmin.schemas.queries import UserQuery
from shopadmin.schemas.users import SendMessage, User, UserCreate, UserUpdate
from shopadmin.services.api.base import CrudResourceClient, build_model
from shopadmin.services.api.cache import ViewCache
from shopadmin.services.api.errors import ApiError
from shopadmin.services.api.result import ApiResult

logger = logging.getLogger(__name__)


class UserClient(CrudResourceClient[User]):
    resource = "users"
    path = "/users"
    model = User
    list_key = "users"
    item_key = "user"
    query_model = UserQuery
    create_model = UserCreate
    update_model = UserUpdate

    async def get_by_telegram_id(self, telegram_id: int | str, *, cache: ViewCache[User] | None = None) -> ApiResult[User]:
        """GET /users/telegram/{telegram_id}; unknown ids come back as NOT_FOUND."""
        try:
            telegram_id = self._require_id(telegram_id)
            raw = await self.transport.send("GET", f"{self.path}/telegram/{quote(telegram_id, safe='')}")
            user = self._to_entity(raw)
        except ApiError as e:
            return self._fail("get_by_telegram_id", e, telegram_id)
        if cache is not None:
            cache.upsert(user)
        return ApiResult.success(user)

    async def _set_accepted(
        self, operation: str, user_id: str, accepted: bool, cache: ViewCache[User] | None
    ) -> ApiResult[User | None]:
        def apply_local(user: User, observed_at: datetime) -> User:
            return user.model_copy(update={"is_accepted": accepted, "updated_at": observed_at})

        def reconcile(echoed: User, observed_at: datetime) -> User:
            # Some backends echo the user before applying the change
            if echoed.is_accepted != accepted:
                return apply_local(echoed, observed_at)
            return echoed

        result = await self._transition(
            operation,
            user_id,
            "",
            "PUT",
            UserUpdate(is_accepted=accepted).to_payload(partial=True),
            check=lambda user: None,
            apply_local=apply_local,
            reconcile=reconcile,
            cache=cache,
        )
        if result.ok:
            logger.info(operation, extra={"resource": self.resource, "entity_id": user_id})
        return result

    async def accept(self, user_id: str, *, cache: ViewCache[User] | None = None) -> ApiResult[User | None]:
        """Allow the user to transact."""
        return await self._set_accepted("user_accepted", user_id, True, cache)

    async def revoke(self, user_id: str, *, cache: ViewCache[User] | None = None) -> ApiResult[User | None]:
        return await self._set_accepted("user_revoked", user_id, False, cache)

    async def send_message(self, telegram_id: int | str, message: str) -> ApiResult[Any]:
        """
        POST /users/{telegram_id}/send-message. The bot addresses users by Telegram id,
        not by the database id. Blank messages fail with VALIDATION before any request.
        The backend acknowledgement is returned as-is ({"data": ...} unwrapped).
        """
        try:
            telegram_id = self._require_id(telegram_id)
            body = build_model(SendMessage, {"message": message}).to_payload()
            raw = await self.transport.send(
                "POST", f"{self.path}/{quote(telegram_id, safe='')}/send-message", body=body
            )
        except ApiError as e:
            return self._fail("send_message", e, telegram_id)
        logger.info("user_message_sent", extra={"resource": self.resource, "entity_id": telegram_id})
        if isinstance(raw, dict) and "data" in raw:
            raw = raw["data"]
        return ApiResult.success(raw)
