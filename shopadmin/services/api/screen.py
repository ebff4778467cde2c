"""
Screen-level fetch state: loading, loaded or error, over a resource client and its own ViewCache.
"""
import logging
from enum import Enum
from typing import Any, Generic

from shopadmin.services.api.base import UNEXPECTED_FORMAT, M, ResourceClient
from shopadmin.services.api.cache import ViewCache
from shopadmin.services.api.errors import ApiError, ApiErrorKind
from shopadmin.services.api.result import ApiResult

logger = logging.getLogger(__name__)


class ScreenStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class ListScreen(Generic[M]):
    """
    One list screen. load() fetches into the screen's cache; retry() repeats the same fetch.
    Overlapping loads are not deduplicated: whichever resolves last sets the state.
    After close() results that arrive late are discarded.
    """

    def __init__(self, client: ResourceClient[M], params: Any = None) -> None:
        self.client = client
        self.params = params
        self.cache: ViewCache[M] = ViewCache()
        self.status = ScreenStatus.IDLE
        self.error: ApiError | None = None

    @property
    def items(self) -> list[M]:
        return self.cache.items

    @property
    def unexpected_format(self) -> bool:
        """The backend answered, but with a payload shape we do not know."""
        return self.error is not None and self.error.kind == ApiErrorKind.UNRECOGNIZED_SHAPE

    @property
    def error_message(self) -> str | None:
        if self.error is None:
            return None
        return UNEXPECTED_FORMAT if self.unexpected_format else self.error.message

    async def load(self) -> ApiResult[list[M]]:
        if not self.cache.closed:
            self.status = ScreenStatus.LOADING
        result = await self.client.list(self.params, cache=self.cache)
        if self.cache.closed:
            logger.debug("screen_result_discarded", extra={"resource": self.client.resource})
            return result
        if result.ok:
            self.status = ScreenStatus.LOADED
            self.error = None
        else:
            self.status = ScreenStatus.ERROR
            self.error = result.error
        return result

    async def retry(self) -> ApiResult[list[M]]:
        return await self.load()

    def close(self) -> None:
        self.cache.close()
