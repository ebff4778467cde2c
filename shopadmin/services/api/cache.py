"""
Local view cache: the per-screen ordered list of canonical entities the presentation layer reads.
Reads are synchronous and side-effect free. Writes come only from resolved resource client calls.
After close() (screen gone) every write is dropped.
"""
import logging
from typing import Callable, Generic, Iterable, Iterator, Protocol, TypeVar

logger = logging.getLogger(__name__)


class HasId(Protocol):
    id: str


T = TypeVar("T", bound=HasId)


class ViewCache(Generic[T]):
    def __init__(self, items: Iterable[T] | None = None) -> None:
        self._items: list[T] = list(items or [])
        self._closed = False

    # ---- reads ----

    @property
    def items(self) -> list[T]:
        """Snapshot copy; mutating it does not touch the cache."""
        return list(self._items)

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, entity_id: str) -> T | None:
        for item in self._items:
            if item.id == entity_id:
                return item
        return None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __contains__(self, entity_id: object) -> bool:
        return any(item.id == entity_id for item in self._items)

    # ---- writes ----

    def _writable(self, operation: str) -> bool:
        if self._closed:
            logger.debug("view_cache_write_dropped", extra={"operation": operation})
            return False
        return True

    def replace(self, items: Iterable[T]) -> None:
        if self._writable("replace"):
            self._items = list(items)

    def upsert(self, item: T) -> None:
        """Replace the entry with the same id in place, or append."""
        if not self._writable("upsert"):
            return
        for i, existing in enumerate(self._items):
            if existing.id == item.id:
                self._items[i] = item
                return
        self._items.append(item)

    def prepend(self, item: T) -> None:
        if not self._writable("prepend"):
            return
        self._items = [item, *(i for i in self._items if i.id != item.id)]

    def remove(self, entity_id: str) -> bool:
        if not self._writable("remove"):
            return False
        before = len(self._items)
        self._items = [i for i in self._items if i.id != entity_id]
        return len(self._items) != before

    def patch(self, entity_id: str, fn: Callable[[T], T]) -> T | None:
        """Apply fn to the cached entry; returns the new entry or None if absent."""
        if not self._writable("patch"):
            return None
        for i, existing in enumerate(self._items):
            if existing.id == entity_id:
                updated = fn(existing)
                self._items[i] = updated
                return updated
        return None

    def close(self) -> None:
        self._closed = True
