"""
ApiResult: the value every public resource operation returns.
Either value is set (ok) or error is set, never both.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from shopadmin.services.api.errors import ApiError, ApiErrorKind

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    value: T | None = None
    error: ApiError | None = None

    @staticmethod
    def success(value: T) -> "ApiResult[T]":
        return ApiResult(value=value)

    @staticmethod
    def failure(error: ApiError) -> "ApiResult[T]":
        return ApiResult(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> ApiErrorKind | None:
        return self.error.kind if self.error is not None else None

    def map(self, fn: Callable[[T], U]) -> "ApiResult[U]":
        return ApiResult.success(fn(self.value)) if self.ok else ApiResult.failure(self.error)  # type: ignore[arg-type]

    def unwrap(self) -> T:
        """Return the value or raise the carried ApiError."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def get_or_else(self, default: U) -> T | U:
        return self.value if self.ok else default  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"Ok({self.value!r})" if self.ok else f"Err({self.error!r})"
