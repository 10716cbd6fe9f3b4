"""Explicit success-or-error values returned by public operations."""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import ProviderError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of one operation.

    Exactly one of ``value`` and ``error`` is meaningful, as told by ``ok``.
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[ProviderError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ProviderError) -> "Result[T]":
        return cls(ok=False, error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if not self.ok:
            raise self.error or ProviderError(code=500, message="Unknown error")
        return self.value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.ok
