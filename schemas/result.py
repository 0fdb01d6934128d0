"""Success/failure envelope returned by every public operation."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

CANCELLED = "cancelled"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Envelope with either ``data`` (ok) or an ``error`` message."""

    ok: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, data: T | None = None) -> "OperationResult[T]":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: str) -> "OperationResult[T]":
        return cls(ok=False, error=error or "Unknown error")

    @classmethod
    def cancelled(cls) -> "OperationResult[T]":
        """User-initiated cancellation, distinguishable from real errors."""
        return cls(ok=False, error=CANCELLED)

    @property
    def is_cancelled(self) -> bool:
        return not self.ok and self.error == CANCELLED

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "data": self.data}
        return {"ok": False, "error": self.error}
