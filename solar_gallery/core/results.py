from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class StoreResult:
    """
    Outcome of a blob store operation.

    Exactly one variant is meaningful: a success carries ``value`` (which may be
    ``None`` for operations such as upload or delete), a failure carries ``error``.
    Transport errors are reported through this type instead of being raised.
    """
    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any = None) -> "StoreResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "StoreResult":
        return cls(ok=False, error=error or "unknown error")
