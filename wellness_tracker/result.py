from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar


T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    CONFLICT = "conflict"
    ACCESS_FAILURE = "access_failure"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a repository call: a value, or the reason there is none.

    Truthiness follows ``ok`` so callers can write ``if result:``. A successful
    result may still carry a falsy value (``increment_streak`` returns
    ``success(False)`` when the habit was already completed today).
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(True, value)

    @classmethod
    def failure(cls, error: ErrorKind, message: str = "") -> "Result[T]":
        return cls(False, None, error, message)

    def __bool__(self) -> bool:
        return self.ok

    def unwrap(self) -> T:
        if not self.ok:
            raise ValueError(f"{self.error.value}: {self.message}" if self.error else self.message)
        return self.value  # type: ignore[return-value]

    def value_or(self, default: T) -> T:
        return self.value if self.ok else default  # type: ignore[return-value]
