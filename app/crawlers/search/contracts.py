"""Typed fetch results returned by the GitHub search client."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FetchState(str, enum.Enum):
    """Outcome of a single remote call.

    Everything except `OK` is a failure that is surfaced to the caller as-is;
    nothing is retried internally.
    """

    OK = "ok"
    RATE_LIMITED = "rate_limited"
    API_ERROR = "api_error"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    state: FetchState
    data: Optional[T] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    retry_after_seconds: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.state == FetchState.OK

    @classmethod
    def success(cls, data: T, *, status_code: Optional[int] = None) -> "FetchResult[T]":
        return cls(state=FetchState.OK, data=data, status_code=status_code)

    @classmethod
    def rate_limited(cls, retry_after_seconds: int, *, error: str, status_code: int = 403) -> "FetchResult[T]":
        return cls(
            state=FetchState.RATE_LIMITED,
            status_code=status_code,
            error=error,
            retry_after_seconds=retry_after_seconds,
        )

    @classmethod
    def api_error(cls, error: str, status_code: int) -> "FetchResult[T]":
        return cls(state=FetchState.API_ERROR, error=error, status_code=status_code)

    @classmethod
    def failed(cls, error: str, *, status_code: Optional[int] = None) -> "FetchResult[T]":
        return cls(state=FetchState.FAILED, error=error, status_code=status_code)
