"""Result type for calls to external services.

Each external call returns a LookupResult instead of raising, so the call
site decides explicitly what to fall back to.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class LookupResult(BaseModel, Generic[T]):
    """Outcome of a single external lookup.

    Attributes:
        success: Whether the lookup produced a value
        value: Looked-up value (None on failure)
        error: Error message if the lookup failed
        source: Name of the service that was asked
    """

    success: bool
    value: T | None = None
    error: str | None = None
    source: str

    @classmethod
    def ok(cls, value: T, source: str) -> "LookupResult[T]":
        return cls(success=True, value=value, source=source)

    @classmethod
    def failed(cls, error: str, source: str) -> "LookupResult[T]":
        return cls(success=False, error=error, source=source)
