"""Result type for use case outcomes

Use cases never raise to their callers: they return ``Return.ok(value)`` or
``Return.err(Error(...))`` and the API layer decides how to present errors.
"""

from typing import Any, Dict, Generic, Optional, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class Error(BaseModel):
    """Structured error carried by a failed Result"""

    code: str = Field(..., description="Machine readable error code")
    message: str = Field(..., description="Human readable message")
    reason: Optional[str] = Field(default=None, description="Underlying cause")
    suggestion: Optional[str] = Field(default=None, description="Actionable hint for the caller")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Extra diagnostic data")
    retryable: bool = Field(default=False, description="True when the caller may retry as is")


class Result(Generic[T]):
    def __init__(self, value: Optional[T] = None, error: Optional[Error] = None):
        self.value = value
        self.error = error

    def is_ok(self) -> bool:
        return self.error is None

    def is_err(self) -> bool:
        return self.error is not None

    def __repr__(self) -> str:
        if self.is_ok():
            return f"Ok({self.value!r})"
        return f"Err({self.error.code}: {self.error.message})"


class Return:
    @staticmethod
    def ok(value: Any = None) -> Result:
        return Result(value=value)

    @staticmethod
    def err(error: Error) -> Result:
        return Result(error=error)
