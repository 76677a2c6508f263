"""
Result types returned by public draft operations

Operations never raise to their callers; they return a tagged result that
callers branch on.
"""
from enum import Enum
from typing import Any, Optional, Literal, List
from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Failure taxonomy for draft operations."""
    NOT_AUTHENTICATED = "not_authenticated"
    NOT_AUTHORIZED = "not_authorized"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    STORE_ERROR = "store_error"
    UNEXPECTED = "unexpected"


class ActionResult(BaseModel):
    """Success/error discriminated result."""

    model_config = {"arbitrary_types_allowed": True}

    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    data: Any = None
    errors: List[str] = Field(default_factory=list, description="Per-item failures for bulk operations")

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None, **kwargs) -> 'ActionResult':
        return cls(success=True, data=data, message=message, **kwargs)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str, **kwargs) -> 'ActionResult':
        return cls(success=False, error_kind=kind, error=error, **kwargs)


TimerAction = Literal["none", "activated", "auto_drafted", "skipped", "completed", "error"]


class TimerCheckResult(BaseModel):
    """Outcome of a single draft timer check."""

    action: TimerAction = "none"
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_noop(self) -> bool:
        return self.action == "none"
