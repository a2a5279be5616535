"""
Core schemas - the uniform result envelope returned by every auth entry point.

Success bodies are parametrized per endpoint, e.g.
``ActionSuccess[AccountIdData](data=AccountIdData(account_id=...))``.
"""

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field

from apps.core.exceptions import AuthError, ErrorCode

T = TypeVar("T")


class ActionSuccess(BaseModel, Generic[T]):
    """Successful result: ``{"success": true, "data": ...}``."""

    success: Literal[True] = True
    data: T


class ActionFailure(BaseModel):
    """Failed result: ``{"success": false, "error": ..., "code": ...}``."""

    success: Literal[False] = False
    error: str = Field(..., description="Human-readable error message")
    code: ErrorCode = Field(..., description="Failure category")

    model_config = {
        "json_schema_extra": {
            "example": {"success": False, "error": "User not found", "code": "not_found"}
        }
    }


def fail(error: AuthError | str, code: ErrorCode = ErrorCode.BACKEND_FAILURE) -> ActionFailure:
    """Build a failure envelope from an AuthError or a plain message."""
    if isinstance(error, AuthError):
        return ActionFailure(error=error.message, code=error.code)
    return ActionFailure(error=error, code=code)
