"""
Result type for composite library operations.

Store and desk operations never raise for not-found or state-conflict
conditions. They report back with an ``Outcome`` instead, which is truthy
on success so callers can write ``if desk.borrow(...):``.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FailureReason(str, Enum):
    """Why an operation was refused."""

    NOT_FOUND = "NOT_FOUND"
    STATE_CONFLICT = "STATE_CONFLICT"
    LIMIT_REACHED = "LIMIT_REACHED"
    DUPLICATE = "DUPLICATE"
    INVALID_INPUT = "INVALID_INPUT"


class Outcome(BaseModel):
    """Success or failure of an operation, with a readable message."""

    ok: bool = Field(
        ...,
        description="Whether the operation took effect",
    )

    reason: FailureReason | None = Field(
        default=None,
        description="Failure category; None on success",
    )

    message: str = Field(
        default="",
        description="Human-readable explanation",
    )

    @classmethod
    def success(cls, message: str = "") -> "Outcome":
        return cls(ok=True, message=message)

    @classmethod
    def failure(cls, reason: FailureReason, message: str) -> "Outcome":
        return cls(ok=False, reason=reason, message=message)

    def __bool__(self) -> bool:
        return self.ok

    model_config = ConfigDict(frozen=True)
