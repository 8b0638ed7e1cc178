"""RetryableError and FatalError — the error contract with the host framework.

INVARIANT: Every failure that leaves ``invoke`` is an :class:`ActionError`.
The host reads ``retryable`` to decide between re-invoking the job later
and giving up. Nothing in this package retries on its own.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ErrorPayload(BaseModel):
    """Machine-readable view of a classified error."""

    model_config = {"frozen": True}

    code: str
    message: str
    retryable: bool
    detail: dict[str, Any] = Field(default_factory=dict)


class ActionError(Exception):
    """Base class for classified action failures.

    Attributes:
        message: Human-readable description, surfaced verbatim to the host.
        code: Stable identifier such as ``"USER_NOT_FOUND"``.
        detail: Optional structured context (never credentials).
    """

    retryable: bool = False
    default_code = "ACTION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail = dict(detail or {})

    def to_payload(self) -> ErrorPayload:
        return ErrorPayload(
            code=self.code,
            message=self.message,
            retryable=self.retryable,
            detail=self.detail,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class RetryableError(ActionError):
    """Transient upstream condition; re-invoking the job may succeed."""

    retryable = True
    default_code = "SERVICE_UNAVAILABLE"


class FatalError(ActionError):
    """Invalid input, missing resource, or unclassified failure."""

    retryable = False
    default_code = "FATAL"


def is_retryable(exc: BaseException) -> bool:
    """Whether *exc* signals the host that a retry may help."""
    return isinstance(exc, ActionError) and exc.retryable
