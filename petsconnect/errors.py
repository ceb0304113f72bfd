"""
petsconnect.errors — Domain Exception Taxonomy
===============================================

Every failure the core reports to a caller is a :class:`PetsConnectError`
subclass.  Each class carries the HTTP status the API layer maps it to,
so routes never translate errors by hand.
"""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
    _HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # older Starlette
    _HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class PetsConnectError(Exception):
    """Base class for feed and engagement errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "petsconnect_error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail

    def to_dict(self) -> dict:
        """Payload rendered by the API exception handler."""
        return {"detail": self.detail}


class NotFound(PetsConnectError):
    """Post, profile, board, comment or task is missing."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "not_found"


class DuplicateAction(PetsConnectError):
    """A uniqueness constraint rejected the write.

    Toggle handlers swallow this into a no-op; save-to-board, friend
    requests and task completion surface it as an informational notice.
    """

    status_code = status.HTTP_409_CONFLICT
    detail = "already_done"

    def to_dict(self) -> dict:
        return {"detail": self.detail, "notice": True}


class InsufficientPoints(PetsConnectError):
    """A debit asked for more points than the profile holds."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED
    detail = "insufficient_points"

    def __init__(self, *, required: int, balance: int) -> None:
        self.required = required
        self.balance = balance
        super().__init__(
            f"You need {self.shortfall} more points "
            f"({required} required, {balance} available)."
        )

    @property
    def shortfall(self) -> int:
        return max(self.required - self.balance, 0)

    def to_dict(self) -> dict:
        return {
            "detail": self.detail,
            "required": self.required,
            "balance": self.balance,
            "shortfall": self.shortfall,
        }


class NotAuthorized(PetsConnectError):
    """Actor may not perform this action (e.g. boosting someone else's post)."""

    status_code = status.HTTP_403_FORBIDDEN
    detail = "not_authorized"


class ValidationFailed(PetsConnectError):
    """Input rejected by a rule pydantic cannot express."""

    status_code = _HTTP_422
    detail = "validation_error"


class UpstreamFailure(PetsConnectError):
    """The persistence layer failed; the caller may retry reads."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "upstream_failure"
