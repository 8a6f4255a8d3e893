"""
RedeSegura - Error Taxonomy
Exceptions raised by the report lifecycle and scoring engine.
"""

from typing import Optional


class RedeSeguraError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "detail": self.detail,
        }


class ValidationError(RedeSeguraError):
    """Malformed input, rejected before anything is persisted."""


class AuthorizationError(ValidationError):
    """A state transition was attempted without an administrator."""


class StateConflictError(RedeSeguraError):
    """The report has already left PENDING."""

    def __init__(self, report_id: str, status: str):
        super().__init__(
            f"Report {report_id} already processed (status={status})",
            {"report_id": report_id, "status": status},
        )
        self.report_id = report_id
        self.status = status


class RateLimitError(RedeSeguraError):
    """The user reached the daily submission cap."""

    def __init__(self, user_id: str, limit: int):
        super().__init__(
            f"Daily limit of {limit} reports reached",
            {"user_id": user_id, "limit": limit},
        )
        self.user_id = user_id
        self.limit = limit


class NotFoundError(RedeSeguraError):
    """The referenced report or user does not exist."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(
            f"{kind} {identifier} not found",
            {"kind": kind, "id": identifier},
        )
        self.kind = kind
        self.identifier = identifier
