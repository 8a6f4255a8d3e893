"""
RedeSegura - Core Utilities
Central configuration, reference data and error types.
"""

from redesegura.core.config import settings
from redesegura.core.constants import (
    Severity,
    ReportStatus,
    UserRole,
    Tier,
    HAZARD_TYPES,
    CERTIFICATE_CRITERIA,
)
from redesegura.core.exceptions import (
    RedeSeguraError,
    ValidationError,
    AuthorizationError,
    StateConflictError,
    RateLimitError,
    NotFoundError,
)

__all__ = [
    "settings",
    "Severity",
    "ReportStatus",
    "UserRole",
    "Tier",
    "HAZARD_TYPES",
    "CERTIFICATE_CRITERIA",
    "RedeSeguraError",
    "ValidationError",
    "AuthorizationError",
    "StateConflictError",
    "RateLimitError",
    "NotFoundError",
]
