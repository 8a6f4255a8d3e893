"""
RedeSegura - Crowdsource Module
Handles citizen hazard reports, scoring and validation.
"""

from redesegura.crowdsource.models import (
    Actor,
    Profile,
    Report,
    ReportDraft,
    Certificate,
)
from redesegura.crowdsource.scoring import (
    calculate_risk_score,
    get_ai_classification,
    get_educational_message,
)
from redesegura.crowdsource.rate_limiter import DailySubmissionLimiter
from redesegura.crowdsource.report_handler import (
    ReportHandler,
    create_report,
    points_for,
)

__all__ = [
    # Records
    "Actor",
    "Profile",
    "Report",
    "ReportDraft",
    "Certificate",
    # Scoring
    "calculate_risk_score",
    "get_ai_classification",
    "get_educational_message",
    # Lifecycle
    "DailySubmissionLimiter",
    "ReportHandler",
    "create_report",
    "points_for",
]
