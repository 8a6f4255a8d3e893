"""
Hazard report handler for crowdsourced data
Receives citizen reports and applies administrator decisions
"""

import logging
import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any

from redesegura.core.config import settings
from redesegura.core.constants import Severity, ReportStatus, UserRole
from redesegura.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from redesegura.crowdsource.models import (
    Actor,
    Profile,
    Report,
    ReportDraft,
    as_utc,
    utcnow,
)
from redesegura.crowdsource.rate_limiter import DailySubmissionLimiter
from redesegura.crowdsource.scoring import (
    calculate_risk_score,
    get_ai_classification,
)
from redesegura.database.store import ReportStore, InMemoryReportStore

logger = logging.getLogger(__name__)


def points_for(severity: Severity) -> int:
    """Points credited to the reporter when a report is validated."""
    if Severity(severity) == Severity.HIGH:
        return settings.points_high_severity
    return settings.points_default


class ReportHandler:
    """
    Handles hazard reports from citizens.

    Reports enter as PENDING and leave it exactly once, through validate()
    or reject(). The store's conditional update decides which of two
    concurrent administrator actions wins.
    """

    def __init__(
        self,
        store: Optional[ReportStore] = None,
        limiter: Optional[DailySubmissionLimiter] = None
    ):
        """
        Initialize report handler.

        Args:
            store: Backend for reports and profiles (default: in-memory)
            limiter: Daily submission limiter (default: built on the store)
        """
        self.store = store or InMemoryReportStore()
        self.limiter = limiter or DailySubmissionLimiter(self.store)

        logger.info("ReportHandler initialized")

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def ensure_profile(self, actor: Actor, name: str = "") -> Profile:
        """Get the actor's profile, creating it on first sight."""
        profile = self.store.get_profile(actor.user_id)
        if profile is None:
            profile = self.store.save_profile(
                Profile(id=actor.user_id, name=name, role=actor.role)
            )
            logger.info(f"Profile created: {actor.user_id} ({actor.role.value})")
        return profile

    def get_profile(self, user_id: str) -> Profile:
        profile = self.store.get_profile(user_id)
        if profile is None:
            raise NotFoundError("Profile", user_id)
        return profile

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(
        self,
        actor: Actor,
        draft: ReportDraft,
        now: Optional[datetime] = None
    ) -> Report:
        """
        Create a new PENDING report.

        Args:
            actor: Submitting citizen
            draft: Report fields entered by the citizen
            now: Submission time (default: current UTC time)

        Returns:
            Stored report with its risk score and classification

        Raises:
            ValidationError: If the draft is malformed
            NotFoundError: If the actor has no profile
            RateLimitError: If the daily cap is reached
        """
        draft.validate()
        self.get_profile(actor.user_id)

        now = as_utc(now) or utcnow()
        self.limiter.check(actor.user_id, now)

        report = Report(
            id=str(uuid.uuid4()),
            user_id=actor.user_id,
            type=draft.type,
            severity=draft.severity,
            risk_score=calculate_risk_score(
                draft.severity,
                draft.has_location,
                len(draft.description),
            ),
            description=draft.description,
            status=ReportStatus.PENDING,
            latitude=draft.latitude,
            longitude=draft.longitude,
            address_text=draft.address_text or None,
            photo_url=draft.photo_url,
            ai_classification=get_ai_classification(draft.type),
            created_at=now,
        )
        report = self.store.insert_report(report)

        logger.info(
            f"New report created: {report.id} by {actor.user_id} "
            f"({report.type}, {report.severity.value}, score={report.risk_score})"
        )
        return report

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_report(self, report_id: str) -> Report:
        report = self.store.get_report(report_id)
        if report is None:
            raise NotFoundError("Report", report_id)
        return report

    def get_pending_reports(self) -> List[Report]:
        """Validation queue, newest first."""
        return self.store.list_reports(status=ReportStatus.PENDING)

    def get_user_reports(
        self,
        user_id: str,
        status: Optional[ReportStatus] = None
    ) -> List[Report]:
        return self.store.list_reports(user_id=user_id, status=status)

    def list_reports(self, **filters: Any) -> List[Report]:
        return self.store.list_reports(**filters)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def validate(
        self,
        report_id: str,
        admin: Optional[Actor],
        severity_override: Optional[Severity] = None,
        now: Optional[datetime] = None
    ) -> Report:
        """
        Confirm a pending report and credit its owner.

        A severity override replaces the stored severity but the risk
        score keeps the value computed at submission.

        Raises:
            AuthorizationError: If no administrator is acting
            NotFoundError: If the report does not exist
            StateConflictError: If the report already left PENDING
        """
        self.require_admin(admin)
        report = self._get_pending(report_id)

        severity = report.severity
        fields: Dict[str, Any] = {
            "status": ReportStatus.VALIDATED,
            "validated_at": as_utc(now) or utcnow(),
            "validated_by": admin.user_id,
        }
        if severity_override is not None:
            try:
                override = Severity(severity_override)
            except ValueError:
                raise ValidationError(
                    f"Invalid severity: {severity_override}", {"field": "severity"}
                ) from None
            if override != report.severity:
                fields["severity"] = override
                severity = override

        points = points_for(severity)
        updated = self._transition(report_id, fields, points)

        logger.info(
            f"Report {report_id} status: PENDING -> VALIDATED by {admin.user_id} "
            f"(+{points} points to {updated.user_id})"
        )
        return updated

    def reject(
        self,
        report_id: str,
        admin: Optional[Actor],
        now: Optional[datetime] = None
    ) -> Report:
        """
        Reject a pending report. No points are awarded.

        Raises:
            AuthorizationError: If no administrator is acting
            NotFoundError: If the report does not exist
            StateConflictError: If the report already left PENDING
        """
        self.require_admin(admin)
        self._get_pending(report_id)

        fields = {
            "status": ReportStatus.REJECTED,
            "validated_at": as_utc(now) or utcnow(),
            "validated_by": admin.user_id,
        }
        updated = self._transition(report_id, fields, points=0)

        logger.info(f"Report {report_id} status: PENDING -> REJECTED by {admin.user_id}")
        return updated

    def require_admin(self, admin: Optional[Actor]) -> None:
        if admin is None or not admin.user_id:
            raise AuthorizationError("An administrator is required for this action")
        if admin.role != UserRole.ADMIN:
            raise AuthorizationError(
                f"User {admin.user_id} is not an administrator",
                {"user_id": admin.user_id, "role": admin.role.value},
            )

    def _get_pending(self, report_id: str) -> Report:
        report = self.get_report(report_id)
        if report.status.is_terminal:
            logger.warning(f"Report {report_id} already processed ({report.status.value})")
            raise StateConflictError(report_id, report.status.value)
        return report

    def _transition(
        self,
        report_id: str,
        fields: Dict[str, Any],
        points: int
    ) -> Report:
        updated = self.store.update_report_status(report_id, fields, points=points)
        if updated is None:
            # Another administrator got there first
            current = self.get_report(report_id)
            logger.warning(f"Report {report_id} lost transition race ({current.status.value})")
            raise StateConflictError(report_id, current.status.value)
        return updated


def create_report(
    actor: Actor,
    draft: ReportDraft,
    handler: Optional[ReportHandler] = None
) -> Report:
    """
    Convenience function to submit a hazard report.

    Args:
        actor: Submitting citizen
        draft: Report fields
        handler: Handler to use (default: fresh in-memory handler)

    Returns:
        Created Report
    """
    handler = handler or ReportHandler()
    handler.ensure_profile(actor)
    return handler.submit(actor, draft)
