"""
Report store interface and in-memory implementation
Persistence boundary used by the report lifecycle engine
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Dict, Any

from redesegura.core.constants import ReportStatus, Tier
from redesegura.core.exceptions import NotFoundError
from redesegura.crowdsource.models import Report, Profile, Certificate, as_utc

logger = logging.getLogger(__name__)


class ReportStore(ABC):
    """
    Storage operations the engine relies on.

    update_report_status must be conditional: it applies only while the
    report is still PENDING, so two concurrent transitions cannot both win.
    """

    @abstractmethod
    def insert_report(self, report: Report) -> Report:
        """Persist a new report."""

    @abstractmethod
    def get_report(self, report_id: str) -> Optional[Report]:
        """Get report by ID."""

    @abstractmethod
    def list_reports(
        self,
        user_id: Optional[str] = None,
        status: Optional[ReportStatus] = None,
        since: Optional[datetime] = None,
        with_location: bool = False
    ) -> List[Report]:
        """
        List reports, newest first.

        Args:
            user_id: Only reports owned by this user
            status: Only reports in this status
            since: Only reports created at or after this instant
            with_location: Only reports carrying coordinates

        Returns:
            Matching reports ordered by created_at descending
        """

    def count_reports(self, user_id: str, since: datetime) -> int:
        """Count a user's reports created at or after `since`."""
        return len(self.list_reports(user_id=user_id, since=since))

    @abstractmethod
    def update_report_status(
        self,
        report_id: str,
        fields: Dict[str, Any],
        points: int = 0
    ) -> Optional[Report]:
        """
        Apply a terminal transition if the report is still PENDING.

        Args:
            report_id: Report ID
            fields: status, validated_at, validated_by and optionally severity
            points: Points credited to the report owner in the same step

        Returns:
            Updated report, or None when the report already left PENDING
        """

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[Profile]:
        """Get profile by user ID."""

    @abstractmethod
    def save_profile(self, profile: Profile) -> Profile:
        """Create or replace a profile."""

    @abstractmethod
    def upsert_certificate(
        self,
        user_id: str,
        tier: Tier,
        verify_code: str,
        issued_at: datetime
    ) -> Certificate:
        """Insert or overwrite the certificate for (user, tier)."""

    @abstractmethod
    def list_certificates(self, user_id: str) -> List[Certificate]:
        """Certificates issued to a user."""


class InMemoryReportStore(ReportStore):
    """
    Dictionary-backed store.

    Returns copies so callers never mutate stored records directly.
    """

    def __init__(self):
        self._reports: Dict[str, Report] = {}
        self._profiles: Dict[str, Profile] = {}
        self._certificates: Dict[tuple, Certificate] = {}
        self._lock = threading.Lock()

        logger.info("InMemoryReportStore initialized")

    def insert_report(self, report: Report) -> Report:
        stored = copy.copy(report)
        stored.created_at = as_utc(stored.created_at)
        with self._lock:
            self._reports[stored.id] = stored
        return copy.copy(stored)

    def get_report(self, report_id: str) -> Optional[Report]:
        report = self._reports.get(report_id)
        return copy.copy(report) if report else None

    def list_reports(
        self,
        user_id: Optional[str] = None,
        status: Optional[ReportStatus] = None,
        since: Optional[datetime] = None,
        with_location: bool = False
    ) -> List[Report]:
        with self._lock:
            reports = list(self._reports.values())

        if user_id is not None:
            reports = [r for r in reports if r.user_id == user_id]
        if status is not None:
            reports = [r for r in reports if r.status == status]
        if since is not None:
            since = as_utc(since)
            reports = [r for r in reports if r.created_at >= since]
        if with_location:
            reports = [r for r in reports if r.has_location]

        reports.sort(key=lambda r: r.created_at, reverse=True)
        return [copy.copy(r) for r in reports]

    def update_report_status(
        self,
        report_id: str,
        fields: Dict[str, Any],
        points: int = 0
    ) -> Optional[Report]:
        with self._lock:
            report = self._reports.get(report_id)
            if report is None or report.status != ReportStatus.PENDING:
                return None

            owner = self._profiles.get(report.user_id)
            if points and owner is None:
                raise NotFoundError("Profile", report.user_id)

            for name, value in fields.items():
                setattr(report, name, value)
            if points:
                owner.points += points

            return copy.copy(report)

    def get_profile(self, user_id: str) -> Optional[Profile]:
        profile = self._profiles.get(user_id)
        return copy.copy(profile) if profile else None

    def save_profile(self, profile: Profile) -> Profile:
        with self._lock:
            self._profiles[profile.id] = copy.copy(profile)
        return copy.copy(profile)

    def upsert_certificate(
        self,
        user_id: str,
        tier: Tier,
        verify_code: str,
        issued_at: datetime
    ) -> Certificate:
        certificate = Certificate(
            user_id=user_id,
            tier=tier,
            verify_code=verify_code,
            issued_at=issued_at,
        )
        with self._lock:
            self._certificates[(user_id, tier)] = certificate
        return copy.copy(certificate)

    def list_certificates(self, user_id: str) -> List[Certificate]:
        order = list(Tier)
        certificates = [
            copy.copy(c) for (owner, _), c in self._certificates.items()
            if owner == user_id
        ]
        certificates.sort(key=lambda c: order.index(c.tier))
        return certificates
