"""
Tests for report submission, the daily limiter and the validation workflow
"""
import threading
from datetime import datetime, timedelta, timezone

import pytest

import sys
sys.path.insert(0, '.')

from conftest import ADMIN_ID, CITIZEN_ID, make_draft
from redesegura.core.constants import ReportStatus, Severity, UserRole
from redesegura.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    RateLimitError,
    StateConflictError,
    ValidationError,
)
from redesegura.crowdsource.models import Actor
from redesegura.crowdsource.rate_limiter import DailySubmissionLimiter
from redesegura.crowdsource.report_handler import ReportHandler, create_report


class TestSubmission:
    """Test suite for report submission."""

    def test_end_to_end_high_severity(self, handler, store, citizen, admin, long_description):
        """Test HIGH, geolocated, 150 chars -> score 100, validated -> +25 points."""
        report = handler.submit(citizen, make_draft(description=long_description))

        assert report.risk_score == 100
        assert report.status == ReportStatus.PENDING
        assert report.ai_classification == "Cabo energizado detectado"

        validated = handler.validate(report.id, admin)

        assert validated.status == ReportStatus.VALIDATED
        assert validated.validated_by == ADMIN_ID
        assert validated.validated_at is not None
        assert store.get_profile(CITIZEN_ID).points == 25

    def test_score_without_location(self, handler, citizen):
        report = handler.submit(
            citizen,
            make_draft(severity=Severity.LOW, latitude=None, longitude=None, description="curto"),
        )
        assert report.risk_score == 30
        assert report.latitude is None and report.longitude is None

    def test_description_too_long(self, handler, store, citizen):
        """Test 281 characters is rejected before persistence."""
        with pytest.raises(ValidationError):
            handler.submit(citizen, make_draft(description="x" * 281))
        assert store.list_reports() == []

    def test_description_at_limit(self, handler, citizen):
        report = handler.submit(citizen, make_draft(description="x" * 280))
        assert len(report.description) == 280

    def test_half_coordinate_pair(self, handler, citizen):
        with pytest.raises(ValidationError):
            handler.submit(citizen, make_draft(longitude=None))

    def test_out_of_range_latitude(self, handler, citizen):
        with pytest.raises(ValidationError):
            handler.submit(citizen, make_draft(latitude=91.0))

    def test_invalid_severity(self, handler, citizen):
        with pytest.raises(ValidationError):
            handler.submit(citizen, make_draft(severity="CRITICAL"))

    def test_unknown_hazard_type(self, handler, citizen):
        with pytest.raises(ValidationError):
            handler.submit(citizen, make_draft(type="Raio"))

    def test_missing_hazard_type(self, handler, citizen):
        with pytest.raises(ValidationError):
            handler.submit(citizen, make_draft(type=""))

    def test_unknown_user(self, handler):
        stranger = Actor(user_id="nobody")
        with pytest.raises(NotFoundError):
            handler.submit(stranger, make_draft())

    def test_empty_address_stored_as_none(self, handler, citizen):
        report = handler.submit(citizen, make_draft(address_text=""))
        assert report.address_text is None


class TestDailyLimiter:
    """Test suite for the daily submission cap."""

    def test_fourth_submission_rejected(self, handler, store, citizen):
        """Test the cap of 3 reports per day."""
        for _ in range(3):
            handler.submit(citizen, make_draft())

        with pytest.raises(RateLimitError):
            handler.submit(citizen, make_draft())

        assert len(store.list_reports(user_id=CITIZEN_ID)) == 3

    def test_count_submitted_today(self, handler, citizen):
        now = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)
        handler.submit(citizen, make_draft(), now=now - timedelta(hours=2))
        handler.submit(citizen, make_draft(), now=now - timedelta(hours=1))

        assert handler.limiter.count_submitted_today(CITIZEN_ID, now) == 2
        assert handler.limiter.remaining(CITIZEN_ID, now) == 1

    def test_yesterday_does_not_count(self, handler, citizen):
        """Test the window starts at midnight."""
        yesterday = datetime(2026, 10, 18, 23, 30, tzinfo=timezone.utc)
        today = datetime(2026, 10, 19, 0, 30, tzinfo=timezone.utc)

        for _ in range(3):
            handler.submit(citizen, make_draft(), now=yesterday)

        report = handler.submit(citizen, make_draft(), now=today)
        assert report.status == ReportStatus.PENDING
        assert handler.limiter.count_submitted_today(CITIZEN_ID, today) == 1

    def test_other_users_do_not_count(self, handler, store, citizen):
        other = Actor(user_id="other-user")
        handler.ensure_profile(other)
        for _ in range(3):
            handler.submit(other, make_draft())

        assert handler.limiter.count_submitted_today(CITIZEN_ID) == 0
        handler.submit(citizen, make_draft())

    def test_custom_limit(self, store, citizen):
        limiter = DailySubmissionLimiter(store, limit=1, tz=timezone.utc)
        handler = ReportHandler(store, limiter=limiter)
        assert limiter.check(CITIZEN_ID) == 0

        handler.submit(citizen, make_draft())

        with pytest.raises(RateLimitError):
            handler.submit(citizen, make_draft())

    def test_naive_times_are_utc(self, handler, citizen):
        """Test naive submission times are stored as UTC and still counted."""
        first = handler.submit(citizen, make_draft(), now=datetime(2026, 10, 19, 10, 0))
        handler.submit(citizen, make_draft(), now=datetime(2026, 10, 19, 11, 0))

        assert first.created_at == datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)
        assert handler.limiter.count_submitted_today(
            CITIZEN_ID, datetime(2026, 10, 19, 12, 0)
        ) == 2

    def test_start_of_day_in_local_timezone(self, store):
        """Test midnight follows the configured timezone."""
        brasilia = timezone(timedelta(hours=-3))
        limiter = DailySubmissionLimiter(store, tz=brasilia)

        start = limiter.start_of_day(datetime(2026, 10, 19, 2, 0, tzinfo=timezone.utc))

        # 02:00 UTC is still the 18th in Brasilia
        assert start == datetime(2026, 10, 18, 0, 0, tzinfo=brasilia)


class TestStateMachine:
    """Test suite for validate/reject transitions."""

    def setup_method(self):
        self.now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def _pending(self, handler, citizen, **overrides):
        return handler.submit(citizen, make_draft(**overrides))

    def test_validate_medium_awards_15(self, handler, store, citizen, admin):
        report = self._pending(handler, citizen, severity=Severity.MEDIUM)
        handler.validate(report.id, admin, now=self.now)

        assert store.get_profile(CITIZEN_ID).points == 15
        assert store.get_report(report.id).validated_at == self.now

    def test_validate_low_awards_15(self, handler, store, citizen, admin):
        report = self._pending(handler, citizen, severity=Severity.LOW)
        handler.validate(report.id, admin)
        assert store.get_profile(CITIZEN_ID).points == 15

    def test_second_validate_conflicts(self, handler, store, citizen, admin):
        """Test validate succeeds exactly once."""
        report = self._pending(handler, citizen)
        handler.validate(report.id, admin)

        with pytest.raises(StateConflictError):
            handler.validate(report.id, admin)

        assert store.get_report(report.id).status == ReportStatus.VALIDATED
        assert store.get_profile(CITIZEN_ID).points == 25

    def test_reject_after_validate_conflicts(self, handler, store, citizen, admin):
        report = self._pending(handler, citizen)
        handler.validate(report.id, admin)

        with pytest.raises(StateConflictError):
            handler.reject(report.id, admin)

        assert store.get_report(report.id).status == ReportStatus.VALIDATED
        assert store.get_profile(CITIZEN_ID).points == 25

    def test_validate_after_reject_conflicts(self, handler, store, citizen, admin):
        report = self._pending(handler, citizen)
        handler.reject(report.id, admin)

        with pytest.raises(StateConflictError):
            handler.validate(report.id, admin)

        assert store.get_report(report.id).status == ReportStatus.REJECTED
        assert store.get_profile(CITIZEN_ID).points == 0

    def test_naive_decision_time(self, handler, store, citizen, admin):
        first = self._pending(handler, citizen)
        second = self._pending(handler, citizen)

        validated = handler.validate(first.id, admin, now=datetime(2026, 10, 19, 12, 0))
        rejected = handler.reject(second.id, admin, now=datetime(2026, 10, 19, 12, 0))

        assert validated.validated_at == self.now
        assert rejected.validated_at == self.now

    def test_reject_awards_nothing(self, handler, store, citizen, admin):
        report = self._pending(handler, citizen)
        rejected = handler.reject(report.id, admin, now=self.now)

        assert rejected.status == ReportStatus.REJECTED
        assert rejected.validated_by == ADMIN_ID
        assert rejected.validated_at == self.now
        assert store.get_profile(CITIZEN_ID).points == 0

    def test_severity_override_keeps_score(self, handler, store, citizen, admin):
        """Test override changes severity, never the risk score."""
        report = self._pending(handler, citizen, severity=Severity.HIGH)
        original_score = report.risk_score

        validated = handler.validate(report.id, admin, severity_override=Severity.LOW)

        assert validated.severity == Severity.LOW
        assert validated.risk_score == original_score
        # Points follow the post-override severity
        assert store.get_profile(CITIZEN_ID).points == 15

    def test_override_to_high_awards_25(self, handler, store, citizen, admin):
        report = self._pending(handler, citizen, severity=Severity.MEDIUM)
        validated = handler.validate(report.id, admin, severity_override="HIGH")

        assert validated.severity == Severity.HIGH
        assert validated.risk_score == report.risk_score
        assert store.get_profile(CITIZEN_ID).points == 25

    def test_invalid_override(self, handler, store, citizen, admin):
        report = self._pending(handler, citizen)
        with pytest.raises(ValidationError):
            handler.validate(report.id, admin, severity_override="EXTREME")
        assert store.get_report(report.id).status == ReportStatus.PENDING

    def test_missing_admin(self, handler, store, citizen):
        report = self._pending(handler, citizen)
        with pytest.raises(AuthorizationError):
            handler.validate(report.id, None)
        assert store.get_report(report.id).status == ReportStatus.PENDING

    def test_non_admin_cannot_reject(self, handler, store, citizen):
        report = self._pending(handler, citizen)
        with pytest.raises(AuthorizationError):
            handler.reject(report.id, citizen)
        assert store.get_report(report.id).status == ReportStatus.PENDING

    def test_unknown_report(self, handler, admin):
        with pytest.raises(NotFoundError):
            handler.validate("missing", admin)

    def test_points_accumulate(self, handler, store, citizen, admin):
        first = self._pending(handler, citizen, severity=Severity.HIGH)
        second = self._pending(handler, citizen, severity=Severity.MEDIUM)
        handler.validate(first.id, admin)
        handler.validate(second.id, admin)
        assert store.get_profile(CITIZEN_ID).points == 40

    def test_pending_queue(self, handler, citizen, admin):
        first = self._pending(handler, citizen)
        second = self._pending(handler, citizen)
        handler.reject(first.id, admin)

        assert [r.id for r in handler.get_pending_reports()] == [second.id]

    def test_concurrent_validations_single_winner(self, handler, store, citizen):
        """Test two administrators racing on one report: exactly one wins."""
        report = self._pending(handler, citizen)
        admins = [Actor(user_id=f"admin-{i}", role=UserRole.ADMIN) for i in range(2)]
        barrier = threading.Barrier(len(admins))
        outcomes = []

        def act(actor):
            barrier.wait()
            try:
                handler.validate(report.id, actor)
                outcomes.append("ok")
            except StateConflictError:
                outcomes.append("conflict")

        threads = [threading.Thread(target=act, args=(a,)) for a in admins]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["conflict", "ok"]
        assert store.get_profile(CITIZEN_ID).points == 25


class TestInMemoryStore:
    """Test suite for the conditional status update."""

    def test_update_only_while_pending(self, handler, store, citizen):
        report = handler.submit(citizen, make_draft())
        fields = {"status": ReportStatus.REJECTED, "validated_by": ADMIN_ID}

        assert store.update_report_status(report.id, fields) is not None
        assert store.update_report_status(report.id, fields) is None

    def test_returned_records_are_copies(self, handler, store, citizen):
        report = handler.submit(citizen, make_draft())
        report.status = ReportStatus.VALIDATED
        assert store.get_report(report.id).status == ReportStatus.PENDING


class TestCreateReport:
    """Test suite for the convenience function."""

    def test_creates_profile_and_report(self):
        actor = Actor(user_id="new-citizen")
        handler = ReportHandler()

        report = create_report(actor, make_draft(severity="MEDIUM"), handler=handler)

        assert report.status == ReportStatus.PENDING
        assert report.severity == Severity.MEDIUM
        assert handler.get_profile("new-citizen").points == 0
