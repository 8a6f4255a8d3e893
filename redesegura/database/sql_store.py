"""
SQLAlchemy-backed report store
Conditional status updates enforce at-most-once transitions per report
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlalchemy import select, update, func

from redesegura.core.constants import ReportStatus, Tier
from redesegura.core.exceptions import NotFoundError
from redesegura.crowdsource.models import Report, Profile, Certificate
from .connection import DatabaseConnection
from .models import ProfileRecord, ReportRecord, CertificateRecord, as_utc
from .store import ReportStore

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = ("validated_at", "created_at", "issued_at")


class SQLReportStore(ReportStore):
    """
    Report store on top of a DatabaseConnection.

    Timestamps are written in UTC so SQLite and PostgreSQL compare alike.
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db
        logger.info("SQLReportStore initialized")

    def insert_report(self, report: Report) -> Report:
        record = ReportRecord.from_domain(report)
        record.created_at = as_utc(record.created_at)
        with self.db.get_session() as session:
            session.add(record)
            session.flush()
            return record.to_domain()

    def get_report(self, report_id: str) -> Optional[Report]:
        with self.db.get_session() as session:
            record = session.get(ReportRecord, report_id)
            return record.to_domain() if record else None

    def list_reports(
        self,
        user_id: Optional[str] = None,
        status: Optional[ReportStatus] = None,
        since: Optional[datetime] = None,
        with_location: bool = False
    ) -> List[Report]:
        query = select(ReportRecord)
        if user_id is not None:
            query = query.where(ReportRecord.user_id == user_id)
        if status is not None:
            query = query.where(ReportRecord.status == status)
        if since is not None:
            query = query.where(ReportRecord.created_at >= as_utc(since))
        if with_location:
            query = query.where(
                ReportRecord.latitude.is_not(None),
                ReportRecord.longitude.is_not(None),
            )
        query = query.order_by(ReportRecord.created_at.desc())

        with self.db.get_session() as session:
            return [r.to_domain() for r in session.scalars(query)]

    def count_reports(self, user_id: str, since: datetime) -> int:
        query = (
            select(func.count())
            .select_from(ReportRecord)
            .where(
                ReportRecord.user_id == user_id,
                ReportRecord.created_at >= as_utc(since),
            )
        )
        with self.db.get_session() as session:
            return session.execute(query).scalar_one()

    def update_report_status(
        self,
        report_id: str,
        fields: Dict[str, Any],
        points: int = 0
    ) -> Optional[Report]:
        values = {
            name: as_utc(value) if name in _DATETIME_FIELDS else value
            for name, value in fields.items()
        }

        with self.db.get_session() as session:
            result = session.execute(
                update(ReportRecord)
                .where(
                    ReportRecord.id == report_id,
                    ReportRecord.status == ReportStatus.PENDING,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None

            record = session.execute(
                select(ReportRecord).where(ReportRecord.id == report_id)
            ).scalar_one()

            if points:
                credited = session.execute(
                    update(ProfileRecord)
                    .where(ProfileRecord.id == record.user_id)
                    .values(points=ProfileRecord.points + points)
                    .execution_options(synchronize_session=False)
                )
                if credited.rowcount != 1:
                    # Rolls back the status change as well
                    raise NotFoundError("Profile", record.user_id)

            return record.to_domain()

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with self.db.get_session() as session:
            record = session.get(ProfileRecord, user_id)
            return record.to_domain() if record else None

    def save_profile(self, profile: Profile) -> Profile:
        with self.db.get_session() as session:
            record = session.get(ProfileRecord, profile.id)
            if record is None:
                record = ProfileRecord.from_domain(profile)
                record.created_at = as_utc(record.created_at)
                session.add(record)
            else:
                record.name = profile.name
                record.role = profile.role
                record.points = profile.points
            session.flush()
            return record.to_domain()

    def upsert_certificate(
        self,
        user_id: str,
        tier: Tier,
        verify_code: str,
        issued_at: datetime
    ) -> Certificate:
        with self.db.get_session() as session:
            record = session.execute(
                select(CertificateRecord).where(
                    CertificateRecord.user_id == user_id,
                    CertificateRecord.tier == tier,
                )
            ).scalar_one_or_none()

            if record is None:
                record = CertificateRecord(user_id=user_id, tier=tier)
                session.add(record)

            record.verify_code = verify_code
            record.issued_at = as_utc(issued_at)
            session.flush()
            return record.to_domain()

    def list_certificates(self, user_id: str) -> List[Certificate]:
        order = list(Tier)
        with self.db.get_session() as session:
            records = session.scalars(
                select(CertificateRecord).where(CertificateRecord.user_id == user_id)
            ).all()
            certificates = [r.to_domain() for r in records]
        certificates.sort(key=lambda c: order.index(c.tier))
        return certificates
