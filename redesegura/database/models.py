"""
SQLAlchemy models for RedeSegura
Profiles, hazard reports and issued certificates
"""

from sqlalchemy import (
    Column, Integer, Float, String, Text,
    DateTime, ForeignKey, Index, UniqueConstraint, CheckConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import declarative_base, relationship

from redesegura.core.constants import Severity, ReportStatus, UserRole, Tier
from redesegura.crowdsource import models as domain
from redesegura.crowdsource.models import as_utc, utcnow

Base = declarative_base()


class ProfileRecord(Base):
    """
    Citizen or administrator profile.

    Created by the identity provider on first sign-in.
    """
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(200), nullable=False, default="")
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.USER)
    points = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    reports = relationship("ReportRecord", back_populates="owner")
    certificates = relationship("CertificateRecord", back_populates="owner")

    def __repr__(self):
        return f"<ProfileRecord({self.id}, role={self.role.value}, points={self.points})>"

    @classmethod
    def from_domain(cls, profile: domain.Profile) -> "ProfileRecord":
        return cls(
            id=profile.id,
            name=profile.name,
            role=profile.role,
            points=profile.points,
            created_at=profile.created_at,
        )

    def to_domain(self) -> domain.Profile:
        return domain.Profile(
            id=self.id,
            name=self.name,
            role=self.role,
            points=self.points,
            created_at=as_utc(self.created_at),
        )


class ReportRecord(Base):
    """
    Hazard report submitted by a citizen.

    Coordinates are plain floats; both null or both set.
    """
    __tablename__ = "reports"

    id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)

    # Classification
    type = Column(String(50), nullable=False)
    severity = Column(SQLEnum(Severity), nullable=False)
    risk_score = Column(Integer, nullable=False)
    ai_classification = Column(String(200))

    # Status and validation
    status = Column(SQLEnum(ReportStatus), nullable=False, default=ReportStatus.PENDING)
    validated_at = Column(DateTime(timezone=True))
    validated_by = Column(String(64))

    # Location
    latitude = Column(Float)
    longitude = Column(Float)
    address_text = Column(String(300))

    description = Column(Text, nullable=False)
    photo_url = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    owner = relationship("ProfileRecord", back_populates="reports")

    __table_args__ = (
        Index("idx_report_status", status),
        Index("idx_report_user_created", user_id, created_at),
        CheckConstraint(
            "(latitude IS NULL) = (longitude IS NULL)",
            name="ck_report_coordinates_pair",
        ),
        CheckConstraint(
            "risk_score >= 0 AND risk_score <= 100",
            name="ck_report_risk_score_range",
        ),
    )

    def __repr__(self):
        return f"<ReportRecord({self.id}, status={self.status.value}, score={self.risk_score})>"

    @classmethod
    def from_domain(cls, report: domain.Report) -> "ReportRecord":
        return cls(
            id=report.id,
            user_id=report.user_id,
            type=report.type,
            severity=report.severity,
            risk_score=report.risk_score,
            ai_classification=report.ai_classification,
            status=report.status,
            validated_at=report.validated_at,
            validated_by=report.validated_by,
            latitude=report.latitude,
            longitude=report.longitude,
            address_text=report.address_text,
            description=report.description,
            photo_url=report.photo_url,
            created_at=report.created_at,
        )

    def to_domain(self) -> domain.Report:
        return domain.Report(
            id=self.id,
            user_id=self.user_id,
            type=self.type,
            severity=self.severity,
            risk_score=self.risk_score,
            description=self.description,
            status=self.status,
            latitude=self.latitude,
            longitude=self.longitude,
            address_text=self.address_text,
            photo_url=self.photo_url,
            ai_classification=self.ai_classification,
            created_at=as_utc(self.created_at),
            validated_at=as_utc(self.validated_at),
            validated_by=self.validated_by,
        )


class CertificateRecord(Base):
    """Issued certificate, one row per (user, tier)."""
    __tablename__ = "certificates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    tier = Column(SQLEnum(Tier), nullable=False)
    verify_code = Column(String(50), nullable=False)
    issued_at = Column(DateTime(timezone=True), default=utcnow)

    owner = relationship("ProfileRecord", back_populates="certificates")

    __table_args__ = (
        UniqueConstraint("user_id", "tier", name="uq_certificate_user_tier"),
    )

    def __repr__(self):
        return f"<CertificateRecord({self.user_id}, tier={self.tier.value})>"

    def to_domain(self) -> domain.Certificate:
        return domain.Certificate(
            user_id=self.user_id,
            tier=self.tier,
            verify_code=self.verify_code,
            issued_at=as_utc(self.issued_at),
        )
