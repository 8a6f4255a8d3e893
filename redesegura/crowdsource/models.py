"""
Domain records for citizen hazard reports
Reports, drafts, profiles and certificates exchanged with the store
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from redesegura.core.config import settings
from redesegura.core.constants import (
    HAZARD_TYPES,
    Severity,
    ReportStatus,
    UserRole,
    Tier,
)
from redesegura.core.exceptions import ValidationError


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware UTC copy of a datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Actor:
    """
    Acting user supplied by the identity provider.

    Passed explicitly into every state-changing call.
    """
    user_id: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass
class Profile:
    """A citizen or administrator with accumulated points."""
    id: str
    name: str = ""
    role: UserRole = UserRole.USER
    points: int = 0
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "points": self.points,
            "created_at": _isoformat(self.created_at),
        }


@dataclass
class ReportDraft:
    """
    Report as submitted by a citizen, before scoring.

    Latitude and longitude must be given together or not at all.
    """
    type: str
    severity: Severity
    description: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address_text: Optional[str] = None
    photo_url: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def validate(self, max_description_length: Optional[int] = None) -> None:
        """
        Check the draft and normalize its severity.

        Raises:
            ValidationError: On any malformed field
        """
        limit = max_description_length or settings.description_max_length

        if not self.type:
            raise ValidationError("Hazard type is required", {"field": "type"})
        if self.type not in HAZARD_TYPES:
            raise ValidationError(
                f"Unknown hazard type: {self.type}", {"field": "type"}
            )

        try:
            self.severity = Severity(self.severity)
        except ValueError:
            raise ValidationError(
                f"Invalid severity: {self.severity}", {"field": "severity"}
            ) from None

        if self.description is None:
            raise ValidationError("Description is required", {"field": "description"})
        if len(self.description) > limit:
            raise ValidationError(
                f"Description exceeds {limit} characters",
                {"field": "description", "length": len(self.description)},
            )

        if (self.latitude is None) != (self.longitude is None):
            raise ValidationError(
                "Latitude and longitude must be provided together",
                {"field": "location"},
            )
        if self.has_location:
            if not -90 <= self.latitude <= 90:
                raise ValidationError("Latitude out of range", {"field": "latitude"})
            if not -180 <= self.longitude <= 180:
                raise ValidationError("Longitude out of range", {"field": "longitude"})


@dataclass
class Report:
    """
    Hazard report submitted by a citizen.

    The risk score is fixed at creation; only status, severity and the
    validation stamp change, and only once.
    """
    id: str
    user_id: str
    type: str
    severity: Severity
    risk_score: int
    description: str

    status: ReportStatus = ReportStatus.PENDING

    # Location
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address_text: Optional[str] = None

    photo_url: Optional[str] = None
    ai_classification: Optional[str] = None

    # Timestamps
    created_at: datetime = field(default_factory=utcnow)
    validated_at: Optional[datetime] = None
    validated_by: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_high_severity(self) -> bool:
        return self.severity == Severity.HIGH

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "severity": self.severity.value,
            "risk_score": self.risk_score,
            "status": self.status.value,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address_text": self.address_text,
            "description": self.description,
            "photo_url": self.photo_url,
            "ai_classification": self.ai_classification,
            "created_at": _isoformat(self.created_at),
            "validated_at": _isoformat(self.validated_at),
            "validated_by": self.validated_by,
        }


@dataclass
class Certificate:
    """Achievement record, unique per (user, tier)."""
    user_id: str
    tier: Tier
    verify_code: str
    issued_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "tier": self.tier.value,
            "verify_code": self.verify_code,
            "issued_at": _isoformat(self.issued_at),
        }
