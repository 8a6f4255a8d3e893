"""
RedeSegura - Certificate Eligibility
Maps a user's validated reports to achieved tiers and progress.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Set, Dict, Any

from redesegura.core.constants import (
    CERTIFICATE_CRITERIA,
    VERIFY_CODE_PREFIX,
    ReportStatus,
    Severity,
    Tier,
)
from redesegura.core.exceptions import NotFoundError, ValidationError
from redesegura.crowdsource.models import Certificate, Report, as_utc, utcnow
from redesegura.database.store import ReportStore

logger = logging.getLogger(__name__)

# Highest tier first, for the "current tier" lookup
_TIERS_DESCENDING = [Tier.DIAMOND, Tier.GOLD, Tier.SILVER, Tier.BRONZE]

_NEXT_TIER = {
    Tier.BRONZE: Tier.SILVER,
    Tier.SILVER: Tier.GOLD,
    Tier.GOLD: Tier.DIAMOND,
    Tier.DIAMOND: None,
}


@dataclass
class TierProgress:
    """Dashboard view of a user's certificate level."""
    current: Optional[Tier]
    next: Optional[Tier]
    progress: float  # 0-100
    validated_count: int
    high_severity_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_tier": self.current.value if self.current else None,
            "next_tier": self.next.value if self.next else None,
            "progress_percent": round(self.progress, 1),
            "validated_count": self.validated_count,
            "high_severity_count": self.high_severity_count,
        }


def _counts(reports: Iterable[Report]) -> tuple:
    validated = [r for r in reports if r.status == ReportStatus.VALIDATED]
    high = sum(1 for r in validated if r.severity == Severity.HIGH)
    return len(validated), high


def achieved_tiers(validated_reports: Iterable[Report]) -> Set[Tier]:
    """
    Tiers whose minimums are met.

    Each tier is checked on its own, so a DIAMOND user holds all four.
    Reports not in VALIDATED status are ignored.
    """
    total, high = _counts(validated_reports)
    return {
        tier for tier, criteria in CERTIFICATE_CRITERIA.items()
        if criteria.is_met(total, high)
    }


def tier_progress(reports: Iterable[Report]) -> TierProgress:
    """
    Current tier, next tier and percentage towards it.

    Progress is the validated count over the next tier's minimum count,
    capped at 100. The HIGH-severity gate of the next tier is not part of
    the percentage, so a user can read 100% and still not qualify.
    """
    total, high = _counts(reports)

    current = None
    for tier in _TIERS_DESCENDING:
        if CERTIFICATE_CRITERIA[tier].is_met(total, high):
            current = tier
            break

    if current is Tier.DIAMOND:
        return TierProgress(Tier.DIAMOND, None, 100.0, total, high)

    next_tier = _NEXT_TIER[current] if current else Tier.BRONZE
    target = CERTIFICATE_CRITERIA[next_tier].min_reports
    progress = min(100.0, 100.0 * total / target)

    return TierProgress(current, next_tier, progress, total, high)


def verification_code(user_id: str, tier: Tier) -> str:
    """RS-<first 8 chars of the user id, uppercased>-<TIER>."""
    return f"{VERIFY_CODE_PREFIX}-{user_id[:8].upper()}-{Tier(tier).value}"


class CertificateService:
    """
    Issues certificates for tiers a user has reached.

    Issuing the same tier again overwrites code and timestamp.
    """

    def __init__(self, store: ReportStore):
        self.store = store

    def achieved(self, user_id: str) -> Set[Tier]:
        return achieved_tiers(
            self.store.list_reports(user_id=user_id, status=ReportStatus.VALIDATED)
        )

    def progress(self, user_id: str) -> TierProgress:
        return tier_progress(self.store.list_reports(user_id=user_id))

    def issue(
        self,
        user_id: str,
        tier: Tier,
        now: Optional[datetime] = None
    ) -> Certificate:
        """
        Issue (or re-issue) a certificate.

        Raises:
            ValidationError: If the tier is unknown or not reached
            NotFoundError: If the user has no profile
        """
        try:
            tier = Tier(tier)
        except ValueError:
            raise ValidationError(f"Unknown tier: {tier}", {"field": "tier"}) from None
        if self.store.get_profile(user_id) is None:
            raise NotFoundError("Profile", user_id)
        if tier not in self.achieved(user_id):
            raise ValidationError(
                f"Tier {tier.value} not achieved by user {user_id}",
                {"user_id": user_id, "tier": tier.value},
            )

        certificate = self.store.upsert_certificate(
            user_id=user_id,
            tier=tier,
            verify_code=verification_code(user_id, tier),
            issued_at=as_utc(now) or utcnow(),
        )
        logger.info(f"Certificate issued: {certificate.verify_code}")
        return certificate

    def list_certificates(self, user_id: str) -> List[Certificate]:
        return self.store.list_certificates(user_id)


def issue_certificate(
    store: ReportStore,
    user_id: str,
    tier: Tier,
    now: Optional[datetime] = None
) -> Certificate:
    """Convenience wrapper around CertificateService.issue."""
    return CertificateService(store).issue(user_id, tier, now=now)
