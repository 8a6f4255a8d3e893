"""
RedeSegura - Dashboard Statistics
Administrator overview of submitted reports.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Dict, Any

from redesegura.core.constants import HAZARD_TYPES, ReportStatus, Severity
from redesegura.crowdsource.models import Report, as_utc, utcnow


def get_dashboard_stats(
    reports: List[Report],
    days: Optional[int] = None,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Aggregate counts for the administrator dashboard.

    Args:
        reports: Reports to summarize
        days: Only count reports from the last N days (7 or 30 on the dashboard)
        now: Reference time for the window (default: current UTC time)

    Returns:
        Dictionary with totals and distributions
    """
    if days is not None:
        start = (as_utc(now) or utcnow()) - timedelta(days=days)
        reports = [r for r in reports if r.created_at >= start]

    total = len(reports)

    by_status = {s.value: 0 for s in ReportStatus}
    by_severity = {s.value: 0 for s in Severity}
    by_type: Dict[str, int] = {}

    for report in reports:
        by_status[report.status.value] += 1
        by_severity[report.severity.value] += 1
        by_type[report.type] = by_type.get(report.type, 0) + 1

    validated = by_status[ReportStatus.VALIDATED.value]

    return {
        "total_reports": total,
        "pending_count": by_status[ReportStatus.PENDING.value],
        "validated_count": validated,
        "rejected_count": by_status[ReportStatus.REJECTED.value],
        "high_severity_count": by_severity[Severity.HIGH.value],
        "validation_rate": validated / total if total > 0 else 0,
        "by_status": by_status,
        "by_severity": by_severity,
        "by_type": by_type,
        "window_days": days,
    }


def get_user_summary(reports: List[Report]) -> Dict[str, Any]:
    """Per-user counts shown on the citizen dashboard."""
    validated = [r for r in reports if r.status == ReportStatus.VALIDATED]
    return {
        "total_reports": len(reports),
        "validated_count": len(validated),
        "pending_count": sum(1 for r in reports if r.status == ReportStatus.PENDING),
        "high_severity_validated": sum(1 for r in validated if r.is_high_severity),
        "hazard_types": sorted(
            {r.type for r in reports},
            key=lambda t: HAZARD_TYPES.index(t) if t in HAZARD_TYPES else len(HAZARD_TYPES),
        ),
    }
