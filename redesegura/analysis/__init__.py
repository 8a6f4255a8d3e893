"""
RedeSegura - Analysis Module
Derived views over the report set: hot zones, certificates and statistics.
"""

from redesegura.analysis.report_clustering import (
    LocationCluster,
    AreaCount,
    cluster_reports,
    extract_area,
    top_areas,
    filter_reports,
    get_cluster_statistics,
)
from redesegura.analysis.certificates import (
    TierProgress,
    CertificateService,
    achieved_tiers,
    tier_progress,
    verification_code,
    issue_certificate,
)
from redesegura.analysis.dashboard import (
    get_dashboard_stats,
    get_user_summary,
)

__all__ = [
    # Clustering
    "LocationCluster",
    "AreaCount",
    "cluster_reports",
    "extract_area",
    "top_areas",
    "filter_reports",
    "get_cluster_statistics",
    # Certificates
    "TierProgress",
    "CertificateService",
    "achieved_tiers",
    "tier_progress",
    "verification_code",
    "issue_certificate",
    # Dashboard
    "get_dashboard_stats",
    "get_user_summary",
]
