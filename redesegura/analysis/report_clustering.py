"""
RedeSegura - Report Clustering
Groups geolocated reports into grid cells to surface hot zones.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Any
import math

from redesegura.core.config import settings
from redesegura.core.constants import (
    Severity,
    ReportStatus,
    UNSPECIFIED_LOCATION,
)
from redesegura.crowdsource.models import Report


@dataclass
class LocationCluster:
    """
    Reports sharing one grid cell.

    Coordinate, severity and address are taken from the first report seen
    in the cell, not averaged.
    """
    latitude: float
    longitude: float
    severity: Severity
    address: str
    reports: List[Report] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.reports)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "count": self.count,
            "severity": self.severity.value,
            "address": self.address,
            "report_ids": [r.id for r in self.reports],
        }


@dataclass
class AreaCount:
    """Report tally for one area label."""
    area: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"area": self.area, "count": self.count}


def cell_key(latitude: float, longitude: float, threshold: float) -> Tuple[int, int]:
    """Grid cell of a coordinate for the given cell size in degrees."""
    return (
        math.floor(latitude / threshold),
        math.floor(longitude / threshold),
    )


def cluster_reports(
    reports: List[Report],
    threshold: Optional[float] = None,
    limit: Optional[int] = None
) -> List[LocationCluster]:
    """
    Cluster reports by fixed-size grid cell.

    Args:
        reports: Reports in encounter order
        threshold: Cell size in degrees (default from settings, 0.01)
        limit: Maximum clusters returned (default from settings, 10)

    Returns:
        Clusters by descending member count; ties keep encounter order
    """
    threshold = threshold or settings.cluster_threshold
    limit = settings.map_cluster_limit if limit is None else limit

    cells: Dict[Tuple[int, int], LocationCluster] = {}

    for report in reports:
        if not report.has_location:
            continue

        key = cell_key(report.latitude, report.longitude, threshold)
        cluster = cells.get(key)
        if cluster is None:
            cells[key] = LocationCluster(
                latitude=report.latitude,
                longitude=report.longitude,
                severity=report.severity,
                address=report.address_text or UNSPECIFIED_LOCATION,
                reports=[report],
            )
        else:
            cluster.reports.append(report)

    # list.sort is stable, dicts keep insertion order
    clusters = list(cells.values())
    clusters.sort(key=lambda c: c.count, reverse=True)

    return clusters[:limit]


def extract_area(address: str) -> str:
    """
    Coarse area label of a free-text address.

    "Rua das Flores, 10 - Centro" -> "Centro"
    """
    parts = address.split("-")
    if len(parts) > 1:
        return parts[-1].strip()
    return address


def top_areas(
    reports: List[Report],
    limit: Optional[int] = None
) -> List[AreaCount]:
    """
    Rank area labels by number of reports.

    Args:
        reports: Reports to tally; those without address are skipped
        limit: Maximum areas returned (default from settings, 5)

    Returns:
        Areas by descending count; ties keep first-seen order
    """
    limit = settings.summary_cluster_limit if limit is None else limit

    counts: Counter = Counter()
    for report in reports:
        if report.address_text:
            counts[extract_area(report.address_text)] += 1

    areas = [AreaCount(area=area, count=count) for area, count in counts.items()]
    areas.sort(key=lambda a: a.count, reverse=True)

    return areas[:limit]


def filter_reports(
    reports: List[Report],
    hazard_type: Optional[str] = None,
    severity: Optional[Severity] = None,
    status: Optional[ReportStatus] = None
) -> List[Report]:
    """Apply the map filters; None means no filtering on that field."""
    filtered = list(reports)

    if hazard_type is not None:
        filtered = [r for r in filtered if r.type == hazard_type]
    if severity is not None:
        severity = Severity(severity)
        filtered = [r for r in filtered if r.severity == severity]
    if status is not None:
        status = ReportStatus(status)
        filtered = [r for r in filtered if r.status == status]

    return filtered


def get_cluster_statistics(clusters: List[LocationCluster]) -> Dict[str, Any]:
    """
    Aggregate statistics for a list of clusters.

    Args:
        clusters: Output of cluster_reports

    Returns:
        Dictionary with aggregate statistics
    """
    if not clusters:
        return {
            "total_clusters": 0,
            "total_reports": 0,
            "average_cluster_size": 0,
            "largest_cluster_reports": 0,
            "severity_distribution": {s.value: 0 for s in Severity},
        }

    severity_counts = {s.value: 0 for s in Severity}
    for cluster in clusters:
        severity_counts[cluster.severity.value] += 1

    total_reports = sum(c.count for c in clusters)

    return {
        "total_clusters": len(clusters),
        "total_reports": total_reports,
        "average_cluster_size": round(total_reports / len(clusters), 1),
        "largest_cluster_reports": max(c.count for c in clusters),
        "severity_distribution": severity_counts,
    }
