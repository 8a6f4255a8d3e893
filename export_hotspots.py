#!/usr/bin/env python3
"""
RedeSegura - Export Hot Zones
Reads reports from the configured database and prints the hot-zone
clusters and most reported areas as JSON.
"""
import argparse
import json
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from redesegura.analysis.report_clustering import (
    cluster_reports,
    filter_reports,
    get_cluster_statistics,
    top_areas,
)
from redesegura.core.config import settings
from redesegura.core.logging import setup_logging
from redesegura.database.connection import DatabaseConnection
from redesegura.database.sql_store import SQLReportStore


def main():
    parser = argparse.ArgumentParser(description="Export RedeSegura hot zones")
    parser.add_argument("--type", dest="hazard_type", default=None, help="Hazard type filter")
    parser.add_argument("--severity", default=None, help="LOW, MEDIUM or HIGH")
    parser.add_argument("--status", default=None, help="PENDING, VALIDATED or REJECTED")
    parser.add_argument("--limit", type=int, default=settings.map_cluster_limit)
    parser.add_argument("--output", default=None, help="Write JSON to this file")
    args = parser.parse_args()

    if not settings.database_url:
        print("ERROR: DATABASE_URL not found in environment or .env file")
        sys.exit(1)

    setup_logging()
    store = SQLReportStore(DatabaseConnection(settings.database_url))

    reports = filter_reports(
        store.list_reports(with_location=True),
        hazard_type=args.hazard_type,
        severity=args.severity,
        status=args.status,
    )
    clusters = cluster_reports(reports, limit=args.limit)

    payload = {
        "statistics": get_cluster_statistics(clusters),
        "clusters": [c.to_dict() for c in clusters],
        "top_areas": [a.to_dict() for a in top_areas(reports)],
    }
    text = json.dumps(payload, ensure_ascii=False, indent=2)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Hot zones saved to: {args.output}")
    else:
        print(text)


if __name__ == "__main__":
    main()
