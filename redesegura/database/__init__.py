"""
Database module for RedeSegura
Store interface plus in-memory and SQLAlchemy implementations
"""

from .connection import DatabaseConnection, build_engine
from .models import (
    Base,
    ProfileRecord,
    ReportRecord,
    CertificateRecord,
)
from .store import ReportStore, InMemoryReportStore
from .sql_store import SQLReportStore

__all__ = [
    "DatabaseConnection",
    "build_engine",
    "Base",
    "ProfileRecord",
    "ReportRecord",
    "CertificateRecord",
    "ReportStore",
    "InMemoryReportStore",
    "SQLReportStore",
]
