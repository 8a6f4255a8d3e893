"""
Pytest configuration and fixtures
"""
import pytest
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from redesegura.core.constants import ReportStatus, Severity, UserRole
from redesegura.crowdsource.models import Actor, Profile, Report, ReportDraft
from redesegura.crowdsource.rate_limiter import DailySubmissionLimiter
from redesegura.crowdsource.report_handler import ReportHandler
from redesegura.database.store import InMemoryReportStore


CITIZEN_ID = "a1b2c3d4-0000-4000-8000-000000000001"
ADMIN_ID = "ffee0011-0000-4000-8000-0000000000ad"


def make_report(**overrides) -> Report:
    """Build a report directly, bypassing submission."""
    values = {
        "id": str(uuid.uuid4()),
        "user_id": CITIZEN_ID,
        "type": "Poda",
        "severity": Severity.MEDIUM,
        "risk_score": 60,
        "description": "Galhos encostando na rede",
        "status": ReportStatus.VALIDATED,
        "latitude": None,
        "longitude": None,
        "address_text": None,
        "created_at": datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return Report(**values)


def make_draft(**overrides) -> ReportDraft:
    """Build a valid draft."""
    values = {
        "type": "Cabo no solo",
        "severity": Severity.HIGH,
        "description": "Cabo caído na calçada em frente à escola",
        "latitude": -23.5505,
        "longitude": -46.6333,
        "address_text": "Rua Augusta, 1000 - Consolação",
        "photo_url": "https://storage.example.com/reports/photo.jpg",
    }
    values.update(overrides)
    return ReportDraft(**values)


@pytest.fixture
def store():
    """Empty in-memory store."""
    return InMemoryReportStore()


@pytest.fixture
def citizen(store):
    """Citizen with a profile in the store."""
    store.save_profile(Profile(id=CITIZEN_ID, name="Maria", role=UserRole.USER))
    return Actor(user_id=CITIZEN_ID, role=UserRole.USER)


@pytest.fixture
def admin(store):
    """Administrator with a profile in the store."""
    store.save_profile(Profile(id=ADMIN_ID, name="Operador", role=UserRole.ADMIN))
    return Actor(user_id=ADMIN_ID, role=UserRole.ADMIN)


@pytest.fixture
def handler(store):
    """Report handler counting days in UTC."""
    return ReportHandler(store, limiter=DailySubmissionLimiter(store, tz=timezone.utc))


@pytest.fixture
def long_description():
    """150-character description."""
    return "x" * 150
