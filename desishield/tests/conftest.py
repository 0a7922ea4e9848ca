from datetime import datetime

import pytest

from desishield.services.analysis_client import AnalysisClient
from desishield.services.session_service import TriageSession
from desishield.tests.fakes import LOTTERY_PAYLOAD, SAFE_PAYLOAD
from desishield.utils.logging_config import metrics


@pytest.fixture(autouse=True)
def reset_metrics():
    """Each test starts with empty session metrics."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def lottery_payload():
    """Classifier answer for the Hinglish lottery scam."""
    return dict(LOTTERY_PAYLOAD)


@pytest.fixture
def safe_payload():
    """Classifier answer for a harmless personal message."""
    return dict(SAFE_PAYLOAD)


@pytest.fixture
def fixed_clock():
    """Clock that always reads 2024-03-15 10:30:00 local time."""
    return lambda: datetime(2024, 3, 15, 10, 30, 0)


@pytest.fixture
def make_session(fixed_clock):
    """Build a session around a classifier stub."""

    def _make(classifier) -> TriageSession:
        return TriageSession(analysis_client=AnalysisClient(classifier), clock=fixed_clock)

    return _make
