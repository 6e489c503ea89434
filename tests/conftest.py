import pytest

from msgrate.config import RateStatsConfig


@pytest.fixture
def lines():
    """Sink laporan yang menampung baris ke list."""
    return []


@pytest.fixture
def config():
    return RateStatsConfig()
