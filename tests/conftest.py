import pytest
from unittest.mock import patch
from remitbot.settings import settings


@pytest.fixture(autouse=True)
def no_metrics():
    # counters would otherwise try to reach a real Redis from every test
    with patch.object(settings, "ENABLE_METRICS", False):
        yield
