"""Shared test setup."""
import pytest

from sdg_portal.core.limiter import limiter


@pytest.fixture(autouse=True)
def _disable_rate_limit():
    """Endpoint tests hit the import routes many times from one client address."""
    limiter.enabled = False
    yield
    limiter.enabled = True
