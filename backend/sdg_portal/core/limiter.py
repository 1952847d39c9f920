"""Per-client request throttling for the CSV import endpoints."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from sdg_portal.core.config import settings

# Keyed by client address; each import route applies settings.IMPORT_RATE_LIMIT.
limiter = Limiter(key_func=get_remote_address, enabled=settings.APP_ENV != "test")
