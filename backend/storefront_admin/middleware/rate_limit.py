"""Rate limiting for admin login attempts"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from storefront_admin.config import settings


# Login attempts are keyed by client address
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
