"""
Shared slowapi limiter — keyed by client IP.

Guards the public PIN entry point and the admin login against brute force.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from geoclock.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
