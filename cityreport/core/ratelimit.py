# File: cityreport/core/ratelimit.py

from slowapi import Limiter
from slowapi.util import get_remote_address

from cityreport.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.ratelimit_enabled)
