# certiai/core/rate_limit.py
from slowapi import Limiter
from slowapi.util import get_remote_address

from certiai.core.settings import settings

# 1 gedeelde Limiter voor de hele app
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
)
