"""
utils/limiter.py — The app-wide slowapi limiter, keyed by client address.

Routers decorate endpoints with ``@limiter.limit(...)``; ``main.create_app``
stores the same instance on ``app.state``. RATE_LIMIT_ENABLED=false turns
every limit off (the test suite does this).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from config import Config

limiter = Limiter(key_func=get_remote_address, enabled=Config.RATE_LIMIT_ENABLED)
