# solar_gallery/core/limiter_config.py
from slowapi import Limiter
from slowapi.util import get_remote_address

# Limits are keyed per client IP and applied per route with decorators.
limiter = Limiter(key_func=get_remote_address)
