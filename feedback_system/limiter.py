from slowapi import Limiter
from slowapi.util import get_remote_address

from feedback_system.config import app_conf

# Rate limiting keyed on client address; the login route adds a stricter limit
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[app_conf.RATE_LIMIT_DEFAULT],
    enabled=app_conf.RATE_LIMIT_ENABLED,
)
