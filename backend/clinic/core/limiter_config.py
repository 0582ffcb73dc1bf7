import os

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Global Limiter instance imported by the controllers; bound in create_app
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per hour", "100 per minute"],
    storage_uri=os.getenv("LIMITER_STORAGE_URI", "memory://"),
)


def rate_limit_enabled(testing: bool) -> bool:
    """Rate limiting is on unless disabled by RATE_LIMIT_ENABLED=0 or test mode."""
    if os.getenv("RATE_LIMIT_ENABLED", "1") == "0":
        return False
    return not testing
