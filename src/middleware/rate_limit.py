"""
Request rate limiting
SlowAPI limiter keyed by the real client IP
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address
import config


def get_real_client_ip(request: Request) -> str:
    """
    Resolve the client IP address

    Proxies and load balancers are honoured: X-Forwarded-For first, then X-Real-IP

    Args:
        request: FastAPI request

    Returns:
        str: Client IP address
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_real_client_ip,
    storage_uri="memory://",  # use a Redis URI when running several workers
    enabled=config.settings.rate_limit_enabled,
)

# Login, register, token refresh, OAuth
auth_limit = limiter.limit(config.settings.rate_limit_auth)

# Resource creation (posts, messages, payments, uploads)
create_limit = limiter.limit(config.settings.rate_limit_create)

# Feed and search
read_limit = limiter.limit(config.settings.rate_limit_read)
