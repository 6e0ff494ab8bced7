"""Rate limiting using slowapi."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from chefgenius.config import settings


def get_client_key(request: Request) -> str:
    """Rate-limit bucket: the X-API-Key header when sent, else the client address."""
    return request.headers.get("X-API-Key") or get_remote_address(request)


limiter = Limiter(
    key_func=get_client_key,
    default_limits=[f"{settings.rate_limit_per_hour}/hour"],
    storage_uri="memory://",
)


def rate_limit_dependency(request: Request) -> None:
    """
    Apply the default limit to a route.

    Raises:
        RateLimitExceeded: If the client has used up its hourly budget
    """
    # slowapi has no public "check" helper; this raises RateLimitExceeded when hit
    limiter._check_request_limit(request, endpoint_func=None)
