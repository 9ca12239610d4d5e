from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from adops.core.settings import settings


def account_or_remote_key(request: Request) -> str:
    """Bucket by account when the caller names one, else by client address."""
    account_id = request.headers.get("x-account-id")
    remote = get_remote_address(request)
    if account_id:
        return f"account:{account_id}:{remote}"
    return remote


limiter = Limiter(
    key_func=account_or_remote_key,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    storage_uri=settings.redis_url,
    headers_enabled=False,
)

__all__ = ["limiter", "account_or_remote_key"]
