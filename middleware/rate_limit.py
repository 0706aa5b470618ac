# middleware/rate_limit.py
"""
Rate limiting configuration using slowapi.

Usage in route files:
    from middleware.rate_limit import limiter

    @router.post("/login")
    @limiter.limit(AUTH_RATE_LIMIT)
    def login(request: Request, ...):
        ...
"""
import logging
import os

from fastapi import Request
from jose import JWTError, jwt
from slowapi import Limiter
from slowapi.util import get_remote_address

from services.auth import AUTH_COOKIE_NAME

logger = logging.getLogger(__name__)


def _token_from_request(request: Request) -> str | None:
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def _get_rate_limit_key(request: Request) -> str:
    """
    Identify the caller for rate-limiting: the token subject when a session
    token is present (per-user limits), otherwise the client IP.
    """
    token = _token_from_request(request)
    if token:
        try:
            # Unverified on purpose: only buckets the limit. The auth
            # dependency verifies the signature.
            sub = jwt.get_unverified_claims(token).get("sub")
            if sub:
                return f"user:{sub}"
        except JWTError:
            pass

    return get_remote_address(request)


# ─── Limits ────────────────────────────────────────────────────────
DEFAULT_RATE_LIMIT = os.getenv("RATE_LIMIT_DEFAULT", "120/minute")
AUTH_RATE_LIMIT = os.getenv("RATE_LIMIT_AUTH", "10/minute")
PRICE_REFRESH_RATE_LIMIT = os.getenv("RATE_LIMIT_PRICE_REFRESH", "6/minute")
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "1").lower() not in ("0", "false", "no")

limiter = Limiter(
    key_func=_get_rate_limit_key,
    default_limits=[DEFAULT_RATE_LIMIT],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
    strategy="fixed-window",
    enabled=RATE_LIMIT_ENABLED,
)
