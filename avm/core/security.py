from fastapi import Header, HTTPException, Request
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_429_TOO_MANY_REQUESTS
from datetime import datetime, timezone
from .config import settings
from .cache import cache

def require_api_key(x_api_key: str | None = Header(default=None, alias="x-api-key")):
    """
    Simple header-based API key check.
    The batch matcher and the valuation route share it.
    """
    if not settings.API_KEY:
        # If unset, we allow requests (dev convenience).
        return
    if x_api_key != settings.API_KEY:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid API key")

def _count_hit(request: Request, scope: str, rpm: int) -> None:
    """
    Fixed one-minute window per (scope, API key, client IP).
    Uses Redis if enabled else in-process.
    """
    rpm = max(1, rpm)
    client_ip = request.client.host if request.client else "unknown"
    api_key = request.headers.get("x-api-key") or "anon"
    minute_bucket = datetime.now(timezone.utc).strftime("%Y%m%d%H%M")
    key = f"rate:{scope}:{api_key}:{client_ip}:{minute_bucket}"

    if cache.hit(key) > rpm:
        raise HTTPException(
            status_code=HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded ({rpm} requests/minute for {scope})",
        )

def rate_limit(request: Request):
    """Valuation requests: RATE_LIMIT_RPM per caller."""
    _count_hit(request, "valuation", settings.RATE_LIMIT_RPM)

def batch_rate_limit(request: Request):
    """Photo matcher: its own BATCH_RATE_LIMIT_RPM, separate from valuations."""
    _count_hit(request, "match-images", settings.BATCH_RATE_LIMIT_RPM)
