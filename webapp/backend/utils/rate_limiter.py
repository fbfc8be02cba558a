"""
Per-IP rate limiting for the admin login endpoint.
Uses in-memory sliding window algorithm.
"""
import time
from collections import defaultdict
from typing import Dict, List

from fastapi import Request

from errors import RateLimitedError


# Storage: {"{client_ip}:{operation}": [timestamp, timestamp, ...]}
_ip_request_counts: Dict[str, List[float]] = defaultdict(list)

# Configurable rate limits by operation type
RATE_LIMITS = {
    "admin_login": {"limit": 3, "window": 3600},         # 3 attempts/hour

    # Default fallback
    "default": {"limit": 100, "window": 60},
}


def get_client_ip(request: Request) -> str:
    """
    Extract client IP from request.

    X-Forwarded-For is only honored when the direct peer is one of the
    configured trusted proxies; otherwise any caller could pick its own key.
    """
    peer = request.client.host if request.client else "unknown"
    trusted_proxies = request.app.state.settings.trusted_proxies
    if peer in trusted_proxies:
        forwarded_for = request.headers.get("X-Forwarded-For", "")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
    return peer


def check_ip_rate_limit(request: Request, operation: str) -> None:
    """
    Check rate limit for an IP address (for unauthenticated endpoints).
    Raises RateLimitedError (429) if rate limit exceeded.

    Args:
        request: The FastAPI request object
        operation: The operation key (e.g., "admin_login")
    """
    config = RATE_LIMITS.get(operation, RATE_LIMITS["default"])
    limit = config["limit"]
    window = config["window"]

    client_ip = get_client_ip(request)
    key = f"{client_ip}:{operation}"
    now = time.time()

    # Clean old entries outside the window
    _ip_request_counts[key] = [
        t for t in _ip_request_counts[key] if now - t < window
    ]

    if len(_ip_request_counts[key]) >= limit:
        retry_after = int(window - (now - _ip_request_counts[key][0]))
        raise RateLimitedError(
            f"Too many requests. Try again in {retry_after} seconds.",
            retry_after=retry_after,
        )

    _ip_request_counts[key].append(now)


def rate_limit(operation: str):
    """
    Dependency factory applying check_ip_rate_limit to a route.

    Usage:
        @router.post("/auth/admin/login", dependencies=[Depends(rate_limit("admin_login"))])
    """
    def checker(request: Request) -> None:
        check_ip_rate_limit(request, operation)

    return checker


def clear_rate_limits() -> None:
    """Clear all rate limit data. Useful for testing."""
    _ip_request_counts.clear()
