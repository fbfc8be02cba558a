"""
Shared utility functions for the backend.
"""
from .rate_limiter import check_ip_rate_limit, rate_limit, RATE_LIMITS, clear_rate_limits

__all__ = [
    "check_ip_rate_limit",
    "rate_limit",
    "RATE_LIMITS",
    "clear_rate_limits",
]
