"""
Rate limiting configuration for the check-in API
"""

from typing import Dict

from fastapi import Request
from slowapi.util import get_remote_address


def get_real_ip(request: Request) -> str:
    """
    Get the real IP address, considering proxy headers.
    Needed when running behind a load balancer.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


# Rate limits per endpoint group
RATE_LIMIT_TIERS = {
    "default": {
        "checkin_start": "10/minute",    # New check-ins
        "checkin_answer": "60/minute",   # Answers, settle signals, retries
        "read": "120/minute",            # Session info, transcripts, debug
    },
    "trusted": {
        "checkin_start": "50/minute",
        "checkin_answer": "300/minute",
        "read": "600/minute",
    }
}

RATE_LIMIT_MESSAGES = {
    "default": "Too many requests. Please wait a moment and try again.",
    "checkin_start": "Too many check-ins started. Please wait a minute.",
}


def get_rate_limit_message(endpoint: str) -> str:
    """Get custom error message for rate limited endpoint"""
    return RATE_LIMIT_MESSAGES.get(endpoint, RATE_LIMIT_MESSAGES["default"])


def get_rate_limits(tier: str = "default") -> Dict[str, str]:
    """Limits per endpoint group for a tier (settings.RATE_LIMIT_TIER)"""
    return RATE_LIMIT_TIERS[tier]
