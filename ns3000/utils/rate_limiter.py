"""
Rate Limiter Configuration

Storage backend comes from RATE_LIMIT_STORAGE_URI: memory:// for a
single instance, redis://... when several instances share limits.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from ..config import settings


def get_real_client_ip(request: Request) -> str:
    """Get real client IP behind reverse proxy"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First entry is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    return Limiter(
        key_func=get_real_client_ip,
        storage_uri=settings.rate_limit_storage_uri,
        default_limits=["100/minute"]
    )


# Global rate limiter instance
limiter = create_limiter()


RATE_LIMITS = {
    # Resolver endpoints are hit on every form change in the dashboard
    "check_availability": "120/minute",
    "calculate_price": "120/minute",

    "booking_create": "30/minute",
    "booking_update": "60/minute",
    "booking_delete": "20/minute",

    "unavailability_write": "30/minute",
    "boat_services_write": "30/minute",
}


def get_rate_limit(operation: str) -> str:
    """Get rate limit for a specific operation."""
    return RATE_LIMITS.get(operation, "100/minute")
