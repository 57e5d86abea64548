# Services package
from .availability import (
    AvailabilityService, AvailabilityResult,
    resolve_availability, normalize_slot, canonical_slot, booking_blocks
)
from .pricing_engine import (
    PricingEngine, PriceQuote, PriceSchedule,
    resolve_price, season_for_date
)
from .booking_store import BookingStore
from .booking_service import BookingService, seed_booking_statuses

__all__ = [
    "AvailabilityService", "AvailabilityResult",
    "resolve_availability", "normalize_slot", "canonical_slot", "booking_blocks",
    "PricingEngine", "PriceQuote", "PriceSchedule",
    "resolve_price", "season_for_date",
    "BookingStore",
    "BookingService", "seed_booking_statuses"
]
