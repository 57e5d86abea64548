# Models package
from .boat import Boat, BoatStatus
from .service import (
    RentalService,
    BoatService,
    PassengerPriceTier,
    ServiceType,
    Season,
    SEASON_PRICE_COLUMNS
)
from .booking import (
    Booking,
    BookingStatus,
    BookingStatusCode,
    TimeSlot,
    STANDARD_SLOTS,
    DEFAULT_BOOKING_STATUSES,
    BLOCKING_SLOT_INDEX,
    BLOCKING_SLOT_COLUMNS
)
from .unavailability import UnavailabilityWindow

__all__ = [
    "Boat", "BoatStatus",
    "RentalService", "BoatService", "PassengerPriceTier", "ServiceType", "Season",
    "SEASON_PRICE_COLUMNS",
    "Booking", "BookingStatus", "BookingStatusCode", "TimeSlot", "STANDARD_SLOTS",
    "DEFAULT_BOOKING_STATUSES", "BLOCKING_SLOT_INDEX", "BLOCKING_SLOT_COLUMNS",
    "UnavailabilityWindow"
]
