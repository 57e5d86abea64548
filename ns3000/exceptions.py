"""
Booking domain errors.

Routers translate these to HTTPException:
- PriceNotConfiguredError -> 422
- BookingConflictError    -> 409
- BookingNotFoundError    -> 404
- BookingValidationError  -> 422
"""


class BookingError(Exception):
    """Base error for booking operations."""


class PriceNotConfiguredError(BookingError):
    """No price schedule covers the requested boat/service/season/passengers."""


class BookingConflictError(BookingError):
    """The requested slot is not bookable. Carries the human-readable reason."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class BookingNotFoundError(BookingError):
    pass


class BookingValidationError(BookingError):
    """The booking as a whole breaks a business rule (e.g. deposit above price)."""
