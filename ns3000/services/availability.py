"""
Availability Resolver

Decides whether a boat can be booked for a date and time slot.

Rules, evaluated in order (first match wins):
1. Bookings for (boat, date), minus the booking being edited, that block
2. A blocking full_day booking exists           -> unavailable
3. full_day requested, a half day is taken      -> unavailable
4. morning requested, morning taken             -> unavailable
5. afternoon requested, afternoon taken         -> unavailable
6. Anything else (incl. custom slots)           -> no booking conflict
7. An unavailability window covers the date     -> unavailable, whatever the slot

resolve_availability() is the pure decision over already-fetched records.
AvailabilityService reads them from the store and fails closed when the
store cannot be read.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.booking import TimeSlot, STANDARD_SLOTS
from ..utils.logging_config import get_logger
from .booking_store import BookingStore

logger = get_logger(__name__)

REASON_FULL_DAY_TAKEN = "boat already booked full day for this date"
REASON_HALF_DAY_TAKEN = "boat already booked for half day"
REASON_MORNING_TAKEN = "morning already booked for this date"
REASON_AFTERNOON_TAKEN = "afternoon already booked for this date"
REASON_UNAVAILABLE_PREFIX = "boat unavailable: "
DEFAULT_UNAVAILABILITY_REASON = "maintenance"
REASON_STORE_ERROR = "error checking availability"


@dataclass(frozen=True)
class AvailabilityResult:
    """Exactly one verdict: available, or not available with a reason"""
    available: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "AvailabilityResult":
        return cls(available=True)

    @classmethod
    def denied(cls, reason: str) -> "AvailabilityResult":
        return cls(available=False, reason=reason)

    def to_dict(self) -> dict:
        if self.available:
            return {"available": True}
        return {"available": False, "reason": self.reason}


def normalize_slot(value: Optional[str]) -> str:
    """
    Canonical form of a slot value: trimmed, lower-case, spaces and
    hyphens folded to underscores ("Full Day" -> "full_day").
    Values outside the standard vocabulary are returned normalised but
    are otherwise treated as opaque custom slots.
    """
    if value is None:
        return ""
    return "_".join(value.strip().lower().replace("-", " ").split())


def canonical_slot(value: str) -> str:
    """Value to store: the standard slot name, or the custom text as typed"""
    normalized = normalize_slot(value)
    if normalized in STANDARD_SLOTS:
        return normalized
    return value.strip()


def booking_blocks(booking, all_bookings_block: bool = False) -> bool:
    """
    Whether a booking occupies its slot.

    Only an explicit is_blocking=False (a non-blocking status such as
    cancelled) frees the slot; a missing flag counts as blocking.
    """
    if all_bookings_block:
        return True
    return getattr(booking, "is_blocking", None) is not False


def resolve_availability(
    bookings: Iterable,
    windows: Iterable,
    requested_slot: str,
    exclude_booking_id: Optional[str] = None,
    all_bookings_block: bool = False,
) -> AvailabilityResult:
    """
    Decide availability from the bookings on (boat, date) and the
    unavailability windows covering that date.

    Args:
        bookings: Booking records for the boat/date (any status)
        windows: UnavailabilityWindow records covering the date, in store order
        requested_slot: morning | afternoon | full_day | custom value
        exclude_booking_id: Booking being edited
        all_bookings_block: Treat every booking as blocking regardless of status

    Returns:
        AvailabilityResult
    """
    slot = normalize_slot(requested_slot)

    taken = set()
    for booking in bookings:
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if not booking_blocks(booking, all_bookings_block):
            continue
        taken.add(normalize_slot(booking.time_slot))

    if TimeSlot.FULL_DAY.value in taken:
        return AvailabilityResult.denied(REASON_FULL_DAY_TAKEN)

    if slot == TimeSlot.FULL_DAY.value and (
        TimeSlot.MORNING.value in taken or TimeSlot.AFTERNOON.value in taken
    ):
        return AvailabilityResult.denied(REASON_HALF_DAY_TAKEN)

    if slot == TimeSlot.MORNING.value and TimeSlot.MORNING.value in taken:
        return AvailabilityResult.denied(REASON_MORNING_TAKEN)

    if slot == TimeSlot.AFTERNOON.value and TimeSlot.AFTERNOON.value in taken:
        return AvailabilityResult.denied(REASON_AFTERNOON_TAKEN)

    # Windows veto regardless of slot
    window = next(iter(windows), None)
    if window is not None:
        reason = (window.reason or "").strip() or DEFAULT_UNAVAILABILITY_REASON
        return AvailabilityResult.denied(f"{REASON_UNAVAILABLE_PREFIX}{reason}")

    return AvailabilityResult.ok()


class AvailabilityService:
    """Store-backed availability checks."""

    def __init__(self, db: Session, all_bookings_block: bool = False):
        self.db = db
        self.store = BookingStore(db)
        self.all_bookings_block = all_bookings_block

    def evaluate(
        self,
        boat_id: str,
        booking_date: date,
        time_slot: str,
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Read and decide without error handling. Used inside the booking
        write transaction, where a store failure must abort the write.
        """
        bookings = self.store.list_bookings(boat_id, booking_date, exclude_booking_id)
        windows = self.store.list_unavailability(boat_id, booking_date)
        return resolve_availability(
            bookings,
            windows,
            time_slot,
            exclude_booking_id=exclude_booking_id,
            all_bookings_block=self.all_bookings_block,
        )

    def check_availability(
        self,
        boat_id: str,
        booking_date: date,
        time_slot: str,
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Standalone availability check. A store read failure yields
        unavailable rather than risking a double booking.
        """
        try:
            result = self.evaluate(boat_id, booking_date, time_slot, exclude_booking_id)
        except SQLAlchemyError as e:
            logger.log_with_context(
                logging.ERROR,
                f"Error checking availability: {e}",
                entity_type="boat",
                entity_id=boat_id,
                booking_date=booking_date,
                time_slot=time_slot,
            )
            return AvailabilityResult.denied(REASON_STORE_ERROR)

        logger.availability_checked(boat_id, booking_date, time_slot, result.available, result.reason)
        return result
