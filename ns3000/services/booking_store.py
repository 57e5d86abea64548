"""
Booking Store

SQLAlchemy access for the availability and pricing engines:
- list_bookings / list_unavailability feed the availability resolver
- get_price_schedule feeds the pricing engine
- insert_booking / update_booking turn a violation of the slot
  uniqueness index into BookingConflictError
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import or_, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import BookingConflictError, PriceNotConfiguredError
from ..models.boat import Boat
from ..models.booking import Booking, BookingStatus, BLOCKING_SLOT_INDEX, BLOCKING_SLOT_COLUMNS
from ..models.service import RentalService, BoatService, PassengerPriceTier
from ..models.unavailability import UnavailabilityWindow
from ..utils.db_helpers import acquire_row_lock, is_unique_violation

logger = logging.getLogger(__name__)

REASON_SLOT_TAKEN = "slot already booked for this date"


class BookingStore:

    def __init__(self, db: Session):
        self.db = db

    # ==================
    # Availability reads
    # ==================

    def list_bookings(
        self,
        boat_id: str,
        booking_date: date,
        exclude_booking_id: Optional[str] = None
    ) -> List[Booking]:
        """All bookings for a boat/date, cancelled ones included."""
        query = self.db.query(Booking).filter(
            Booking.boat_id == boat_id,
            Booking.booking_date == booking_date
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.order_by(Booking.created_at).all()

    def list_unavailability(self, boat_id: str, booking_date: date) -> List[UnavailabilityWindow]:
        """Windows of a boat whose inclusive range covers the date."""
        return self.db.query(UnavailabilityWindow).filter(
            UnavailabilityWindow.boat_id == boat_id,
            UnavailabilityWindow.date_from <= booking_date,
            UnavailabilityWindow.date_to >= booking_date
        ).order_by(UnavailabilityWindow.date_from, UnavailabilityWindow.created_at).all()

    # ==================
    # Pricing reads
    # ==================

    def get_price_schedule(self, boat_id: str, service_id: str, currency: str = "EUR"):
        """
        Merged price schedule of a service on a boat.

        Raises:
            PriceNotConfiguredError: boat or service does not exist
        """
        from .pricing_engine import build_price_schedule

        boat = self.db.query(Boat).filter(Boat.id == boat_id).first()
        if not boat:
            raise PriceNotConfiguredError(f"Boat {boat_id} not found")

        service = self.db.query(RentalService).filter(RentalService.id == service_id).first()
        if not service:
            raise PriceNotConfiguredError(f"Service {service_id} not found")

        boat_service = self.db.query(BoatService).filter(
            BoatService.boat_id == boat_id,
            BoatService.service_id == service_id,
            BoatService.is_active == True  # noqa: E712
        ).first()

        tiers = self.db.query(PassengerPriceTier).filter(
            PassengerPriceTier.service_id == service_id,
            or_(
                PassengerPriceTier.boat_id.is_(None),
                PassengerPriceTier.boat_id == boat_id
            )
        ).all()

        return build_price_schedule(boat, service, boat_service, tiers, currency=currency)

    # ==================
    # Boat services
    # ==================

    def get_service(self, service_id: str) -> Optional[RentalService]:
        return self.db.query(RentalService).filter(RentalService.id == service_id).first()

    def list_boat_services(self, boat_id: str) -> List[BoatService]:
        """Active services of a boat."""
        return self.db.query(BoatService).filter(
            BoatService.boat_id == boat_id,
            BoatService.is_active == True  # noqa: E712
        ).order_by(BoatService.created_at).all()

    def list_boat_tiers(self, boat_id: str) -> List[PassengerPriceTier]:
        """Boat-specific passenger tiers; service defaults are not included."""
        return self.db.query(PassengerPriceTier).filter(
            PassengerPriceTier.boat_id == boat_id
        ).order_by(
            PassengerPriceTier.service_id,
            PassengerPriceTier.season,
            PassengerPriceTier.min_passengers
        ).all()

    def replace_boat_services(
        self,
        boat_id: str,
        boat_services: List[BoatService],
        tiers: List[PassengerPriceTier]
    ):
        """
        Swap the boat's whole service list and its boat-specific tiers.
        Bulk deletes run immediately so the new rows do not hit
        uq_boat_rental_services_boat_service on flush.
        """
        self.db.query(PassengerPriceTier).filter(
            PassengerPriceTier.boat_id == boat_id
        ).delete(synchronize_session=False)
        self.db.query(BoatService).filter(
            BoatService.boat_id == boat_id
        ).delete(synchronize_session=False)
        self.db.add_all(boat_services)
        self.db.add_all(tiers)
        self.db.flush()

    # ==================
    # Booking writes
    # ==================

    def lock_boat(self, boat_id: str) -> Optional[Boat]:
        """Lock the boat for the rest of the transaction (row lock, or the SQLite write lock)."""
        return acquire_row_lock(self.db, Boat, Boat.id == boat_id)

    def lock_booking(self, booking_id: str) -> Optional[Booking]:
        return acquire_row_lock(self.db, Booking, Booking.id == booking_id)

    def insert_booking(self, booking: Booking) -> Booking:
        """
        Add and flush a booking.

        Raises:
            BookingConflictError: the slot uniqueness index rejected the row
        """
        self.db.add(booking)
        self._flush_or_conflict()
        return booking

    def update_booking(self, booking: Booking) -> Booking:
        """Flush pending changes on a booking, same conflict contract as insert."""
        self._flush_or_conflict()
        return booking

    def _flush_or_conflict(self):
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e, BLOCKING_SLOT_INDEX, table=Booking.__tablename__, columns=BLOCKING_SLOT_COLUMNS):
                logger.warning(f"Slot uniqueness violation: {e.orig}")
                raise BookingConflictError(REASON_SLOT_TAKEN)
            raise

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def list_all_bookings(
        self,
        boat_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> List[Booking]:
        query = self.db.query(Booking)
        if boat_id:
            query = query.filter(Booking.boat_id == boat_id)
        if date_from:
            query = query.filter(Booking.booking_date >= date_from)
        if date_to:
            query = query.filter(Booking.booking_date <= date_to)
        return query.order_by(Booking.booking_date.desc(), Booking.created_at.desc()).all()

    def delete_booking(self, booking: Booking):
        self.db.delete(booking)
        self.db.flush()

    # ==================
    # Statuses
    # ==================

    def get_status(self, status_id: Optional[str] = None, code: Optional[str] = None) -> Optional[BookingStatus]:
        query = self.db.query(BookingStatus)
        if status_id:
            return query.filter(BookingStatus.id == status_id).first()
        if code:
            return query.filter(BookingStatus.code == code).first()
        return None

    # ==================
    # Unavailability windows
    # ==================

    def list_unavailability_range(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        boat_id: Optional[str] = None
    ) -> List[UnavailabilityWindow]:
        """Windows overlapping [start, end] (both optional)."""
        query = self.db.query(UnavailabilityWindow)
        if boat_id:
            query = query.filter(UnavailabilityWindow.boat_id == boat_id)
        if start and end:
            query = query.filter(and_(
                UnavailabilityWindow.date_from <= end,
                UnavailabilityWindow.date_to >= start
            ))
        return query.order_by(UnavailabilityWindow.date_from).all()

    def insert_unavailability(self, window: UnavailabilityWindow) -> UnavailabilityWindow:
        self.db.add(window)
        self.db.flush()
        return window

    def get_unavailability(self, window_id: str) -> Optional[UnavailabilityWindow]:
        return self.db.query(UnavailabilityWindow).filter(UnavailabilityWindow.id == window_id).first()

    def delete_unavailability(self, window: UnavailabilityWindow):
        self.db.delete(window)
        self.db.flush()

    def get_boat(self, boat_id: str) -> Optional[Boat]:
        return self.db.query(Boat).filter(Boat.id == boat_id).first()
