"""
Booking Service

Creates and edits bookings so that the availability check and the write
happen in one transaction:

1. Stamp a price (staff override wins over the pricing engine)
2. Lock the boat (row lock on PostgreSQL, database write lock on SQLite)
3. Re-run the availability resolver against the locked state
4. Insert/update and flush; the slot uniqueness index backs step 3
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import BookingConflictError, BookingNotFoundError, BookingValidationError
from ..models.booking import Booking, BookingStatus, BookingStatusCode
from ..schemas.booking import BookingCreate, BookingUpdate
from ..utils.logging_config import get_logger
from .availability import AvailabilityService, AvailabilityResult, canonical_slot
from .booking_store import BookingStore
from .pricing_engine import PricingEngine

logger = get_logger(__name__)

DEFAULT_STATUS_CODE = BookingStatusCode.PENDING.value


def generate_booking_number(booking_date: date) -> str:
    return f"NS{booking_date:%y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def seed_booking_statuses(db: Session) -> int:
    """Insert missing default statuses. Returns the number created."""
    from ..models.booking import DEFAULT_BOOKING_STATUSES

    existing = {code for (code,) in db.query(BookingStatus.code).all()}
    created = 0
    for code, name, color, blocks in DEFAULT_BOOKING_STATUSES:
        if code in existing:
            continue
        db.add(BookingStatus(code=code, name=name, color_code=color, blocks_availability=blocks))
        created += 1
    if created:
        db.commit()
        logger.info(f"Seeded {created} booking statuses")
    return created


class BookingService:

    def __init__(self, db: Session, all_bookings_block: bool = False, currency: str = "EUR"):
        self.db = db
        self.store = BookingStore(db)
        self.availability = AvailabilityService(db, all_bookings_block=all_bookings_block)
        self.pricing = PricingEngine(db, currency=currency)

    def check_availability(
        self,
        boat_id: str,
        booking_date: date,
        time_slot: str,
        exclude_booking_id: Optional[str] = None
    ) -> AvailabilityResult:
        """Fast-path check for form feedback; the write path re-checks under lock."""
        return self.availability.check_availability(boat_id, booking_date, time_slot, exclude_booking_id)

    def _resolve_status(self, status_id: Optional[str]) -> BookingStatus:
        status = self.store.get_status(status_id=status_id) if status_id else self.store.get_status(code=DEFAULT_STATUS_CODE)
        if status is None:
            self.db.rollback()
            raise BookingNotFoundError(f"Booking status {status_id or DEFAULT_STATUS_CODE} not found")
        return status

    def _ensure_slot_free(self, booking: Booking, exclude_booking_id: Optional[str] = None):
        """
        Lock the boat and re-run the resolver. Must be called inside the
        transaction that writes the booking.
        """
        boat = self.store.lock_boat(booking.boat_id)
        if boat is None:
            self.db.rollback()
            raise BookingNotFoundError(f"Boat {booking.boat_id} not found")

        if not booking.is_blocking and not self.availability.all_bookings_block:
            return

        result = self.availability.evaluate(
            booking.boat_id, booking.booking_date, booking.time_slot, exclude_booking_id
        )
        if not result.available:
            logger.booking_conflict(booking.boat_id, booking.booking_date, booking.time_slot, result.reason)
            self.db.rollback()
            raise BookingConflictError(result.reason)

    def create_booking(self, data: BookingCreate) -> Booking:
        """
        Raises:
            PriceNotConfiguredError: no price given and none can be computed
            BookingConflictError: the slot is taken or the boat is unavailable
            BookingNotFoundError: unknown boat or status
        """
        status = self._resolve_status(data.booking_status_id)

        base_price = data.base_price
        final_price = data.final_price
        if base_price is None and final_price is None:
            quote = self.pricing.calculate_price(
                data.boat_id, data.service_id, data.booking_date, data.num_passengers
            )
            base_price = quote.price
        if base_price is None:
            base_price = final_price
        if final_price is None:
            final_price = base_price

        balance_amount = data.balance_amount
        if balance_amount is None:
            balance_amount = final_price - data.deposit_amount

        booking = Booking(
            booking_number=generate_booking_number(data.booking_date),
            boat_id=data.boat_id,
            service_id=data.service_id,
            customer_id=data.customer_id,
            booking_status_id=status.id,
            booking_date=data.booking_date,
            time_slot=canonical_slot(data.time_slot),
            custom_time=data.custom_time,
            num_passengers=data.num_passengers,
            is_blocking=bool(status.blocks_availability),
            base_price=base_price,
            final_price=final_price,
            deposit_amount=data.deposit_amount,
            balance_amount=balance_amount,
            security_deposit=data.security_deposit,
            total_paid=data.total_paid,
            notes=data.notes,
        )

        self._ensure_slot_free(booking)
        self.store.insert_booking(booking)
        self.db.commit()
        self.db.refresh(booking)

        logger.booking_created(booking.id, booking.boat_id, booking.booking_date, booking.time_slot, booking.final_price)
        return booking

    def update_booking(self, booking_id: str, data: BookingUpdate) -> Booking:
        """
        Apply changes and re-validate availability, excluding the booking
        itself so it does not conflict with its own slot.
        """
        booking = self.store.lock_booking(booking_id)
        if booking is None:
            self.db.rollback()
            raise BookingNotFoundError(f"Booking {booking_id} not found")

        changes = data.model_dump(exclude_unset=True)

        if "booking_status_id" in changes:
            status = self._resolve_status(changes.pop("booking_status_id"))
            booking.booking_status_id = status.id
            booking.booking_status = status
            booking.is_blocking = bool(status.blocks_availability)

        if "time_slot" in changes:
            changes["time_slot"] = canonical_slot(changes["time_slot"])

        price_touched = "final_price" in changes or "deposit_amount" in changes
        for key, value in changes.items():
            setattr(booking, key, value)

        final_price = Decimal(str(booking.final_price or 0))
        deposit_amount = Decimal(str(booking.deposit_amount or 0))
        if deposit_amount > final_price:
            self.db.rollback()
            raise BookingValidationError("deposit_amount cannot exceed final_price")

        if price_touched and "balance_amount" not in changes:
            booking.balance_amount = final_price - deposit_amount

        self._ensure_slot_free(booking, exclude_booking_id=booking.id)
        self.store.update_booking(booking)
        self.db.commit()
        self.db.refresh(booking)

        logger.log_with_context(
            logging.INFO,
            f"Booking updated: {', '.join(sorted(changes)) or 'status'}",
            entity_type="booking",
            entity_id=booking.id,
        )
        return booking

    def update_status(self, booking_id: str, status_code: str) -> Booking:
        """Change status by code. Re-activating a cancelled booking re-checks its slot."""
        status = self.store.get_status(code=status_code)
        if status is None:
            raise BookingNotFoundError(f"Booking status {status_code} not found")
        return self.update_booking(booking_id, BookingUpdate(booking_status_id=status.id))

    def delete_booking(self, booking_id: str):
        booking = self.store.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        self.store.delete_booking(booking)
        self.db.commit()
        logger.log_with_context(logging.INFO, "Booking deleted", entity_type="booking", entity_id=booking_id)
