import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Date, Integer, Numeric, Text, ForeignKey, DateTime, Index, Boolean,
    and_, true
)
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class TimeSlot(str, enum.Enum):
    """Standard slot vocabulary. Any other value is a custom slot."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    FULL_DAY = "full_day"


STANDARD_SLOTS = tuple(slot.value for slot in TimeSlot)


class BookingStatusCode(str, enum.Enum):
    PENDING = "pending"
    OPTION = "option"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Seed rows for booking_statuses: (code, name, color, blocks_availability)
DEFAULT_BOOKING_STATUSES = [
    (BookingStatusCode.PENDING.value, "In attesa", "#f59e0b", True),
    (BookingStatusCode.OPTION.value, "Opzione", "#8b5cf6", True),
    (BookingStatusCode.CONFIRMED.value, "Confermata", "#10b981", True),
    (BookingStatusCode.COMPLETED.value, "Completata", "#6b7280", True),
    (BookingStatusCode.CANCELLED.value, "Cancellata", "#ef4444", False),
]


class BookingStatus(Base):
    __tablename__ = "booking_statuses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String(30), nullable=False, unique=True)
    name = Column(String(50), nullable=False)
    color_code = Column(String(20), nullable=True)
    # Whether bookings in this status occupy their slot
    blocks_availability = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    bookings = relationship("Booking", back_populates="booking_status")

    def __repr__(self):
        return f"<BookingStatus {self.code} blocks={self.blocks_availability}>"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    booking_number = Column(String(30), nullable=True, unique=True)
    boat_id = Column(String(36), ForeignKey("boats.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(String(36), ForeignKey("rental_services.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(String(36), nullable=True)
    booking_status_id = Column(String(36), ForeignKey("booking_statuses.id", ondelete="SET NULL"), nullable=True)

    booking_date = Column(Date, nullable=False)
    time_slot = Column(String(50), nullable=False, default=TimeSlot.FULL_DAY.value)
    custom_time = Column(String(50), nullable=True)
    num_passengers = Column(Integer, nullable=True)

    # Denormalised copy of booking_status.blocks_availability so the
    # slot uniqueness index can be enforced by the database
    is_blocking = Column(Boolean, nullable=False, default=True)

    # Pricing / payment bookkeeping
    base_price = Column(Numeric(10, 2), default=0)
    final_price = Column(Numeric(10, 2), default=0)
    deposit_amount = Column(Numeric(10, 2), default=0)
    balance_amount = Column(Numeric(10, 2), default=0)
    security_deposit = Column(Numeric(10, 2), default=0)
    total_paid = Column(Numeric(10, 2), default=0)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    boat = relationship("Boat", back_populates="bookings")
    service = relationship("RentalService")
    booking_status = relationship("BookingStatus", back_populates="bookings")

    __table_args__ = (
        Index("ix_bookings_boat_date", "boat_id", "booking_date"),
    )

    @property
    def status_code(self):
        return self.booking_status.code if self.booking_status else None

    def __repr__(self):
        return f"<Booking {self.booking_number} {self.booking_date} {self.time_slot}>"


# At most one blocking booking per (boat, date, standard slot).
# morning+full_day overlap is serialised by the boat lock in BookingService
# (row lock on PostgreSQL, database write lock on SQLite); this index is
# the last line for identical slots.
_blocking_standard_slot = and_(
    Booking.is_blocking == true(),
    Booking.time_slot.in_(STANDARD_SLOTS),
)

BLOCKING_SLOT_INDEX = "uq_bookings_blocking_slot"
BLOCKING_SLOT_COLUMNS = ("boat_id", "booking_date", "time_slot")

Index(
    BLOCKING_SLOT_INDEX,
    *(getattr(Booking, column) for column in BLOCKING_SLOT_COLUMNS),
    unique=True,
    postgresql_where=_blocking_standard_slot,
    sqlite_where=_blocking_standard_slot,
)
