import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class BoatStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class Boat(Base):
    """
    A rentable vessel.

    Seasonal base prices are split per service type (rental/charter) into
    high/mid/low tiers. They are the last fallback of price resolution
    when no service schedule covers the season:
    - high: August
    - mid: June, July/September
    - low: April/May/October
    """
    __tablename__ = "boats"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    boat_type = Column(String(50), nullable=True)
    model = Column(String(100), nullable=True)
    capacity = Column(Integer, nullable=True)  # max passengers
    has_rental = Column(Boolean, default=True)
    has_charter = Column(Boolean, default=False)
    requires_license = Column(Boolean, default=False)
    status = Column(String(20), default=BoatStatus.ACTIVE.value)
    notes = Column(Text, nullable=True)

    # Seasonal base prices
    rental_price_high = Column(Numeric(10, 2), nullable=True)
    rental_price_mid = Column(Numeric(10, 2), nullable=True)
    rental_price_low = Column(Numeric(10, 2), nullable=True)
    charter_price_high = Column(Numeric(10, 2), nullable=True)
    charter_price_mid = Column(Numeric(10, 2), nullable=True)
    charter_price_low = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    bookings = relationship("Booking", back_populates="boat")
    unavailabilities = relationship("UnavailabilityWindow", back_populates="boat")
    services = relationship("BoatService", back_populates="boat")

    def __repr__(self):
        return f"<Boat {self.name}>"
