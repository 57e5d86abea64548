"""
Rental Service and Price Schedule Models

Stores the price configuration consumed by the pricing engine:
- rental_services: the offering with its default seasonal prices
- boat_rental_services: per-boat custom seasonal prices for a service
- passenger_price_tiers: passenger-count sub-tiers within a season
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Numeric, Text, Boolean, DateTime, ForeignKey,
    UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class ServiceType(str, enum.Enum):
    RENTAL = "rental"
    CHARTER = "charter"
    COLLECTIVE = "collective"


class Season(str, enum.Enum):
    """Month groupings used to pick a price bracket"""
    APR_MAY_OCT = "apr_may_oct"
    JUNE = "june"
    JULY_SEPT = "july_sept"
    AUGUST = "august"


# Column name of the flat price for each season, on both
# RentalService and BoatService
SEASON_PRICE_COLUMNS = {
    Season.APR_MAY_OCT: "price_apr_may_oct",
    Season.JUNE: "price_june",
    Season.JULY_SEPT: "price_july_sept",
    Season.AUGUST: "price_august",
}


class RentalService(Base):
    __tablename__ = "rental_services"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), default=ServiceType.RENTAL.value)
    duration_hours = Column(Numeric(5, 2), nullable=True)

    # Collective tours are priced per person, not per boat
    is_collective_tour = Column(Boolean, default=False)
    price_per_person = Column(Numeric(10, 2), nullable=True)

    # Default seasonal prices (overridden per boat by BoatService)
    price_apr_may_oct = Column(Numeric(10, 2), nullable=True)
    price_june = Column(Numeric(10, 2), nullable=True)
    price_july_sept = Column(Numeric(10, 2), nullable=True)
    price_august = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    boat_services = relationship("BoatService", back_populates="service")
    passenger_tiers = relationship("PassengerPriceTier", back_populates="service")

    def __repr__(self):
        return f"<RentalService {self.name} ({self.type})>"


class BoatService(Base):
    """A boat offering a service, optionally at custom seasonal prices."""
    __tablename__ = "boat_rental_services"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    boat_id = Column(String(36), ForeignKey("boats.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(String(36), ForeignKey("rental_services.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Boolean, default=True)

    price_apr_may_oct = Column(Numeric(10, 2), nullable=True)
    price_june = Column(Numeric(10, 2), nullable=True)
    price_july_sept = Column(Numeric(10, 2), nullable=True)
    price_august = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    boat = relationship("Boat", back_populates="services")
    service = relationship("RentalService", back_populates="boat_services")

    __table_args__ = (
        UniqueConstraint("boat_id", "service_id", name="uq_boat_rental_services_boat_service"),
    )

    def __repr__(self):
        return f"<BoatService boat={self.boat_id} service={self.service_id}>"


class PassengerPriceTier(Base):
    """
    Price for a passenger-count range within one season.

    boat_id NULL means the tier is the service default; a boat-specific
    tier set for a season replaces the default set for that season.
    max_passengers NULL means no upper bound.
    """
    __tablename__ = "passenger_price_tiers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    service_id = Column(String(36), ForeignKey("rental_services.id", ondelete="CASCADE"), nullable=False)
    boat_id = Column(String(36), ForeignKey("boats.id", ondelete="CASCADE"), nullable=True)
    season = Column(String(20), nullable=False)
    min_passengers = Column(Integer, nullable=False, default=1)
    max_passengers = Column(Integer, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    service = relationship("RentalService", back_populates="passenger_tiers")

    __table_args__ = (
        CheckConstraint("min_passengers >= 1", name="ck_passenger_tiers_min"),
        CheckConstraint(
            "max_passengers IS NULL OR max_passengers >= min_passengers",
            name="ck_passenger_tiers_range"
        ),
        Index("ix_passenger_tiers_lookup", "service_id", "boat_id", "season"),
    )

    def __repr__(self):
        return f"<PassengerPriceTier {self.season} {self.min_passengers}-{self.max_passengers}: {self.price}>"
