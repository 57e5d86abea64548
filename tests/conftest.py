"""
Shared fixtures: an in-memory SQLite database with the full schema,
seeded booking statuses and a priced boat/service pair.
"""

import pytest
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ns3000.database import Base
from ns3000 import models  # noqa: F401
from ns3000.models.boat import Boat
from ns3000.models.service import RentalService, BoatService
from ns3000.services.booking_service import seed_booking_statuses


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    seed_booking_statuses(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def boat(db):
    boat = Boat(
        id="boat-x",
        name="Gozzo Sorrentino 7m",
        boat_type="gozzo",
        capacity=8,
        rental_price_high=Decimal("400.00"),
        rental_price_mid=Decimal("300.00"),
        rental_price_low=Decimal("200.00"),
    )
    db.add(boat)
    db.commit()
    return boat


@pytest.fixture
def service(db, boat):
    """Full-day rental: default prices, August overridden on boat-x"""
    service = RentalService(
        id="svc-s",
        name="Noleggio giornaliero",
        type="rental",
        price_apr_may_oct=Decimal("250.00"),
        price_june=Decimal("320.00"),
        price_july_sept=Decimal("380.00"),
        price_august=Decimal("450.00"),
    )
    db.add(service)
    db.add(BoatService(
        boat_id=boat.id,
        service_id=service.id,
        price_august=Decimal("500.00"),
    ))
    db.commit()
    return service
