"""
Pricing Engine Service

Computes the suggested price of a booking from:
- The season bracket of the booking date
- The boat's custom prices for the service, else the service defaults
- Passenger-count sub-tiers within the season, where defined
- Per-person pricing for collective tours

Resolution precedence (first that yields a price wins):
1. Collective tour: price_per_person * num_passengers
2. Passenger tier of the season containing num_passengers
3. Flat seasonal price (boat override, then service default)
4. Boat seasonal base price for the service type
5. PriceNotConfiguredError - a missing price is never coerced to zero

The computed price is a suggestion; staff may override it on the booking.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Optional, Iterable
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from ..exceptions import PriceNotConfiguredError
from ..models.service import Season, ServiceType, SEASON_PRICE_COLUMNS
from ..utils.logging_config import get_logger
from .booking_store import BookingStore

logger = get_logger(__name__)

CENT = Decimal("0.01")

# Month -> season bracket. Months not listed have no bracket.
SEASON_BY_MONTH = {
    4: Season.APR_MAY_OCT,
    5: Season.APR_MAY_OCT,
    6: Season.JUNE,
    7: Season.JULY_SEPT,
    8: Season.AUGUST,
    9: Season.JULY_SEPT,
    10: Season.APR_MAY_OCT,
}

# Season -> boat base price band
BASE_PRICE_BAND = {
    Season.AUGUST: "high",
    Season.JUNE: "mid",
    Season.JULY_SEPT: "mid",
    Season.APR_MAY_OCT: "low",
}

SOURCE_COLLECTIVE = "collective"
SOURCE_PASSENGER_TIER = "passenger_tier"
SOURCE_BOAT_SERVICE = "boat_service"
SOURCE_SERVICE = "service"
SOURCE_BOAT_BASE = "boat_base"


@dataclass
class PassengerTier:
    """Price for num_passengers in [min_passengers, max_passengers]"""
    min_passengers: int
    max_passengers: Optional[int]
    price: Decimal

    def contains(self, num_passengers: int) -> bool:
        if num_passengers < self.min_passengers:
            return False
        return self.max_passengers is None or num_passengers <= self.max_passengers


@dataclass
class PriceSchedule:
    """Merged price table of one service as offered by one boat"""
    boat_id: str
    service_id: str
    service_type: str
    currency: str
    price_per_person: Optional[Decimal] = None
    # Flat seasonal price and where it came from (boat_service / service)
    season_prices: Dict[Season, Decimal] = field(default_factory=dict)
    season_sources: Dict[Season, str] = field(default_factory=dict)
    passenger_tiers: Dict[Season, List[PassengerTier]] = field(default_factory=dict)
    base_prices: Dict[Season, Decimal] = field(default_factory=dict)


@dataclass
class PriceQuote:
    price: Decimal
    currency: str
    season: Optional[Season]
    source: str


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def season_for_date(booking_date: date) -> Season:
    """
    Season bracket of a date:
    August; June; July+September; April+May+October.

    Raises:
        PriceNotConfiguredError: for months outside every bracket
    """
    season = SEASON_BY_MONTH.get(booking_date.month)
    if season is None:
        raise PriceNotConfiguredError(
            f"No price season covers {booking_date.isoformat()}"
        )
    return season


def select_passenger_tier(tiers: Iterable[PassengerTier], num_passengers: int) -> Optional[PassengerTier]:
    """
    Tier whose inclusive range contains num_passengers.
    Overlapping tiers resolve to the lowest min_passengers.
    """
    for tier in sorted(tiers, key=lambda t: t.min_passengers):
        if tier.contains(num_passengers):
            return tier
    return None


def build_price_schedule(
    boat,
    service,
    boat_service=None,
    tiers: Iterable = (),
    currency: str = "EUR",
) -> PriceSchedule:
    """
    Merge the boat's custom prices over the service defaults.

    Args:
        boat: Boat record
        service: RentalService record
        boat_service: BoatService record for the pair, if the boat offers it
        tiers: PassengerPriceTier records for the service (default and boat-specific)
        currency: ISO currency of the prices
    """
    schedule = PriceSchedule(
        boat_id=boat.id,
        service_id=service.id,
        service_type=service.type or ServiceType.RENTAL.value,
        currency=currency,
    )

    if service.is_collective_tour:
        schedule.price_per_person = _to_decimal(service.price_per_person)

    for season, column in SEASON_PRICE_COLUMNS.items():
        override = _to_decimal(getattr(boat_service, column, None)) if boat_service is not None else None
        default = _to_decimal(getattr(service, column, None))
        if override is not None:
            schedule.season_prices[season] = override
            schedule.season_sources[season] = SOURCE_BOAT_SERVICE
        elif default is not None:
            schedule.season_prices[season] = default
            schedule.season_sources[season] = SOURCE_SERVICE

    # A boat-specific tier set for a season replaces the default set
    default_tiers: Dict[Season, List[PassengerTier]] = {}
    boat_tiers: Dict[Season, List[PassengerTier]] = {}
    for row in tiers:
        tier = PassengerTier(
            min_passengers=row.min_passengers,
            max_passengers=row.max_passengers,
            price=_to_decimal(row.price),
        )
        try:
            season = Season(row.season)
        except ValueError:
            raise PriceNotConfiguredError(
                f"Passenger tier {getattr(row, 'id', None)} has unknown season {row.season!r}"
            )
        target = boat_tiers if row.boat_id else default_tiers
        target.setdefault(season, []).append(tier)
    for season in Season:
        chosen = boat_tiers.get(season) or default_tiers.get(season)
        if chosen:
            schedule.passenger_tiers[season] = chosen

    prefix = "charter" if schedule.service_type == ServiceType.CHARTER.value else "rental"
    for season, band in BASE_PRICE_BAND.items():
        base = _to_decimal(getattr(boat, f"{prefix}_price_{band}", None))
        if base is not None:
            schedule.base_prices[season] = base

    return schedule


def resolve_price(schedule: PriceSchedule, booking_date: date, num_passengers: int) -> PriceQuote:
    """
    Apply the resolution precedence to a schedule.

    Raises:
        PriceNotConfiguredError: when no rule yields a price
        ValueError: when num_passengers < 1
    """
    if num_passengers < 1:
        raise ValueError("num_passengers must be at least 1")

    if schedule.price_per_person is not None:
        price = (schedule.price_per_person * num_passengers).quantize(CENT, rounding=ROUND_HALF_UP)
        return PriceQuote(price=price, currency=schedule.currency, season=None, source=SOURCE_COLLECTIVE)

    season = season_for_date(booking_date)

    tiers = schedule.passenger_tiers.get(season)
    if tiers:
        tier = select_passenger_tier(tiers, num_passengers)
        if tier is None:
            raise PriceNotConfiguredError(
                f"No passenger tier for {num_passengers} passengers in season {season.value}"
            )
        return PriceQuote(
            price=tier.price.quantize(CENT, rounding=ROUND_HALF_UP),
            currency=schedule.currency,
            season=season,
            source=SOURCE_PASSENGER_TIER,
        )

    flat = schedule.season_prices.get(season)
    if flat is not None:
        return PriceQuote(
            price=flat.quantize(CENT, rounding=ROUND_HALF_UP),
            currency=schedule.currency,
            season=season,
            source=schedule.season_sources[season],
        )

    base = schedule.base_prices.get(season)
    if base is not None:
        return PriceQuote(
            price=base.quantize(CENT, rounding=ROUND_HALF_UP),
            currency=schedule.currency,
            season=season,
            source=SOURCE_BOAT_BASE,
        )

    raise PriceNotConfiguredError(
        f"Service {schedule.service_id} has no price on boat {schedule.boat_id} for season {season.value}"
    )


class PricingEngine:
    """
    Store-backed price resolution.

    Store errors propagate: a price is never fabricated when the
    configuration cannot be read.
    """

    def __init__(self, db: Session, currency: str = "EUR"):
        self.db = db
        self.store = BookingStore(db)
        self.currency = currency

    def get_price_schedule(self, boat_id: str, service_id: str) -> PriceSchedule:
        return self.store.get_price_schedule(boat_id, service_id, currency=self.currency)

    def calculate_price(
        self,
        boat_id: str,
        service_id: str,
        booking_date: date,
        num_passengers: int = 1
    ) -> PriceQuote:
        """
        Suggested price for a booking.

        Raises:
            PriceNotConfiguredError: missing configuration or undefined season
        """
        schedule = self.get_price_schedule(boat_id, service_id)
        quote = resolve_price(schedule, booking_date, num_passengers)
        logger.price_calculated(boat_id, service_id, booking_date, num_passengers, quote.price, quote.source)
        return quote
