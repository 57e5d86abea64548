from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from decimal import Decimal

from ..models.service import Season


class PassengerTierIn(BaseModel):
    season: Season
    min_passengers: int = Field(1, ge=1)
    max_passengers: Optional[int] = Field(None, ge=1, description="Omit for no upper bound")
    price: Decimal = Field(..., gt=0)

    @model_validator(mode='after')
    def validate_range(self):
        if self.max_passengers is not None and self.max_passengers < self.min_passengers:
            raise ValueError('max_passengers must be >= min_passengers')
        return self


class BoatServicePrices(BaseModel):
    """One service offered by the boat, with optional custom seasonal prices"""
    service_id: str = Field(..., min_length=1, max_length=36)
    price_apr_may_oct: Optional[Decimal] = Field(None, ge=0)
    price_june: Optional[Decimal] = Field(None, ge=0)
    price_july_sept: Optional[Decimal] = Field(None, ge=0)
    price_august: Optional[Decimal] = Field(None, ge=0)
    # Boat-specific tiers; they replace the service default tiers per season
    passenger_tiers: List[PassengerTierIn] = Field(default_factory=list)

    @field_validator('price_apr_may_oct', 'price_june', 'price_july_sept', 'price_august')
    @classmethod
    def zero_means_unset(cls, v):
        """A 0 price falls back to the service default instead of pricing at zero"""
        if v is not None and v == 0:
            return None
        return v


class BoatServicesReplace(BaseModel):
    """Full list of the boat's services; anything not listed is removed"""
    services: List[BoatServicePrices] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_unique_services(self):
        ids = [s.service_id for s in self.services]
        if len(ids) != len(set(ids)):
            raise ValueError('each service_id may appear only once')
        return self


class PassengerTierResponse(BaseModel):
    id: str
    season: str
    min_passengers: int
    max_passengers: Optional[int] = None
    price: Decimal

    class Config:
        from_attributes = True


class BoatServiceResponse(BaseModel):
    id: str
    boat_id: str
    service_id: str
    service_name: Optional[str] = None
    service_type: Optional[str] = None
    is_active: bool = True
    price_apr_may_oct: Optional[Decimal] = None
    price_june: Optional[Decimal] = None
    price_july_sept: Optional[Decimal] = None
    price_august: Optional[Decimal] = None
    passenger_tiers: List[PassengerTierResponse] = []
