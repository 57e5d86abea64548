from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime, date
from decimal import Decimal
import re


def _strip_markup(v):
    """Remove script tags and inline event handlers from free text"""
    if isinstance(v, str):
        v = re.sub(r'<script[^>]*>.*?</script>', '', v, flags=re.IGNORECASE | re.DOTALL)
        v = re.sub(r'on\w+\s*=', '', v, flags=re.IGNORECASE)
    return v


class AvailabilityCheckRequest(BaseModel):
    boat_id: str = Field(..., min_length=1, max_length=36)
    booking_date: date
    time_slot: str = Field("full_day", min_length=1, max_length=50)
    # Booking being edited, so it does not conflict with itself
    booking_id: Optional[str] = Field(None, max_length=36)


class AvailabilityResponse(BaseModel):
    available: bool
    reason: Optional[str] = None


class PriceCalculationRequest(BaseModel):
    boat_id: str = Field(..., min_length=1, max_length=36)
    service_id: str = Field(..., min_length=1, max_length=36)
    booking_date: date
    num_passengers: int = Field(1, ge=1, le=500)


class PriceCalculationResponse(BaseModel):
    price: Decimal
    currency: str
    season: Optional[str] = None
    source: str
    boat_id: str
    service_id: str
    booking_date: date
    num_passengers: int


class BookingCreate(BaseModel):
    boat_id: str = Field(..., min_length=1, max_length=36)
    service_id: str = Field(..., min_length=1, max_length=36)
    customer_id: Optional[str] = Field(None, max_length=36)
    booking_status_id: Optional[str] = Field(None, max_length=36)
    booking_date: date
    time_slot: str = Field("full_day", min_length=1, max_length=50)
    custom_time: Optional[str] = Field(None, max_length=50)
    num_passengers: int = Field(1, ge=1, le=500)

    # Manual override of the computed price
    base_price: Optional[Decimal] = Field(None, ge=0)
    final_price: Optional[Decimal] = Field(None, ge=0)
    deposit_amount: Decimal = Field(Decimal("0"), ge=0)
    balance_amount: Optional[Decimal] = None
    security_deposit: Decimal = Field(Decimal("0"), ge=0)
    total_paid: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator('notes', 'custom_time', mode='before')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _strip_markup(v)

    @model_validator(mode='after')
    def validate_deposit(self):
        if self.final_price is not None and self.deposit_amount > self.final_price:
            raise ValueError('deposit_amount cannot exceed final_price')
        return self


# Booking columns that may be changed but never cleared
NOT_NULL_UPDATE_FIELDS = frozenset({
    'boat_id', 'booking_date', 'time_slot', 'num_passengers',
    'base_price', 'final_price', 'deposit_amount', 'security_deposit', 'total_paid',
})


class BookingUpdate(BaseModel):
    boat_id: Optional[str] = Field(None, min_length=1, max_length=36)
    service_id: Optional[str] = Field(None, min_length=1, max_length=36)
    customer_id: Optional[str] = Field(None, max_length=36)
    booking_status_id: Optional[str] = Field(None, max_length=36)
    booking_date: Optional[date] = None
    time_slot: Optional[str] = Field(None, min_length=1, max_length=50)
    custom_time: Optional[str] = Field(None, max_length=50)
    num_passengers: Optional[int] = Field(None, ge=1, le=500)
    base_price: Optional[Decimal] = Field(None, ge=0)
    final_price: Optional[Decimal] = Field(None, ge=0)
    deposit_amount: Optional[Decimal] = Field(None, ge=0)
    balance_amount: Optional[Decimal] = None
    security_deposit: Optional[Decimal] = Field(None, ge=0)
    total_paid: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator('notes', 'custom_time', mode='before')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _strip_markup(v)

    @model_validator(mode='after')
    def reject_null_required_fields(self):
        """Omit a field to keep it; null is only accepted for nullable columns"""
        nulls = sorted(
            name for name in self.model_fields_set & NOT_NULL_UPDATE_FIELDS
            if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self


class BookingStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=30, description="Status code, e.g. confirmed")


class BookingResponse(BaseModel):
    id: str
    booking_number: Optional[str] = None
    boat_id: str
    service_id: Optional[str] = None
    customer_id: Optional[str] = None
    booking_status_id: Optional[str] = None
    status_code: Optional[str] = None
    booking_date: date
    time_slot: str
    custom_time: Optional[str] = None
    num_passengers: Optional[int] = None
    is_blocking: bool
    base_price: Decimal = Decimal("0")
    final_price: Decimal = Decimal("0")
    deposit_amount: Decimal = Decimal("0")
    balance_amount: Decimal = Decimal("0")
    security_deposit: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
