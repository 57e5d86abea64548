from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class UnavailabilityCreate(BaseModel):
    boat_id: str = Field(..., min_length=1, max_length=36)
    date_from: date
    date_to: date
    reason: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode='after')
    def validate_range(self):
        """date_to is inclusive and may equal date_from"""
        if self.date_to < self.date_from:
            raise ValueError('date_to must be on or after date_from')
        return self


class UnavailabilityResponse(BaseModel):
    id: str
    boat_id: str
    date_from: date
    date_to: date
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
