from fastapi import APIRouter, Depends, HTTPException, Request, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from ..config import settings
from ..database import get_db
from ..exceptions import (
    BookingConflictError, BookingNotFoundError, BookingValidationError, PriceNotConfiguredError
)
from ..schemas.booking import (
    AvailabilityCheckRequest, AvailabilityResponse,
    PriceCalculationRequest, PriceCalculationResponse,
    BookingCreate, BookingUpdate, BookingStatusUpdate, BookingResponse
)
from ..services.booking_service import BookingService
from ..services.booking_store import BookingStore
from ..services.pricing_engine import PricingEngine
from ..utils.rate_limiter import limiter, get_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(
        db,
        all_bookings_block=settings.all_bookings_block,
        currency=settings.default_currency
    )


@router.post("/check-availability", response_model=AvailabilityResponse, response_model_exclude_none=True)
@limiter.limit(get_rate_limit("check_availability"))
async def check_availability(
    request: Request,
    payload: AvailabilityCheckRequest,
    service: BookingService = Depends(get_booking_service)
):
    """
    Check whether a boat can be booked for a date and slot.

    Pass booking_id when editing so the booking does not conflict with
    itself. A store failure answers unavailable.
    """
    result = service.check_availability(
        payload.boat_id,
        payload.booking_date,
        payload.time_slot,
        exclude_booking_id=payload.booking_id
    )
    return AvailabilityResponse(available=result.available, reason=result.reason)


@router.post("/calculate-price", response_model=PriceCalculationResponse)
@limiter.limit(get_rate_limit("calculate_price"))
async def calculate_price(
    request: Request,
    payload: PriceCalculationRequest,
    db: Session = Depends(get_db)
):
    """Suggested price for boat + service + date + passengers"""
    engine = PricingEngine(db, currency=settings.default_currency)
    try:
        quote = engine.calculate_price(
            payload.boat_id,
            payload.service_id,
            payload.booking_date,
            payload.num_passengers
        )
    except PriceNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Price not configured: {e}"
        )

    return PriceCalculationResponse(
        price=quote.price,
        currency=quote.currency,
        season=quote.season.value if quote.season else None,
        source=quote.source,
        boat_id=payload.boat_id,
        service_id=payload.service_id,
        booking_date=payload.booking_date,
        num_passengers=payload.num_passengers
    )


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    boat_id: Optional[str] = Query(None, description="Filter by boat"),
    date_from: Optional[date] = Query(None, description="First booking date (inclusive)"),
    date_to: Optional[date] = Query(None, description="Last booking date (inclusive)"),
    db: Session = Depends(get_db)
):
    return BookingStore(db).list_all_bookings(boat_id=boat_id, date_from=date_from, date_to=date_to)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: str, db: Session = Depends(get_db)):
    booking = BookingStore(db).get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("booking_create"))
async def create_booking(
    request: Request,
    booking_data: BookingCreate,
    service: BookingService = Depends(get_booking_service)
):
    """
    Create a booking.

    - Without base_price/final_price the price is computed by the pricing engine
    - Availability is re-checked under a boat lock in the same transaction as the insert
    """
    try:
        return service.create_booking(booking_data)
    except BookingConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.reason)
    except PriceNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Price not configured: {e}"
        )
    except BookingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/{booking_id}", response_model=BookingResponse)
@limiter.limit(get_rate_limit("booking_update"))
async def update_booking(
    request: Request,
    booking_id: str,
    booking_data: BookingUpdate,
    service: BookingService = Depends(get_booking_service)
):
    """Update a booking; availability is re-validated excluding the booking itself"""
    try:
        return service.update_booking(booking_id, booking_data)
    except BookingConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.reason)
    except BookingValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except BookingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{booking_id}/status", response_model=BookingResponse)
@limiter.limit(get_rate_limit("booking_update"))
async def update_booking_status(
    request: Request,
    booking_id: str,
    status_data: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service)
):
    try:
        return service.update_status(booking_id, status_data.status)
    except BookingConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.reason)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{booking_id}")
@limiter.limit(get_rate_limit("booking_delete"))
async def delete_booking(
    request: Request,
    booking_id: str,
    service: BookingService = Depends(get_booking_service)
):
    """Hard delete. Cancelling through the status keeps the record."""
    try:
        service.delete_booking(booking_id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"success": True}
