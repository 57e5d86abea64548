from fastapi import APIRouter, Depends, HTTPException, Request, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from ..database import get_db
from ..models.unavailability import UnavailabilityWindow
from ..schemas.unavailability import UnavailabilityCreate, UnavailabilityResponse
from ..services.booking_store import BookingStore
from ..utils.rate_limiter import limiter, get_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/unavailabilities", tags=["Unavailability"])


@router.get("", response_model=List[UnavailabilityResponse])
async def list_unavailabilities(
    start: Optional[date] = Query(None, description="Range start (inclusive)"),
    end: Optional[date] = Query(None, description="Range end (inclusive)"),
    boat_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Windows overlapping [start, end] when both are given, otherwise all"""
    if start and end and end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must be on or after start")
    return BookingStore(db).list_unavailability_range(start=start, end=end, boat_id=boat_id)


@router.post("", response_model=UnavailabilityResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("unavailability_write"))
async def create_unavailability(
    request: Request,
    payload: UnavailabilityCreate,
    db: Session = Depends(get_db)
):
    store = BookingStore(db)
    if not store.get_boat(payload.boat_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Boat not found")

    window = UnavailabilityWindow(
        boat_id=payload.boat_id,
        date_from=payload.date_from,
        date_to=payload.date_to,
        reason=payload.reason or None,
        notes=payload.notes or None
    )
    store.insert_unavailability(window)
    db.commit()
    db.refresh(window)

    logger.info(f"Boat {payload.boat_id} blocked {payload.date_from}..{payload.date_to}: {payload.reason or '-'}")
    return window


@router.delete("/{window_id}")
@limiter.limit(get_rate_limit("unavailability_write"))
async def delete_unavailability(
    request: Request,
    window_id: str,
    db: Session = Depends(get_db)
):
    store = BookingStore(db)
    window = store.get_unavailability(window_id)
    if not window:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unavailability not found")
    store.delete_unavailability(window)
    db.commit()
    return {"success": True}
