from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import List
import logging

from ..database import get_db
from ..models.service import BoatService, PassengerPriceTier, SEASON_PRICE_COLUMNS
from ..schemas.boat_service import BoatServicesReplace, BoatServiceResponse, PassengerTierResponse
from ..services.booking_store import BookingStore
from ..utils.rate_limiter import limiter, get_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/boats", tags=["Boats"])


def _boat_services_response(store: BookingStore, boat_id: str) -> List[BoatServiceResponse]:
    tiers_by_service = {}
    for tier in store.list_boat_tiers(boat_id):
        tiers_by_service.setdefault(tier.service_id, []).append(PassengerTierResponse.model_validate(tier))

    result = []
    for link in store.list_boat_services(boat_id):
        result.append(BoatServiceResponse(
            id=link.id,
            boat_id=link.boat_id,
            service_id=link.service_id,
            service_name=link.service.name if link.service else None,
            service_type=link.service.type if link.service else None,
            is_active=bool(link.is_active),
            price_apr_may_oct=link.price_apr_may_oct,
            price_june=link.price_june,
            price_july_sept=link.price_july_sept,
            price_august=link.price_august,
            passenger_tiers=tiers_by_service.get(link.service_id, []),
        ))
    return result


@router.get("/{boat_id}/services", response_model=List[BoatServiceResponse])
async def list_boat_services(boat_id: str, db: Session = Depends(get_db)):
    """Services the boat offers, with its custom prices and passenger tiers"""
    store = BookingStore(db)
    if not store.get_boat(boat_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Boat not found")
    return _boat_services_response(store, boat_id)


@router.post("/{boat_id}/services", response_model=List[BoatServiceResponse])
@limiter.limit(get_rate_limit("boat_services_write"))
async def replace_boat_services(
    request: Request,
    boat_id: str,
    payload: BoatServicesReplace,
    db: Session = Depends(get_db)
):
    """
    Replace the boat's service list.

    - Services missing from the payload are removed from the boat
    - A missing or 0 seasonal price falls back to the service default
    - passenger_tiers replace the boat's tiers for that service
    """
    store = BookingStore(db)
    if not store.get_boat(boat_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Boat not found")

    for item in payload.services:
        if not store.get_service(item.service_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Service {item.service_id} not found"
            )

    links = []
    tiers = []
    for item in payload.services:
        prices = {column: getattr(item, column) for column in SEASON_PRICE_COLUMNS.values()}
        links.append(BoatService(boat_id=boat_id, service_id=item.service_id, is_active=True, **prices))
        for tier in item.passenger_tiers:
            tiers.append(PassengerPriceTier(
                service_id=item.service_id,
                boat_id=boat_id,
                season=tier.season.value,
                min_passengers=tier.min_passengers,
                max_passengers=tier.max_passengers,
                price=tier.price,
            ))

    store.replace_boat_services(boat_id, links, tiers)
    db.commit()

    logger.info(f"Boat {boat_id} services replaced: {len(links)} services, {len(tiers)} tiers")
    return _boat_services_response(store, boat_id)
