# ============================================================
# Spacebook API Router
# ------------------------------------------------------------
# Expose les endpoints REST pour consulter les espaces et leurs
# disponibilités, réserver un créneau, lister et annuler les
# réservations d'un utilisateur. Toute la logique vit dans le
# scheduler et les requêtes de lecture (app.state).
# ============================================================
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

from spacebook.availability import AvailabilityQuery, ReservationQuery
from spacebook.catalog import SlotCatalog
from spacebook.errors import (
    BookingError, InvalidDate, InvalidRequest, ReservationCompleted, ReservationNotFound, SlotAlreadyBooked,
    SlotNotFound, SpaceNotFound, StoreUnavailable,
)
from spacebook.models import Reservation, SlotAvailability, Space
from spacebook.scheduler import BookingScheduler

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_CODES = {
    SpaceNotFound: 404,
    SlotNotFound: 404,
    ReservationNotFound: 404,
    ReservationCompleted: 409,
    InvalidDate: 400,
    InvalidRequest: 400,
    SlotAlreadyBooked: 409,
    StoreUnavailable: 503,
}


# Handler enregistré dans app.py : BookingError -> réponse JSON
def booking_error_handler(request: Request, exc: BookingError):
    status = STATUS_CODES.get(type(exc), 400)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc), "error": type(exc).__name__})


# Dépendances FastAPI : composants construits par create_app()
def get_catalog(request: Request) -> SlotCatalog:
    return request.app.state.catalog

def get_scheduler(request: Request) -> BookingScheduler:
    return request.app.state.scheduler

def get_availability(request: Request) -> AvailabilityQuery:
    return request.app.state.availability

def get_reservations(request: Request) -> ReservationQuery:
    return request.app.state.reservations


class BookingRequest(SQLModel):
    space_id: str
    date: str   # YYYY-MM-DD, validé par le scheduler
    slot_id: str
    requester: str


class UserReservations(SQLModel):
    upcoming: List[Reservation]
    past: List[Reservation]


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/v1/spaces", response_model=List[Space])
def list_spaces(type: Optional[str] = None, catalog: SlotCatalog = Depends(get_catalog)):
    return catalog.list_spaces(type)


@router.get("/v1/spaces/{space_id}", response_model=Space)
def get_space(space_id: str, catalog: SlotCatalog = Depends(get_catalog)):
    return catalog.get_space(space_id)


# ------------------------------------------------------------
# GET /v1/spaces/{space_id}/availability?date=YYYY-MM-DD
# ------------------------------------------------------------
@router.get("/v1/spaces/{space_id}/availability", response_model=List[SlotAvailability])
def space_availability(space_id: str, date: str, query: AvailabilityQuery = Depends(get_availability)):
    return query.for_date(space_id, date)


# ------------------------------------------------------------
# POST /v1/bookings — Réserver un créneau
# ------------------------------------------------------------
# 201 si la réservation est enregistrée, 409 si le créneau est
# déjà pris à cette date (le client choisit un autre créneau)
# ------------------------------------------------------------
@router.post("/v1/bookings", response_model=Reservation, status_code=201)
def create_booking(b: BookingRequest, scheduler: BookingScheduler = Depends(get_scheduler)):
    return scheduler.book(b.space_id, b.date, b.slot_id, b.requester)


@router.post("/v1/bookings/{reservation_id}/cancel", response_model=Reservation)
def cancel_booking(reservation_id: str, requester: str, scheduler: BookingScheduler = Depends(get_scheduler)):
    return scheduler.cancel(reservation_id, requester)


@router.get("/v1/users/{user_id}/reservations", response_model=UserReservations)
def user_reservations(user_id: str, query: ReservationQuery = Depends(get_reservations)):
    upcoming, past = query.split(user_id)
    return {"upcoming": upcoming, "past": past}
