# ============================================================
# models.py — Modèles de données SQLModel (spacebook)
# ------------------------------------------------------------
#   1. TimeSlot / Space : données de référence du catalogue
#      (pas de table, chargées depuis JSON ou le catalogue intégré)
#   2. Reservation : table des réservations confirmées
#   3. SlotAvailability : vue lecture "créneau libre / réservé"
# ============================================================
import uuid
from datetime import date, datetime, time, timezone
from typing import List, Literal, Optional

from pydantic import model_validator
from sqlalchemy import Column, DateTime, Index, text
from sqlmodel import Field, SQLModel

from spacebook.errors import InvalidDate

UPCOMING = "upcoming"
COMPLETED = "completed"
CANCELLED = "cancelled"


# ------------------------------------------------------------
# TimeSlot
# ------------------------------------------------------------
# Fenêtre horaire récurrente d'un espace, indépendante de la
# date. Aucun drapeau "réservé" ici : l'état réservé/libre est
# calculé par date à partir des réservations.
# ------------------------------------------------------------
class TimeSlot(SQLModel):
    id: str
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time >= self.end_time:
            raise ValueError(f"slot {self.id!r}: start_time must be before end_time")
        return self


class Space(SQLModel):
    id: str
    name: str
    type: Literal["sports_field", "workspace"]
    category: str
    capacity: Optional[int] = None
    hourly_rate: Optional[float] = None
    description: str = ""
    location: Optional[str] = None
    amenities: List[str] = []
    slots: List[TimeSlot] = []

    @model_validator(mode="after")
    def check_slot_ids(self):
        seen = set()
        for slot in self.slots:
            if slot.id in seen:
                raise ValueError(f"space {self.id!r}: duplicate slot id {slot.id!r}")
            seen.add(slot.id)
        return self


def new_reservation_id() -> str:
    return f"res-{uuid.uuid4().hex}"


# ------------------------------------------------------------
# Reservation
# ------------------------------------------------------------
# Réservation d'un créneau pour une date précise :
#  - space_name / space_category dénormalisés pour l'affichage
#  - seul "upcoming" est écrit à la création, "completed" est
#    dérivé à la lecture, "cancelled" vient d'une annulation
#  - l'index unique partiel garantit au plus une réservation
#    upcoming par (space_id, date, slot_id)
# ------------------------------------------------------------
class Reservation(SQLModel, table=True):
    __table_args__ = (
        Index(
            "uq_reservation_upcoming_slot",
            "space_id", "date", "slot_id",
            unique=True,
            sqlite_where=text("status = 'upcoming'"),
            postgresql_where=text("status = 'upcoming'"),
        ),
    )

    id: str = Field(default_factory=new_reservation_id, primary_key=True)
    user_id: str = Field(index=True)
    space_id: str
    space_name: str
    space_category: str
    slot_id: str
    date: date
    start_time: time
    end_time: time
    status: str = UPCOMING
    booked_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class SlotAvailability(SQLModel):
    slot_id: str
    start_time: time
    end_time: time
    booked: bool


def slot_key(reservation: Reservation):
    return (reservation.space_id, reservation.date, reservation.slot_id)


def clone(reservation: Reservation, **changes) -> Reservation:
    data = reservation.model_dump()
    data.update(changes)
    return Reservation(**data)


def parse_day(value) -> date:
    """Accepte une date ou une chaîne ISO YYYY-MM-DD."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise InvalidDate(f"invalid date {value!r}, expected YYYY-MM-DD") from None


def effective_status(reservation: Reservation, now: datetime) -> str:
    # completed n'est jamais stocké : upcoming dont la fin est passée
    if reservation.status != UPCOMING:
        return reservation.status
    ends_at = datetime.combine(reservation.date, reservation.end_time, tzinfo=now.tzinfo)
    return COMPLETED if ends_at <= now else UPCOMING


def starts_at(reservation: Reservation, tz) -> datetime:
    return datetime.combine(reservation.date, reservation.start_time, tzinfo=tz)
