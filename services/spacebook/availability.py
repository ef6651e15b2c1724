# ============================================================
# availability.py — Chemins de lecture
# ------------------------------------------------------------
#   - AvailabilityQuery : créneaux d'un espace pour une date,
#     marqués réservés / libres d'après le store
#   - ReservationQuery : réservations d'un utilisateur avec le
#     statut dérivé (completed), séparées à venir / passées
# ============================================================
from datetime import datetime
from typing import Callable, List, Tuple

from spacebook.catalog import SlotCatalog
from spacebook.config import local_now
from spacebook.models import CANCELLED, COMPLETED, Reservation, SlotAvailability, clone, effective_status, parse_day, starts_at
from spacebook.repository import ReservationStore


class AvailabilityQuery:
    def __init__(self, catalog: SlotCatalog, store: ReservationStore):
        self.catalog = catalog
        self.store = store

    def for_date(self, space_id: str, day) -> List[SlotAvailability]:
        space = self.catalog.get_space(space_id)
        day = parse_day(day)
        taken = {r.slot_id for r in self.store.list_active_by_space_and_date(space.id, day)}
        return [
            SlotAvailability(slot_id=s.id, start_time=s.start_time, end_time=s.end_time, booked=s.id in taken)
            for s in space.slots
        ]


class ReservationQuery:
    def __init__(self, store: ReservationStore, clock: Callable[[], datetime] = local_now):
        self.store = store
        self.clock = clock

    def for_user(self, user_id: str) -> List[Reservation]:
        now = self.clock()
        return [clone(r, status=effective_status(r, now)) for r in self.store.list_by_user(user_id)]

    def split(self, user_id: str) -> Tuple[List[Reservation], List[Reservation]]:
        """(à venir triées par début croissant, passées triées par début décroissant)"""
        now = self.clock()
        tz = now.tzinfo
        upcoming, past = [], []
        for r in self.for_user(user_id):
            # une réservation commencée mais pas finie est déjà "passée" à l'affichage
            if r.status in (COMPLETED, CANCELLED) or starts_at(r, tz) < now:
                past.append(r)
            else:
                upcoming.append(r)
        upcoming.sort(key=lambda r: starts_at(r, tz))
        past.sort(key=lambda r: starts_at(r, tz), reverse=True)
        return upcoming, past
