# ============================================================
# scheduler.py — Moteur d'allocation des créneaux
# ------------------------------------------------------------
# Orchestration d'une demande de réservation :
#   1) refus des dates passées
#   2) résolution de l'espace et du créneau (catalogue)
#   3) insertion atomique dans le store
#   4) notification optionnelle (publication d'événement)
# Le scheduler ne garde aucun état entre deux appels : chaque
# appel relit la vérité dans le store.
# ============================================================
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from spacebook.catalog import SlotCatalog
from spacebook.config import local_now
from spacebook.errors import (
    Conflict, InvalidDate, InvalidRequest, ReservationCompleted, ReservationNotFound, SlotAlreadyBooked,
)
from spacebook.models import CANCELLED, COMPLETED, Reservation, effective_status, parse_day
from spacebook.repository import ReservationStore

logger = logging.getLogger(__name__)

Listener = Callable[[Reservation], None]


class BookingScheduler:
    def __init__(
        self,
        catalog: SlotCatalog,
        store: ReservationStore,
        clock: Callable[[], datetime] = local_now,
        on_booked: Optional[Listener] = None,
        on_cancelled: Optional[Listener] = None,
    ):
        self.catalog = catalog
        self.store = store
        self.clock = clock
        self.on_booked = on_booked
        self.on_cancelled = on_cancelled

    def book(self, space_id: str, day, slot_id: str, requester: str) -> Reservation:
        """Réserve `slot_id` de `space_id` pour la date `day`.

        Lève SpaceNotFound, SlotNotFound, InvalidDate, InvalidRequest,
        SlotAlreadyBooked ou StoreUnavailable. Aucun retry ici : sur
        SlotAlreadyBooked c'est à l'appelant de choisir un autre créneau.
        """
        # date passée => InvalidDate, que le créneau existe ou non
        day = parse_day(day)
        today = self.clock().date()
        if day < today:
            logger.info("Rejected booking of %s/%s on past date %s", space_id, slot_id, day)
            raise InvalidDate(f"cannot book {day}, it is before today ({today})")

        space = self.catalog.get_space(space_id)
        slot = self.catalog.get_slot(space_id, slot_id)

        if not requester or not requester.strip():
            raise InvalidRequest("requester is required")

        candidate = Reservation(
            user_id=requester,
            space_id=space.id,
            space_name=space.name,
            space_category=space.category,
            slot_id=slot.id,
            date=day,
            start_time=slot.start_time,
            end_time=slot.end_time,
            booked_at=datetime.now(timezone.utc),
        )
        try:
            created = self.store.insert(candidate)
        except Conflict:
            logger.info("Slot %s/%s on %s already booked, rejecting %s", space_id, slot_id, day, requester)
            raise SlotAlreadyBooked(space_id, day, slot_id) from None

        logger.info("Reservation %s committed: %s/%s on %s for %s",
                    created.id, space_id, slot_id, day, requester)
        self._notify(self.on_booked, created)
        return created

    def cancel(self, reservation_id: str, requester: str) -> Reservation:
        existing = self.store.get(reservation_id)
        # une réservation d'un autre utilisateur est traitée comme absente
        if existing is None or existing.user_id != requester:
            raise ReservationNotFound(reservation_id)
        # on ne réécrit pas l'historique : completed reste completed
        if effective_status(existing, self.clock()) == COMPLETED:
            raise ReservationCompleted(reservation_id)
        was_upcoming = existing.status != CANCELLED
        cancelled = self.store.cancel(reservation_id)
        if cancelled is None:
            raise ReservationNotFound(reservation_id)
        if was_upcoming:
            logger.info("Reservation %s cancelled by %s", reservation_id, requester)
            self._notify(self.on_cancelled, cancelled)
        return cancelled

    def _notify(self, listener, reservation):
        if listener is None:
            return
        # la réservation est déjà enregistrée : un échec ici ne
        # transforme pas le succès en erreur
        try:
            listener(reservation)
        except Exception:
            logger.exception("Listener failed for reservation %s", reservation.id)
