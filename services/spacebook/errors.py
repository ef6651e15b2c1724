# ============================================================
# errors.py — Taxonomie des erreurs de réservation
# ------------------------------------------------------------
# Chaque échec d'une opération est levé sous forme d'exception
# typée ; la couche HTTP décide comment la présenter.
#   - SlotAlreadyBooked est la seule erreur que l'appelant peut
#     corriger (en choisissant un autre créneau)
#   - StoreUnavailable signale une panne d'infrastructure
# ============================================================


class BookingError(Exception):
    """Base de toutes les erreurs renvoyées au client."""


class SpaceNotFound(BookingError):
    def __init__(self, space_id: str):
        super().__init__(f"space {space_id!r} not found")
        self.space_id = space_id


class SlotNotFound(BookingError):
    def __init__(self, space_id: str, slot_id: str):
        super().__init__(f"slot {slot_id!r} not found for space {space_id!r}")
        self.space_id = space_id
        self.slot_id = slot_id


class ReservationNotFound(BookingError):
    def __init__(self, reservation_id: str):
        super().__init__(f"reservation {reservation_id!r} not found")
        self.reservation_id = reservation_id


# Une réservation terminée (completed) ne peut plus être annulée
class ReservationCompleted(BookingError):
    def __init__(self, reservation_id: str):
        super().__init__(f"reservation {reservation_id!r} is already completed")
        self.reservation_id = reservation_id


class InvalidDate(BookingError):
    pass


class InvalidRequest(BookingError):
    pass


class SlotAlreadyBooked(BookingError):
    def __init__(self, space_id: str, day, slot_id: str):
        super().__init__(f"slot {slot_id!r} of space {space_id!r} is already booked on {day}")
        self.space_id = space_id
        self.date = day
        self.slot_id = slot_id


class StoreUnavailable(BookingError):
    pass


# Résultat interne du store : la clé (space_id, date, slot_id)
# a déjà une réservation upcoming. Ne sort jamais du scheduler.
class Conflict(Exception):
    def __init__(self, key):
        super().__init__(f"an upcoming reservation already holds {key}")
        self.key = key
