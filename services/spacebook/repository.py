# ============================================================
# repository.py — Stockage des réservations
# ------------------------------------------------------------
# Design pattern "Repository" : seule source de vérité pour
# savoir si un créneau est pris à une date donnée.
#   - InMemoryReservationStore : dict protégé par des verrous
#     (verrous répartis par hash de la clé pour les insertions)
#   - SQLReservationStore : table SQLModel + index unique partiel
# Deux insertions concurrentes sur la même clé
# (space_id, date, slot_id) => un succès et un Conflict.
# ============================================================
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from spacebook.config import STORE_LOCK_TIMEOUT
from spacebook.errors import Conflict, StoreUnavailable
from spacebook.models import CANCELLED, UPCOMING, Reservation, clone, slot_key

logger = logging.getLogger(__name__)


class ReservationStore(ABC):
    def setup(self):
        """Prépare le stockage (création des tables, etc.)."""

    @abstractmethod
    def list_active_by_space_and_date(self, space_id: str, day: date) -> List[Reservation]:
        ...

    @abstractmethod
    def insert(self, reservation: Reservation) -> Reservation:
        """Insère la réservation, ou lève Conflict si la clé est déjà prise."""

    @abstractmethod
    def list_by_user(self, user_id: str) -> List[Reservation]:
        ...

    @abstractmethod
    def get(self, reservation_id: str) -> Optional[Reservation]:
        ...

    @abstractmethod
    def cancel(self, reservation_id: str) -> Optional[Reservation]:
        ...


# Nombre fixe de verrous : une clé utilise le verrou hash(clé) % LOCK_STRIPES
LOCK_STRIPES = 64


class InMemoryReservationStore(ReservationStore):
    def __init__(self, lock_timeout: float = STORE_LOCK_TIMEOUT):
        self._records = {}
        self._active = {}   # clé -> id de la réservation upcoming
        self._key_locks = [threading.Lock() for _ in range(LOCK_STRIPES)]
        self._guard = threading.Lock()
        self._lock_timeout = lock_timeout

    @contextmanager
    def _holding(self, lock):
        if not lock.acquire(timeout=self._lock_timeout):
            raise StoreUnavailable(f"could not acquire store lock within {self._lock_timeout}s")
        try:
            yield
        finally:
            lock.release()

    def _lock_for(self, key):
        return self._key_locks[hash(key) % len(self._key_locks)]

    def list_active_by_space_and_date(self, space_id, day):
        with self._holding(self._guard):
            return [
                clone(r) for r in self._records.values()
                if r.space_id == space_id and r.date == day and r.status == UPCOMING
            ]

    def insert(self, reservation):
        key = slot_key(reservation)
        # Le verrou de la clé sérialise "vérifier puis écrire" ;
        # le guard rend l'écriture visible d'un seul coup.
        with self._holding(self._lock_for(key)):
            if key in self._active:
                raise Conflict(key)
            row = clone(reservation, status=UPCOMING)
            with self._holding(self._guard):
                self._records[row.id] = row
                self._active[key] = row.id
        return clone(row)

    def list_by_user(self, user_id):
        with self._holding(self._guard):
            return [clone(r) for r in self._records.values() if r.user_id == user_id]

    def get(self, reservation_id):
        with self._holding(self._guard):
            row = self._records.get(reservation_id)
            return clone(row) if row else None

    def cancel(self, reservation_id):
        with self._holding(self._guard):
            row = self._records.get(reservation_id)
        if row is None:
            return None
        key = slot_key(row)
        with self._holding(self._lock_for(key)):
            with self._holding(self._guard):
                if row.status == UPCOMING:
                    row.status = CANCELLED
                    if self._active.get(key) == row.id:
                        del self._active[key]
                return clone(row)


# SQLite ne garde pas le fuseau : booked_at est stocké en UTC
def _as_utc(row):
    if row is not None and row.booked_at is not None and row.booked_at.tzinfo is None:
        row.booked_at = row.booked_at.replace(tzinfo=timezone.utc)
    return row


def make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # plusieurs threads FastAPI + attente sur le verrou d'écriture SQLite
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


class SQLReservationStore(ReservationStore):
    def __init__(self, engine):
        self.engine = engine

    def setup(self):
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def _session(self):
        try:
            with Session(self.engine) as s:
                yield s
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            # erreurs DBAPI mais aussi attente d'une connexion du pool
            logger.error("Reservation store failure: %s", e)
            raise StoreUnavailable(f"reservation store unavailable: {e}") from e

    def list_active_by_space_and_date(self, space_id, day):
        with self._session() as s:
            rows = s.exec(select(Reservation).where(
                Reservation.space_id == space_id,
                Reservation.date == day,
                Reservation.status == UPCOMING,
            )).all()
            return [_as_utc(r) for r in rows]

    def insert(self, reservation):
        row = clone(reservation, status=UPCOMING)
        with self._session() as s:
            s.add(row)
            try:
                s.commit()
            except IntegrityError:
                # violation de uq_reservation_upcoming_slot
                s.rollback()
                raise Conflict(slot_key(row)) from None
            s.refresh(row)
            return _as_utc(row)

    def list_by_user(self, user_id):
        with self._session() as s:
            rows = s.exec(select(Reservation).where(Reservation.user_id == user_id)).all()
            return [_as_utc(r) for r in rows]

    def get(self, reservation_id):
        with self._session() as s:
            return _as_utc(s.get(Reservation, reservation_id))

    def cancel(self, reservation_id):
        with self._session() as s:
            row = s.get(Reservation, reservation_id)
            if row and row.status == UPCOMING:
                row.status = CANCELLED
                s.commit()
                s.refresh(row)
            return _as_utc(row)
