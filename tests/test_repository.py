import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, timezone

import pytest
from sqlmodel import create_engine

from spacebook.errors import Conflict, StoreUnavailable
from spacebook.models import CANCELLED, UPCOMING, Reservation, slot_key
from spacebook.repository import LOCK_STRIPES, InMemoryReservationStore, SQLReservationStore, make_engine

DAY = date(2025, 6, 1)


def make_reservation(user="alice", slot="morning", day=DAY, space="S1"):
    return Reservation(
        user_id=user,
        space_id=space,
        space_name="Center Field",
        space_category="Soccer",
        slot_id=slot,
        date=day,
        start_time=time(9, 0),
        end_time=time(10, 0),
    )


def test_insert_then_list_active(store):
    created = store.insert(make_reservation())
    assert created.status == UPCOMING

    active = store.list_active_by_space_and_date("S1", DAY)
    assert [r.id for r in active] == [created.id]
    assert store.list_active_by_space_and_date("S1", date(2025, 6, 2)) == []


def test_insert_same_key_conflicts(store):
    store.insert(make_reservation("alice"))
    with pytest.raises(Conflict):
        store.insert(make_reservation("bob"))
    assert len(store.list_active_by_space_and_date("S1", DAY)) == 1
    assert store.list_by_user("bob") == []


def test_same_slot_on_other_date_or_space(store):
    store.insert(make_reservation())
    store.insert(make_reservation(day=date(2025, 6, 2)))
    store.insert(make_reservation(space="S2"))
    store.insert(make_reservation(slot="evening"))
    assert len(store.list_by_user("alice")) == 4


def test_cancel_frees_the_key(store):
    first = store.insert(make_reservation("alice"))

    cancelled = store.cancel(first.id)
    assert cancelled.status == CANCELLED
    assert store.list_active_by_space_and_date("S1", DAY) == []

    second = store.insert(make_reservation("bob"))
    assert store.get(second.id).status == UPCOMING
    # une seconde annulation ne change rien
    assert store.cancel(first.id).status == CANCELLED
    assert [r.id for r in store.list_active_by_space_and_date("S1", DAY)] == [second.id]


def test_unknown_ids(store):
    assert store.get("res-missing") is None
    assert store.cancel("res-missing") is None


def test_returned_rows_are_copies(store):
    created = store.insert(make_reservation())
    created.status = CANCELLED
    store.get(created.id).status = CANCELLED
    assert store.get(created.id).status == UPCOMING


def test_concurrent_inserts_single_winner(store):
    n = 8
    barrier = threading.Barrier(n, timeout=10)

    def attempt(i):
        barrier.wait()
        try:
            store.insert(make_reservation(f"user-{i}"))
            return "ok"
        except Conflict:
            return "conflict"

    with ThreadPoolExecutor(max_workers=n) as pool:
        outcomes = list(pool.map(attempt, range(n)))

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == n - 1
    assert len(store.list_active_by_space_and_date("S1", DAY)) == 1


def test_memory_store_lock_timeout():
    store = InMemoryReservationStore(lock_timeout=0.05)
    candidate = make_reservation()
    lock = store._lock_for(slot_key(candidate))
    lock.acquire()
    try:
        with pytest.raises(StoreUnavailable):
            store.insert(candidate)
    finally:
        lock.release()
    assert store.insert(candidate).user_id == "alice"


def test_sql_store_unreachable(tmp_path):
    store = SQLReservationStore(make_engine(f"sqlite:///{tmp_path / 'missing' / 'db.sqlite'}"))
    with pytest.raises(StoreUnavailable):
        store.list_by_user("alice")
    with pytest.raises(StoreUnavailable):
        store.insert(make_reservation())


def test_sql_store_pool_exhausted(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'spacebook.db'}",
        pool_size=1, max_overflow=0, pool_timeout=0.2,
        connect_args={"check_same_thread": False},
    )
    store = SQLReservationStore(engine)
    store.setup()

    held = engine.connect()
    try:
        with pytest.raises(StoreUnavailable):
            store.list_by_user("alice")
        with pytest.raises(StoreUnavailable):
            store.insert(make_reservation())
    finally:
        held.close()

    assert store.list_by_user("alice") == []
    engine.dispose()


def test_memory_store_lock_count_is_bounded():
    store = InMemoryReservationStore()
    store.insert(make_reservation())
    for day in range(1, 29):
        try:
            store.insert(make_reservation("bob", day=date(2025, 6, day)))
        except Conflict:
            pass
        store.insert(make_reservation("carol", slot=f"slot-{day}"))
    assert len(store._key_locks) == LOCK_STRIPES


def test_booked_at_stays_utc(store):
    booked = datetime(2025, 5, 20, 14, 30, 15, 123456, tzinfo=timezone.utc)
    reservation = make_reservation()
    reservation.booked_at = booked

    created = store.insert(reservation)

    for row in (created, store.get(created.id), store.list_by_user("alice")[0],
                store.list_active_by_space_and_date("S1", DAY)[0]):
        assert row.booked_at == booked
        assert row.booked_at.utcoffset().total_seconds() == 0
