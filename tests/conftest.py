from datetime import datetime

import pytest

from spacebook.catalog import SlotCatalog
from spacebook.config import LOCAL_TZ
from spacebook.models import Space
from spacebook.repository import InMemoryReservationStore, SQLReservationStore, make_engine
from spacebook.scheduler import BookingScheduler

# "maintenant" figé pour les tests : avant le 2025-06-01 des scénarios
NOW = datetime(2025, 5, 20, 10, 0, tzinfo=LOCAL_TZ)


class FixedClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def catalog():
    return SlotCatalog([
        Space.model_validate({
            "id": "S1",
            "name": "Center Field",
            "type": "sports_field",
            "category": "Soccer",
            "capacity": 22,
            "hourly_rate": 50.0,
            "slots": [
                {"id": "morning", "start_time": "09:00", "end_time": "10:00"},
                {"id": "evening", "start_time": "18:00", "end_time": "19:00"},
            ],
        }),
        Space.model_validate({
            "id": "W1",
            "name": "Quiet Desk",
            "type": "workspace",
            "category": "Desk",
            "slots": [{"id": "am", "start_time": "08:00", "end_time": "12:00"}],
        }),
    ])


def _sql_store(tmp_path):
    store = SQLReservationStore(make_engine(f"sqlite:///{tmp_path / 'spacebook.db'}"))
    store.setup()
    return store


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryReservationStore()
        return
    store = _sql_store(tmp_path)
    yield store
    store.engine.dispose()


@pytest.fixture
def scheduler(catalog, store, clock):
    return BookingScheduler(catalog, store, clock=clock)
