# ============================================================
# app.py — Point d'entrée du service spacebook
# ------------------------------------------------------------
# Initialise l'application FastAPI :
#   - construit le catalogue, le store, le scheduler et les
#     requêtes de lecture (app.state)
#   - crée les tables au démarrage (store SQL)
#   - branche la publication d'événements si EVENTS_ENABLED
# Lancement : uvicorn spacebook.app:app
# ============================================================
import logging

from fastapi import FastAPI

from spacebook import config
from spacebook.api import booking_error_handler, router
from spacebook.availability import AvailabilityQuery, ReservationQuery
from spacebook.catalog import SlotCatalog, default_catalog
from spacebook.errors import BookingError
from spacebook.publisher import event_listener
from spacebook.repository import InMemoryReservationStore, SQLReservationStore, make_engine
from spacebook.scheduler import BookingScheduler

logger = logging.getLogger(__name__)


def build_store(url: str = config.DATABASE_URL):
    if url == "memory":
        return InMemoryReservationStore()
    return SQLReservationStore(make_engine(url))


def build_catalog(path=config.CATALOG_PATH):
    return SlotCatalog.from_file(path) if path else default_catalog()


def create_app(store=None, catalog=None, clock=config.local_now, events_enabled=config.EVENTS_ENABLED):
    store = store if store is not None else build_store()
    catalog = catalog if catalog is not None else build_catalog()

    on_booked = on_cancelled = None
    if events_enabled:
        on_booked = event_listener("ReservationCreated")
        on_cancelled = event_listener("ReservationCancelled")

    app = FastAPI(title="Spacebook Service")
    app.state.catalog = catalog
    app.state.store = store
    app.state.scheduler = BookingScheduler(catalog, store, clock=clock,
                                           on_booked=on_booked, on_cancelled=on_cancelled)
    app.state.availability = AvailabilityQuery(catalog, store)
    app.state.reservations = ReservationQuery(store, clock=clock)

    # Exécuté au lancement : crée les tables si le store en a besoin
    @app.on_event("startup")
    def start():
        store.setup()
        logger.info("Spacebook started with %s (%s spaces)",
                    type(store).__name__, len(catalog.list_spaces()))

    app.add_exception_handler(BookingError, booking_error_handler)
    app.include_router(router)
    return app


logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
app = create_app()
