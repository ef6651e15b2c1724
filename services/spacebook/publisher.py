# ============================================================
# publisher.py — Émission d'événements RabbitMQ
# ------------------------------------------------------------
# Publie ReservationCreated / ReservationCancelled sur l'échange
# fanout "events" pour les consommateurs externes. Activé par
# EVENTS_ENABLED.
# ============================================================
import json
import logging

import pika

from spacebook.config import RABBITMQ_HOST
from spacebook.models import Reservation

logger = logging.getLogger(__name__)

EXCHANGE = "events"


def publish_event(event_type: str, payload: dict, host: str = RABBITMQ_HOST):
    conn = pika.BlockingConnection(pika.ConnectionParameters(host=host))
    try:
        ch = conn.channel()
        # durable=True pour survivre aux redémarrages RabbitMQ
        ch.exchange_declare(exchange=EXCHANGE, exchange_type="fanout", durable=True)
        message = {"type": event_type, "payload": payload}
        ch.basic_publish(exchange=EXCHANGE, routing_key="", body=json.dumps(message))
        logger.info("[event] %s %s", event_type, payload)
    finally:
        conn.close()


def reservation_payload(r: Reservation) -> dict:
    return {
        "reservationId": r.id,
        "userId": r.user_id,
        "spaceId": r.space_id,
        "slotId": r.slot_id,
        "date": r.date.isoformat(),
        "startTime": r.start_time.strftime("%H:%M"),
        "endTime": r.end_time.strftime("%H:%M"),
        "status": r.status,
    }


def event_listener(event_type: str, host: str = RABBITMQ_HOST):
    """Listener pour BookingScheduler (on_booked / on_cancelled)."""
    def listener(reservation: Reservation):
        publish_event(event_type, reservation_payload(reservation), host=host)
    return listener
