# ============================================================
# config.py — Configuration du service spacebook
# ------------------------------------------------------------
# Toute la configuration vient des variables d'environnement,
# avec des valeurs par défaut utilisables en local.
# ============================================================
import os
from datetime import datetime
from zoneinfo import ZoneInfo

# "memory" => store en mémoire, sinon URL SQLAlchemy
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./spacebook.db")

# Fuseau utilisé pour "aujourd'hui" et pour dériver le statut completed
LOCAL_TZ = ZoneInfo(os.getenv("LOCAL_TZ", "America/Toronto"))

# Catalogue JSON optionnel (sinon catalogue intégré)
CATALOG_PATH = os.getenv("CATALOG_PATH")

RABBITMQ_HOST = os.getenv("RABBITMQ_HOST", "localhost")
EVENTS_ENABLED = os.getenv("EVENTS_ENABLED", "").lower() in ("1", "true", "yes", "on")

# Attente max (secondes) sur un verrou du store en mémoire
STORE_LOCK_TIMEOUT = float(os.getenv("STORE_LOCK_TIMEOUT", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def local_now() -> datetime:
    return datetime.now(LOCAL_TZ)
