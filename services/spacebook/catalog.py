# ============================================================
# catalog.py — Catalogue des espaces et de leurs créneaux
# ------------------------------------------------------------
# Données de référence en lecture seule : quels espaces
# existent et quels créneaux (début / fin) ils proposent.
# Le catalogue ne suit aucun état de réservation.
# ============================================================
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from spacebook.errors import SlotNotFound, SpaceNotFound
from spacebook.models import Space, TimeSlot

logger = logging.getLogger(__name__)


class SlotCatalog:
    def __init__(self, spaces: Iterable[Space]):
        self._spaces = {}
        for space in spaces:
            if space.id in self._spaces:
                raise ValueError(f"duplicate space id {space.id!r}")
            self._spaces[space.id] = space

    @classmethod
    def from_file(cls, path) -> "SlotCatalog":
        """Charge un catalogue JSON : une liste d'espaces, ou {"spaces": [...]}."""
        with Path(path).open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if isinstance(payload, dict):
            payload = payload.get("spaces", [])
        catalog = cls(Space.model_validate(item) for item in payload)
        logger.info("Loaded %s spaces from %s", len(catalog._spaces), path)
        return catalog

    def list_spaces(self, space_type: Optional[str] = None) -> List[Space]:
        return [s for s in self._spaces.values() if space_type is None or s.type == space_type]

    def get_space(self, space_id: str) -> Space:
        space = self._spaces.get(space_id)
        if space is None:
            raise SpaceNotFound(space_id)
        return space

    def get_slot(self, space_id: str, slot_id: str) -> TimeSlot:
        space = self.get_space(space_id)
        for slot in space.slots:
            if slot.id == slot_id:
                return slot
        raise SlotNotFound(space_id, slot_id)


def _hourly(*hours):
    return [{"id": f"{h:02d}00", "start_time": f"{h:02d}:00", "end_time": f"{h + 1:02d}:00"} for h in hours]


# Catalogue intégré, utilisé quand CATALOG_PATH n'est pas défini
DEFAULT_SPACES = [
    {
        "id": "field-1",
        "name": "Riverside Soccer Field",
        "type": "sports_field",
        "category": "Soccer",
        "capacity": 22,
        "hourly_rate": 60.0,
        "description": "Full-size natural grass field with floodlights.",
        "location": "North Park",
        "amenities": ["Floodlights", "Changing rooms"],
        "slots": _hourly(9, 10, 11, 17, 18, 19),
    },
    {
        "id": "court-1",
        "name": "Downtown Basketball Court",
        "type": "sports_field",
        "category": "Basketball",
        "capacity": 10,
        "hourly_rate": 40.0,
        "description": "Indoor hardwood court.",
        "location": "Community Center",
        "amenities": ["Scoreboard"],
        "slots": _hourly(8, 9, 10, 16, 17, 18, 19),
    },
    {
        "id": "desk-1",
        "name": "Hot Desk A",
        "type": "workspace",
        "category": "Desk",
        "capacity": 1,
        "hourly_rate": 8.0,
        "description": "Quiet desk near the window.",
        "location": "Level 2",
        "amenities": ["Wi-Fi", "Monitor"],
        "slots": _hourly(*range(8, 18)),
    },
    {
        "id": "room-1",
        "name": "Orion Meeting Room",
        "type": "workspace",
        "category": "Meeting Room",
        "capacity": 8,
        "hourly_rate": 35.0,
        "description": "Meeting room with video conferencing.",
        "location": "Level 3",
        "amenities": ["Projector", "Whiteboard", "Video conferencing"],
        "slots": _hourly(9, 10, 11, 13, 14, 15, 16),
    },
]


def default_catalog() -> SlotCatalog:
    return SlotCatalog(Space.model_validate(item) for item in DEFAULT_SPACES)
