from __future__ import annotations
import logging
from typing import Any, Dict, List

from ..helpers import new_id, now_iso
from ..infra.jsonstore import JsonTable

logger = logging.getLogger(__name__)

Participant = Dict[str, Any]

PARTICIPANT_FIELDS = (
    "firstName", "lastName", "email", "phone", "motorcycle", "comments",
)
REQUIRED_FIELDS = ("firstName", "lastName", "email", "phone", "motorcycle")


class ParticipantStore:
    def __init__(self, table: JsonTable) -> None:
        self.table = table

    async def all_participants(self) -> List[Participant]:
        return self.table.read()

    async def by_ride(self, ride_id: str) -> List[Participant]:
        return [p for p in self.table.read() if p.get("rideId") == ride_id]

    async def save(self, ride_id: str, data: Dict[str, Any]) -> Participant:
        async with self.table.gated():
            return self.append_unlocked(ride_id, data)

    def append_unlocked(self, ride_id: str, data: Dict[str, Any]) -> Participant:
        # caller holds the participants gate
        participant = {
            "id": new_id(),
            "rideId": ride_id,
            **{k: data[k] for k in PARTICIPANT_FIELDS if k in data},
            "registeredAt": now_iso(),
        }
        rows = self.table.read()
        rows.append(participant)
        self.table.write(rows)
        logger.info("participant %s saved for ride %s",
                    participant["id"], ride_id)
        return participant

    def pop_unlocked(self, participant_id: str) -> Participant | None:
        rows = self.table.read()
        found = next((p for p in rows if p.get("id") == participant_id), None)
        if found is None:
            return None
        self.table.write([p for p in rows if p.get("id") != participant_id])
        return found

    def delete_by_ride_unlocked(self, ride_id: str) -> int:
        rows = self.table.read()
        kept = [p for p in rows if p.get("rideId") != ride_id]
        deleted = len(rows) - len(kept)
        if deleted:
            self.table.write(kept)
        return deleted

    async def delete(self, participant_id: str) -> bool:
        async with self.table.gated():
            return self.pop_unlocked(participant_id) is not None

    async def delete_by_ride(self, ride_id: str) -> int:
        async with self.table.gated():
            return self.delete_by_ride_unlocked(ride_id)
