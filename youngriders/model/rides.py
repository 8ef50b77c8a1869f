# model/rides.py
"""
Ride schedule and participant registration.

A ride has a capacity (`spots`) and a counter (`registered`). Registration
checks capacity and the optional access code and increments the counter
while holding the rides gate, so `registered <= spots` holds for every
request served by this process.
"""
from __future__ import annotations
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from ..helpers import new_id, parse_date
from ..infra.jsonstore import JsonTable
from .errors import NotFoundError, RegistrationError, ValidationError
from .participants import ParticipantStore, Participant, REQUIRED_FIELDS

logger = logging.getLogger(__name__)

Ride = Dict[str, Any]

REQUIRED_RIDE_FIELDS = ("title", "date", "time", "startLocation", "distance")
FEATURED_RIDES = 3


def _coerce_spots(data: Dict[str, Any]) -> None:
    if data.get("spots") in (None, ""):
        return
    try:
        data["spots"] = int(data["spots"])
    except (TypeError, ValueError):
        raise ValidationError("spots must be a number")


def _by_date(ride: Ride) -> date:
    return parse_date(ride.get("date")) or date.max


class RideStore:
    def __init__(self, table: JsonTable,
                 participants: ParticipantStore) -> None:
        self.table = table
        self.participants = participants

    # ---- reads
    async def list_rides(self) -> List[Ride]:
        return self.table.read()

    async def get_ride(self, ride_id: str) -> Optional[Ride]:
        return next(
            (r for r in self.table.read() if r.get("id") == ride_id), None
        )

    async def active_rides(self) -> List[Ride]:
        rides = [r for r in self.table.read() if r.get("active")]
        return sorted(rides, key=_by_date)

    async def upcoming_rides(self, limit: Optional[int] = None) -> List[Ride]:
        today = date.today()
        rides = [
            r for r in self.table.read()
            if (parse_date(r.get("date")) or date.min) >= today
        ]
        rides.sort(key=_by_date)
        return rides[:limit] if limit else rides

    async def validate_access_code(self, ride_id: str, code: str) -> bool:
        ride = await self.get_ride(ride_id)
        if ride is None:
            return False
        return ride.get("accessCode") == code

    # ---- writes
    async def create_ride(self, data: Dict[str, Any]) -> Ride:
        missing = [f for f in REQUIRED_RIDE_FIELDS if not data.get(f)]
        if missing:
            raise ValidationError(
                f"missing required fields: {', '.join(missing)}"
            )
        data = dict(data)
        _coerce_spots(data)
        data.setdefault("spots", 0)
        if data.get("active") is None:
            data["active"] = True
        ride = {**data, "id": new_id(), "registered": 0}

        async with self.table.gated():
            rides = self.table.read()
            rides.append(ride)
            self.table.write(rides)
        logger.info("ride %s created: %s", ride["id"], ride["title"])
        return ride

    async def update_ride(self, ride_id: str,
                          data: Dict[str, Any]) -> Optional[Ride]:
        data = dict(data)
        data.pop("id", None)
        _coerce_spots(data)
        async with self.table.gated():
            rides = self.table.read()
            for i, ride in enumerate(rides):
                if ride.get("id") == ride_id:
                    rides[i] = {**ride, **data}
                    self.table.write(rides)
                    logger.info("ride %s updated", ride_id)
                    return rides[i]
        return None

    async def delete_ride(self, ride_id: str) -> Optional[int]:
        """Delete a ride and every participant registered for it.

        Returns the number of participants removed, or None when the ride
        does not exist.
        """
        async with self.table.gated():
            rides = self.table.read()
            kept = [r for r in rides if r.get("id") != ride_id]
            if len(kept) == len(rides):
                return None
            self.table.write(kept)
            async with self.participants.table.gated():
                removed = self.participants.delete_by_ride_unlocked(ride_id)
        logger.info("ride %s deleted with %d participants", ride_id, removed)
        return removed

    async def register(self, ride_id: str,
                       data: Dict[str, Any]) -> Tuple[Ride, Participant]:
        async with self.table.gated():
            rides = self.table.read()
            ride = next((r for r in rides if r.get("id") == ride_id), None)
            if ride is None:
                raise NotFoundError("ride not found")

            registered = int(ride.get("registered") or 0)
            if registered >= int(ride.get("spots") or 0):
                logger.info("registration for full ride %s rejected", ride_id)
                raise RegistrationError("this ride is full")

            missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
            if missing:
                raise RegistrationError(
                    f"missing required fields: {', '.join(missing)}"
                )

            if ride.get("requireAccessCode"):
                code = data.get("accessCode")
                if not code:
                    raise RegistrationError(
                        "an access code is required for this ride"
                    )
                if ride.get("accessCode") != code:
                    logger.info("wrong access code for ride %s", ride_id)
                    raise RegistrationError("invalid access code")

            async with self.participants.table.gated():
                participant = self.participants.append_unlocked(
                    ride_id, data
                )
            ride["registered"] = registered + 1
            self.table.write(rides)
        return ride, participant

    async def remove_participant(self, ride_id: str,
                                 participant_id: str) -> bool:
        async with self.table.gated():
            async with self.participants.table.gated():
                found = next(
                    (p for p in self.participants.table.read()
                     if p.get("id") == participant_id), None
                )
                # only remove from the ride the participant signed up for
                if found is None or found.get("rideId") != ride_id:
                    return False
                self.participants.pop_unlocked(participant_id)
            rides = self.table.read()
            for ride in rides:
                if ride.get("id") == ride_id:
                    ride["registered"] = max(
                        0, int(ride.get("registered") or 0) - 1
                    )
                    self.table.write(rides)
                    break
        logger.info("participant %s removed from ride %s",
                    participant_id, ride_id)
        return True
