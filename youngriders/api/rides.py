from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_db, require_permission
from ..model.db import Database
from ..model.rides import FEATURED_RIDES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

rides_admin = Depends(require_permission("rides"))


# ----------------------------
# Rides CRUD (`?id=` selects one ride)
# ----------------------------
@router.get("/rides")
async def list_rides(id: Optional[str] = None,
                     db: Database = Depends(get_db)):
    if id:
        ride = await db.rides.get_ride(id)
        if ride is None:
            raise HTTPException(404, detail="ride not found")
        return ride
    return await db.rides.list_rides()


@router.post("/rides", status_code=201,
             dependencies=[rides_admin])
async def create_ride(payload: dict, db: Database = Depends(get_db)):
    return await db.rides.create_ride(payload)


@router.put("/rides", dependencies=[rides_admin])
async def update_ride(payload: dict, id: Optional[str] = None,
                      db: Database = Depends(get_db)):
    if not id:
        raise HTTPException(400, detail="ride id is required")
    ride = await db.rides.update_ride(id, payload)
    if ride is None:
        raise HTTPException(404, detail="ride not found")
    return ride


@router.delete("/rides", dependencies=[rides_admin])
async def delete_ride(id: Optional[str] = None,
                      db: Database = Depends(get_db)):
    if not id:
        raise HTTPException(400, detail="ride id is required")
    removed = await db.rides.delete_ride(id)
    if removed is None:
        raise HTTPException(404, detail="ride not found")
    return {"message": "ride deleted", "participantsRemoved": removed}


@router.get("/rides/public")
async def public_rides(db: Database = Depends(get_db)):
    return await db.rides.active_rides()


@router.get("/featured-rides")
async def featured_rides(db: Database = Depends(get_db)):
    return await db.rides.upcoming_rides(limit=FEATURED_RIDES)


# ----------------------------
# Registration & participants
# ----------------------------
@router.post("/rides/{ride_id}/register")
async def register_for_ride(ride_id: str, payload: dict,
                            db: Database = Depends(get_db)):
    ride, participant = await db.rides.register(ride_id, payload)
    logger.info("participant %s registered for ride %s (%d/%d)",
                participant["id"], ride_id, ride["registered"], ride["spots"])
    return {
        "message": "registration successful",
        "ride": ride,
        "participant": participant,
    }


@router.get("/rides/{ride_id}/participants",
            dependencies=[rides_admin])
async def ride_participants(ride_id: str, db: Database = Depends(get_db)):
    if await db.rides.get_ride(ride_id) is None:
        raise HTTPException(404, detail="ride not found")
    return await db.participants.by_ride(ride_id)


@router.delete("/rides/{ride_id}/participants",
               dependencies=[rides_admin])
async def delete_participant(ride_id: str,
                             participantId: Optional[str] = None,
                             db: Database = Depends(get_db)):
    if not participantId:
        raise HTTPException(400, detail="participant id is required")
    if not await db.rides.remove_participant(ride_id, participantId):
        raise HTTPException(404, detail="participant not found")
    return {"message": "participant deleted"}
