from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_db, require_permission
from ..model.db import Database

router = APIRouter(prefix="/api/albums")

albums_admin = Depends(require_permission("albums"))


@router.get("")
async def list_albums(category: Optional[str] = None,
                      db: Database = Depends(get_db)):
    if category:
        return await db.albums.by_category(category)
    return await db.albums.list_albums()


@router.post("", status_code=201, dependencies=[albums_admin])
async def create_album(payload: dict, db: Database = Depends(get_db)):
    return await db.albums.create_album(payload)


@router.put("", dependencies=[albums_admin])
async def update_album_by_body(payload: dict,
                               db: Database = Depends(get_db)):
    album_id = payload.get("id")
    if not album_id:
        raise HTTPException(400, detail="missing album id")
    album = await db.albums.update_album(album_id, payload)
    if album is None:
        raise HTTPException(404, detail="album not found")
    return album


@router.delete("", dependencies=[albums_admin])
async def delete_album_by_query(id: Optional[str] = None,
                                db: Database = Depends(get_db)):
    if not id:
        raise HTTPException(400, detail="missing album id")
    if not await db.albums.delete_album(id):
        raise HTTPException(404, detail="album not found")
    return {"success": True}


@router.get("/{album_id}")
async def get_album(album_id: str, db: Database = Depends(get_db)):
    album = await db.albums.get_album(album_id)
    if album is None:
        raise HTTPException(404, detail="album not found")
    return album


@router.put("/{album_id}", dependencies=[albums_admin])
async def update_album(album_id: str, payload: dict,
                       db: Database = Depends(get_db)):
    album = await db.albums.update_album(album_id, payload)
    if album is None:
        raise HTTPException(404, detail="album not found")
    return album


@router.delete("/{album_id}", dependencies=[albums_admin])
async def delete_album(album_id: str, db: Database = Depends(get_db)):
    if not await db.albums.delete_album(album_id):
        raise HTTPException(404, detail="album not found")
    return {"success": True}


# ----------------------------
# Album media
# ----------------------------
@router.get("/{album_id}/images")
async def album_media(album_id: str, db: Database = Depends(get_db)):
    album = await db.albums.get_album(album_id)
    if album is None:
        raise HTTPException(404, detail="album not found")
    return album.get("images") or []


@router.post("/{album_id}/images", status_code=201,
             dependencies=[albums_admin])
async def add_media(album_id: str, payload: dict,
                    db: Database = Depends(get_db)):
    media = await db.albums.add_media(album_id, payload)
    if media is None:
        raise HTTPException(404, detail="album not found")
    return media


@router.put("/{album_id}/images", dependencies=[albums_admin])
async def update_media(album_id: str, payload: dict,
                       db: Database = Depends(get_db)):
    media_id = payload.get("mediaId")
    if not media_id:
        raise HTTPException(400, detail="missing mediaId")
    media = await db.albums.update_media(album_id, media_id, payload)
    if media is None:
        raise HTTPException(404, detail="album or media not found")
    return media


@router.delete("/{album_id}/images", dependencies=[albums_admin])
async def remove_media(album_id: str, mediaId: Optional[str] = None,
                       db: Database = Depends(get_db)):
    if not mediaId:
        raise HTTPException(400, detail="missing mediaId parameter")
    if not await db.albums.remove_media(album_id, mediaId):
        raise HTTPException(404, detail="album or media not found")
    return {"success": True}


@router.patch("/{album_id}/images", dependencies=[albums_admin])
async def album_media_action(album_id: str, payload: dict,
                             db: Database = Depends(get_db)):
    action = payload.get("action")
    if action == "setCover":
        if not payload.get("mediaId"):
            raise HTTPException(400, detail="missing mediaId")
        album = await db.albums.set_cover(album_id, payload["mediaId"])
    elif action == "reorder":
        media_ids = payload.get("mediaIds")
        if not isinstance(media_ids, list):
            raise HTTPException(400, detail="mediaIds must be a list")
        album = await db.albums.reorder_media(album_id, media_ids)
    else:
        raise HTTPException(400, detail="invalid action")
    if album is None:
        raise HTTPException(404, detail="album or media not found")
    return album
