from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from ..helpers import new_id, now_iso
from ..infra.jsonstore import JsonTable
from .errors import ValidationError

logger = logging.getLogger(__name__)

Album = Dict[str, Any]
Media = Dict[str, Any]

MEDIA_TYPES = ("image", "video")


def _find(albums: List[Album], album_id: str) -> Optional[Album]:
    return next((a for a in albums if a.get("id") == album_id), None)


def _first_image(album: Album) -> str:
    first = next(
        (m for m in album.get("images") or [] if m.get("type") == "image"),
        None,
    )
    return first["path"] if first else ""


class AlbumStore:
    def __init__(self, table: JsonTable) -> None:
        self.table = table

    async def list_albums(self) -> List[Album]:
        return self.table.read()

    async def get_album(self, album_id: str) -> Optional[Album]:
        return _find(self.table.read(), album_id)

    async def by_category(self, category: str) -> List[Album]:
        return [a for a in self.table.read() if a.get("category") == category]

    async def create_album(self, data: Dict[str, Any]) -> Album:
        if not data.get("title") or not data.get("category") \
                or not data.get("date"):
            raise ValidationError("missing required fields")
        now = now_iso()
        album = {
            "description": "",
            "coverImage": "",
            "images": [],
            **data,
            "id": new_id(),
            "createdAt": now,
            "updatedAt": now,
        }
        async with self.table.gated():
            albums = self.table.read()
            albums.append(album)
            self.table.write(albums)
        logger.info("album %s created", album["id"])
        return album

    async def update_album(self, album_id: str,
                           data: Dict[str, Any]) -> Optional[Album]:
        data = {k: v for k, v in data.items() if k not in ("id", "createdAt")}
        async with self.table.gated():
            albums = self.table.read()
            for i, album in enumerate(albums):
                if album.get("id") == album_id:
                    albums[i] = {**album, **data, "updatedAt": now_iso()}
                    self.table.write(albums)
                    return albums[i]
        return None

    async def delete_album(self, album_id: str) -> bool:
        async with self.table.gated():
            albums = self.table.read()
            kept = [a for a in albums if a.get("id") != album_id]
            if len(kept) == len(albums):
                return False
            self.table.write(kept)
        logger.info("album %s deleted", album_id)
        return True

    # ----------------------------
    # Media
    # ----------------------------
    async def add_media(self, album_id: str,
                        data: Dict[str, Any]) -> Optional[Media]:
        if not data.get("path") or not data.get("type"):
            raise ValidationError("missing required fields")
        if data["type"] not in MEDIA_TYPES:
            raise ValidationError("type must be image or video")

        async with self.table.gated():
            albums = self.table.read()
            album = _find(albums, album_id)
            if album is None:
                return None
            images = album.setdefault("images", [])
            media = {
                "title": "",
                "order": len(images),
                **{k: v for k, v in data.items() if k != "mediaId"},
                "id": new_id(),
                "albumId": album_id,
            }
            images.append(media)
            # first image of an album without a cover becomes the cover
            if len(images) == 1 and not album.get("coverImage") \
                    and media["type"] == "image":
                album["coverImage"] = media["path"]
            album["updatedAt"] = now_iso()
            self.table.write(albums)
        return media

    async def update_media(self, album_id: str, media_id: str,
                           data: Dict[str, Any]) -> Optional[Media]:
        data = {
            k: v for k, v in data.items()
            if k not in ("id", "albumId", "mediaId")
        }
        async with self.table.gated():
            albums = self.table.read()
            album = _find(albums, album_id)
            if album is None:
                return None
            images = album.get("images") or []
            for i, media in enumerate(images):
                if media.get("id") == media_id:
                    images[i] = {**media, **data}
                    album["updatedAt"] = now_iso()
                    self.table.write(albums)
                    return images[i]
        return None

    async def remove_media(self, album_id: str, media_id: str) -> bool:
        async with self.table.gated():
            albums = self.table.read()
            album = _find(albums, album_id)
            if album is None:
                return False
            images = album.get("images") or []
            removed = next((m for m in images if m.get("id") == media_id),
                           None)
            if removed is None:
                return False
            album["images"] = [m for m in images if m.get("id") != media_id]
            if album.get("coverImage") == removed.get("path"):
                album["coverImage"] = _first_image(album)
            album["updatedAt"] = now_iso()
            self.table.write(albums)
        return True

    async def set_cover(self, album_id: str,
                        media_id: str) -> Optional[Album]:
        async with self.table.gated():
            albums = self.table.read()
            album = _find(albums, album_id)
            if album is None:
                return None
            media = next(
                (m for m in album.get("images") or []
                 if m.get("id") == media_id),
                None,
            )
            if media is None or media.get("type") != "image":
                return None
            album["coverImage"] = media["path"]
            album["updatedAt"] = now_iso()
            self.table.write(albums)
        return album

    async def reorder_media(self, album_id: str,
                            media_ids: List[str]) -> Optional[Album]:
        """Rewrite `order` to follow `media_ids`; unlisted media go last."""
        async with self.table.gated():
            albums = self.table.read()
            album = _find(albums, album_id)
            if album is None:
                return None
            rank = {mid: i for i, mid in enumerate(media_ids)}
            images = sorted(
                album.get("images") or [],
                key=lambda m: (rank.get(m.get("id"), len(rank)),
                               m.get("order", 0)),
            )
            for i, media in enumerate(images):
                media["order"] = i
            album["images"] = images
            album["updatedAt"] = now_iso()
            self.table.write(albums)
        return album
