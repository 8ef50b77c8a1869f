from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import ORJSONResponse

from .. import config
from ..deps import get_db, require_admin, require_permission
from ..helpers import ct_equal
from ..model.db import Database
from ..model.errors import ValidationError
from ..model.siteconfig import IMAGE_KEYS, IMAGE_TYPES, public_config
from ..model.siteconfig import status_only
from ..uploads import is_image, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

images_admin = Depends(require_permission("site_images"))


@router.get("/site-config")
async def site_config(db: Database = Depends(get_db)):
    return public_config(await db.site_config.get())


@router.get("/site-status")
async def site_status(db: Database = Depends(get_db)):
    return status_only(await db.site_config.get())


@router.post("/check-maintenance-password")
async def check_maintenance_password(payload: dict,
                                     db: Database = Depends(get_db)):
    password = payload.get("password") or ""
    current = await db.site_config.get()
    if not ct_equal(password, current["maintenancePassword"]):
        return {"success": False}
    response = ORJSONResponse({"success": True})
    response.set_cookie(
        config.MAINTENANCE_BYPASS_COOKIE, "true",
        max_age=config.MAINTENANCE_BYPASS_MAX_AGE,
        httponly=True, samesite="strict",
    )
    return response


# ----------------------------
# Site images
# ----------------------------
@router.post("/update-site-images", dependencies=[images_admin])
async def update_site_images(payload: dict,
                             db: Database = Depends(get_db)):
    paths = {k: payload[k] for k in IMAGE_KEYS if payload.get(k)}
    updated = await db.site_config.update_images(**paths)
    return {"success": True, "config": public_config(updated)}


@router.post("/upload-site-image", dependencies=[images_admin])
async def upload_site_image(
    request: Request,
    file: UploadFile = File(...),
    type: str = Form(...),
    db: Database = Depends(get_db),
):
    key = IMAGE_TYPES.get(type)
    if key is None:
        raise ValidationError("type must be one of: home, contact, logo")
    if not is_image(file):
        raise ValidationError("only image files are allowed")
    path = await save_upload(file, request.app.state.upload_dir, "site",
                             prefix=f"{type}-")
    await db.site_config.update_images(**{key: path})
    return {"success": True, "path": path}


@router.post("/upload", dependencies=[Depends(require_admin)])
async def upload_image(request: Request, file: UploadFile = File(...),
                       folder: str = Form("images")):
    if not is_image(file):
        raise ValidationError("only image files are allowed")
    if folder not in ("images", "albums", "products"):
        raise ValidationError("invalid upload folder")
    path = await save_upload(file, request.app.state.upload_dir, folder)
    return {"success": True, "path": path}
