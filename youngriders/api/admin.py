from __future__ import annotations
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import ORJSONResponse

from ..deps import current_user, get_db, require_permission
from ..model.db import Database
from ..model.errors import ValidationError
from ..model.siteconfig import public_config
from ..model.users import public_user
from ..permissions import AVAILABLE_PERMISSIONS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin")

users_admin = Depends(require_permission("users"))
settings_admin = Depends(require_permission("site_settings"))


# ----------------------------
# Session login
# ----------------------------
@router.post("/login")
async def login(request: Request, payload: dict,
                db: Database = Depends(get_db)):
    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""
    user = await db.users.verify(username, password)
    if user is None:
        logger.info("failed admin login for %r", username)
        return ORJSONResponse(
            {"success": False, "message": "Ongeldige inloggegevens"},
            status_code=401,
        )
    request.session["admin_user"] = user["username"]
    return {"success": True, "user": public_user(user)}


@router.post("/logout")
async def logout(request: Request):
    request.session.pop("admin_user", None)
    return {"success": True}


@router.get("/check-session")
async def check_session(user: Dict[str, Any] = Depends(current_user)):
    if user is None:
        return {"authenticated": False}
    return {"authenticated": True, "user": public_user(user)}


# ----------------------------
# Back-office users
# ----------------------------
@router.get("/permissions")
async def permissions():
    return AVAILABLE_PERMISSIONS


@router.get("/users", dependencies=[users_admin])
async def list_users(db: Database = Depends(get_db)):
    return [public_user(u) for u in await db.users.list_users()]


@router.post("/users", status_code=201, dependencies=[users_admin])
async def create_user(payload: dict, db: Database = Depends(get_db)):
    return public_user(await db.users.create_user(payload))


@router.put("/users", dependencies=[users_admin])
async def update_user(payload: dict, db: Database = Depends(get_db)):
    user_id = payload.get("id")
    if not user_id:
        raise ValidationError("user id is required")
    return public_user(await db.users.update_user(user_id, payload))


@router.delete("/users", dependencies=[users_admin])
async def delete_user(id: str, request: Request,
                      db: Database = Depends(get_db)):
    user = await db.users.get_by_id(id)
    if user is not None and \
            user["username"] == request.session.get("admin_user"):
        raise ValidationError("you cannot delete your own account")
    await db.users.delete_user(id)
    return {"success": True}


# ----------------------------
# Site settings
# ----------------------------
@router.get("/site-settings", dependencies=[settings_admin])
async def get_site_settings(db: Database = Depends(get_db)):
    return public_config(await db.site_config.get())


@router.post("/site-settings", dependencies=[settings_admin])
async def update_site_settings(payload: dict,
                               db: Database = Depends(get_db)):
    action = payload.get("action")
    value = payload.get("value")
    if action == "setMaintenanceMode":
        config = await db.site_config.set_maintenance_mode(value)
    elif action == "setShopClosed":
        config = await db.site_config.set_shop_closed(value)
    elif action == "updateMaintenancePassword":
        config = await db.site_config.update_maintenance_password(value)
    else:
        raise ValidationError("Invalid action")
    return {"success": True, "config": public_config(config)}
