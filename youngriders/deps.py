from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request

from .model.db import Database


def get_db(request: Request) -> Database:
    return request.app.state.db


def is_admin(request: Request) -> bool:
    return bool(request.session.get("admin_user"))


async def current_user(
    request: Request, db: Database = Depends(get_db)
) -> Optional[Dict[str, Any]]:
    username = request.session.get("admin_user")
    if not username:
        return None
    return await db.users.get_by_username(username)


async def require_admin(
    user: Optional[Dict[str, Any]] = Depends(current_user),
) -> Dict[str, Any]:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_permission(permission: str):
    async def _check(user: Dict[str, Any] = Depends(require_admin)):
        if permission not in (user.get("permissions") or []):
            raise HTTPException(status_code=403,
                                detail=f"missing permission: {permission}")
        return user
    return _check
