from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import bcrypt

from ..helpers import new_id, now_iso
from ..permissions import PERMISSION_IDS
from ..infra.jsonstore import JsonTable
from .errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

User = Dict[str, Any]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def check_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # not a bcrypt hash
        return False


def public_user(user: User) -> User:
    return {k: v for k, v in user.items()
            if k not in ("passwordHash", "password")}


def _clean_permissions(permissions: Any) -> List[str]:
    if not isinstance(permissions, list):
        raise ValidationError("permissions must be a list")
    unknown = [p for p in permissions if p not in PERMISSION_IDS]
    if unknown:
        raise ValidationError(f"unknown permissions: {', '.join(unknown)}")
    return list(permissions)


class UserStore:
    def __init__(self, table: JsonTable) -> None:
        self.table = table

    async def list_users(self) -> List[User]:
        return self.table.read()

    async def count(self) -> int:
        return len(self.table.read())

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return next(
            (u for u in self.table.read() if u.get("id") == user_id), None
        )

    async def get_by_username(self, username: str) -> Optional[User]:
        return next(
            (u for u in self.table.read() if u.get("username") == username),
            None,
        )

    async def verify(self, username: str, password: str) -> Optional[User]:
        user = await self.get_by_username(username)
        if user is None or not check_password(
            password, user.get("passwordHash", "")
        ):
            return None
        return user

    async def create_user(self, data: Dict[str, Any]) -> User:
        username = (data.get("username") or "").strip()
        password = data.get("password") or ""
        if not username or not password:
            raise ValidationError("username and password are required")
        user = {
            "id": new_id(),
            "username": username,
            "passwordHash": hash_password(password),
            "name": data.get("name") or username,
            "permissions": _clean_permissions(data.get("permissions") or []),
            "createdAt": now_iso(),
        }
        async with self.table.gated():
            users = self.table.read()
            if any(u.get("username") == username for u in users):
                raise ConflictError("username already exists")
            users.append(user)
            self.table.write(users)
        logger.info("user %s created", username)
        return user

    async def update_user(self, user_id: str, data: Dict[str, Any]) -> User:
        changes: Dict[str, Any] = {}
        if data.get("name"):
            changes["name"] = data["name"]
        if "permissions" in data:
            changes["permissions"] = _clean_permissions(data["permissions"])
        if data.get("password"):
            changes["passwordHash"] = hash_password(data["password"])

        async with self.table.gated():
            users = self.table.read()
            for i, user in enumerate(users):
                if user.get("id") == user_id:
                    users[i] = {**user, **changes}
                    self.table.write(users)
                    return users[i]
        raise NotFoundError("user not found")

    async def delete_user(self, user_id: str) -> None:
        async with self.table.gated():
            users = self.table.read()
            kept = [u for u in users if u.get("id") != user_id]
            if len(kept) == len(users):
                raise NotFoundError("user not found")
            self.table.write(kept)
        logger.info("user %s deleted", user_id)
