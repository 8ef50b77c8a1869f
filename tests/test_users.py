import asyncio

import pytest

from youngriders.model.errors import ConflictError, ValidationError
from youngriders.model.users import public_user


def test_create_and_verify(db):
    async def scenario():
        user = await db.users.create_user({
            "username": "marloes", "password": "geheim",
            "permissions": ["orders", "rides"],
        })
        return (user,
                await db.users.verify("marloes", "geheim"),
                await db.users.verify("marloes", "fout"),
                await db.users.verify("nobody", "geheim"))

    user, ok, bad_pass, bad_user = asyncio.run(scenario())
    assert user["passwordHash"] != "geheim"
    assert ok["id"] == user["id"]
    assert bad_pass is None and bad_user is None


def test_duplicate_username(db):
    async def scenario():
        await db.users.create_user({"username": "a", "password": "x"})
        await db.users.create_user({"username": "a", "password": "y"})

    with pytest.raises(ConflictError):
        asyncio.run(scenario())


def test_unknown_permission_rejected(db):
    with pytest.raises(ValidationError):
        asyncio.run(db.users.create_user({
            "username": "b", "password": "x", "permissions": ["root"],
        }))


def test_update_password(db):
    async def scenario():
        user = await db.users.create_user({"username": "c",
                                           "password": "old"})
        await db.users.update_user(user["id"], {"password": "new",
                                                "name": "Cees"})
        return (await db.users.verify("c", "old"),
                await db.users.verify("c", "new"))

    old, new = asyncio.run(scenario())
    assert old is None
    assert new["name"] == "Cees"


def test_public_user_hides_hash():
    user = {"id": "1", "username": "d", "passwordHash": "$2b$..."}
    assert public_user(user) == {"id": "1", "username": "d"}
