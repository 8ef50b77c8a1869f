import argparse
import asyncio

from youngriders import config
from youngriders.model.db import Database
from youngriders.permissions import PERMISSION_IDS


async def init_data(data_dir: str, username: str, password: str) -> bool:
    """Create the data files and, when missing, an all-permissions admin.

    Returns True when the admin user was created.
    """
    db = Database(data_dir)
    db.ensure()
    print(f'✅ data files ready in {data_dir}')

    if await db.users.get_by_username(username) is not None:
        print(f'admin {username!r} already exists, leaving it alone')
        return False
    await db.users.create_user({
        "username": username,
        "password": password,
        "name": "Beheerder",
        "permissions": PERMISSION_IDS,
    })
    print(f'✅ admin {username!r} created')
    return True


def main():
    ap = argparse.ArgumentParser(
        description="Create the Young Riders data files and an admin user"
    )
    ap.add_argument("--data-dir", default=config.DATA_DIR,
                    help="Directory holding the JSON files")
    ap.add_argument("--username", default=config.ADMIN_USERNAME,
                    help="Admin username")
    ap.add_argument("--password", default=config.ADMIN_PASSWORD,
                    help="Admin password")
    args = ap.parse_args()
    asyncio.run(init_data(args.data_dir, args.username, args.password))


if __name__ == "__main__":
    main()
