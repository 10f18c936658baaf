"""Grant the admin role to an existing account.

Usage: python scripts/promote_admin.py <username-or-email>

Admin accounts can only be created by another admin through the API, so the
first one is bootstrapped here.
"""

import asyncio
import os
import sys

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BACKEND_DIR = os.path.join(ROOT_DIR, "backend")
if BACKEND_DIR not in sys.path:
    sys.path.append(BACKEND_DIR)

from snapshoot.domain.identity.models import Role  # noqa: E402
from snapshoot.infra.postgres import close_pool  # noqa: E402
from snapshoot.infra.store import get_store  # noqa: E402


async def promote(credential: str) -> int:
    store = await get_store()
    try:
        user = await store.users.find_by_credential(credential.strip().lower())
        if user is None:
            print(f"ERROR: no account matches {credential!r}. Register it first.")
            return 1
        if user.role is Role.ADMIN:
            print(f"{user.username} is already an admin.")
            return 0
        await store.users.update(user.id, {"role": Role.ADMIN})
        print(f"Granted admin to {user.username} ({user.id}).")
        return 0
    finally:
        await close_pool()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        raise SystemExit(__doc__)
    sys.exit(asyncio.run(promote(sys.argv[1])))
