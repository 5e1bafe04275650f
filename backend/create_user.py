import argparse
import asyncio
import os
import sys

# Add the current directory to sys.path to allow imports
sys.path.append(os.getcwd())

from employee_api.core.exceptions import AppError
from employee_api.db.session import AsyncSessionLocal, engine, init_db
from employee_api.services.auth_service import AuthService


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a user, or reset the password of an existing one.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    return parser.parse_args(argv)


async def create_user(username: str, email: str, password: str) -> int:
    await init_db()
    try:
        async with AsyncSessionLocal() as db:
            user, created = await AuthService(db).ensure_user(
                username, email, password, reset_password=True
            )
    except AppError as exc:
        print(f"{exc.message}: {exc.error or ''}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    if created:
        print(f"Created user: {user.username} (id {user.id})")
    else:
        print(f"User {user.username} already exists, password updated")
    return 0


if __name__ == "__main__":
    args = parse_args()
    sys.exit(asyncio.run(create_user(args.username, args.email, args.password)))
