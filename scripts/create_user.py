"""
Create a user from the command line.

Usage:
    python scripts/create_user.py <username> <password> [--email EMAIL] [--name NAME]
"""
import argparse
import asyncio
import sys

from sqlalchemy import select

from stockledger.core.database import close_db, get_db_context
from stockledger.core.security import get_password_hash
from stockledger.models.user import User


async def create_user(username: str, password: str, email: str | None = None, name: str | None = None) -> User:
    async with get_db_context() as db:
        existing = await db.execute(select(User.id).where(User.username == username))
        if existing.first() is not None:
            raise ValueError(f"Username '{username}' is already taken")

        user = User(
            username=username,
            password_hash=get_password_hash(password),
            email=email,
            name=name,
            role="user",
            is_active=True
        )
        db.add(user)
    return user


async def _run(args: argparse.Namespace) -> int:
    try:
        user = await create_user(args.username, args.password, args.email, args.name)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await close_db()

    print(f"Created user {user.username} ({user.id})")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a stock ledger user")
    parser.add_argument("username")
    parser.add_argument("password")
    parser.add_argument("--email", default=None)
    parser.add_argument("--name", default=None)
    args = parser.parse_args(argv)

    if len(args.password) < 6:
        parser.error("password must be at least 6 characters")

    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
