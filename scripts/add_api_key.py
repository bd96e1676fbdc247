"""
Toreca Tracker — Public API Key Issuing Script

Creates an api_keys row for a partner who needs read access to
/api/public/*. There is no self-serve signup; keys are issued by hand.

Usage:
    python scripts/add_api_key.py --name "Partner Shop"
    python scripts/add_api_key.py --name "Internal dashboard" --rate-limit 600
    python scripts/add_api_key.py --disable tk_abc123...
"""

from __future__ import annotations

import argparse
import asyncio
import os
import secrets
import sys

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Resolve project root so this script can be run from any working directory
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.config import settings
from src.models.api_key import ApiKey

KEY_PREFIX = "tk_"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Issue or disable a Toreca Tracker public API key.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/add_api_key.py --name "Partner Shop"
  python scripts/add_api_key.py --name "Internal dashboard" --rate-limit 600
  python scripts/add_api_key.py --disable tk_abc123
""",
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--name",
        type=str,
        help="Label for the key holder, shown in logs and the admin UI.",
    )
    group.add_argument(
        "--disable",
        type=str,
        metavar="KEY",
        help="Deactivate an existing key (requests with it get 403).",
    )
    parser.add_argument(
        "--rate-limit",
        type=int,
        default=60,
        help="Requests per minute recorded on the key (default: 60).",
    )
    return parser.parse_args(argv)


def generate_key() -> str:
    return KEY_PREFIX + secrets.token_urlsafe(32)


async def create_api_key(name: str, rate_limit: int) -> ApiKey:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        api_key = ApiKey(key=generate_key(), name=name, rate_limit=rate_limit, is_active=True)
        session.add(api_key)
        await session.commit()

    await engine.dispose()
    return api_key


async def disable_api_key(key: str) -> bool:
    """Returns False when no such key exists."""
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        result = await session.execute(
            update(ApiKey).where(ApiKey.key == key).values(is_active=False)
        )
        await session.commit()

    await engine.dispose()
    return result.rowcount > 0


async def main() -> None:
    args = parse_args()

    try:
        if args.disable:
            if not await disable_api_key(args.disable):
                print(f"No API key found: {args.disable}", file=sys.stderr)
                sys.exit(1)
            print("API key disabled.")
            return

        api_key = await create_api_key(args.name, args.rate_limit)
        print("API key created successfully.")
        print(f"  id         = {api_key.id}")
        print(f"  name       = {api_key.name}")
        print(f"  rate_limit = {api_key.rate_limit}/min")
        print(f"  key        = {api_key.key}")
        print()
        print("Send the key via the X-API-Key header. It is not shown again.")
    except Exception as e:
        print(f"Failed to update API keys: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
