#!/usr/bin/env python3
"""
Create an API key directly in the database.

Used to bootstrap the first admin key when AUTH_ENABLED=true (the
/admin/keys endpoint itself requires an admin key).

Usage:
    python scripts/create_api_key.py --name bootstrap-admin --scope admin
    python scripts/create_api_key.py --name frontend --scope chat --scope upload

The raw key is printed once and cannot be recovered later.
"""

import argparse
import asyncio

from lawchat.db.engine import async_session_factory, dispose_engine, init_db
from lawchat.db.models import ApiKey
from lawchat.services.auth import SCOPES, generate_api_key


async def create_key(name: str, scopes: list[str] | None) -> str:
    await init_db()
    raw_key, key_prefix, key_hash = generate_api_key()

    async with async_session_factory() as session:
        session.add(ApiKey(
            name=name,
            key_prefix=key_prefix,
            key_hash=key_hash,
            scopes=scopes,
            is_active=True,
        ))
        await session.commit()

    await dispose_engine()
    return raw_key


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--name", required=True, help="Human-readable key name")
    parser.add_argument(
        "--scope",
        action="append",
        choices=SCOPES,
        help="Scope to grant (repeatable). Omit for full access.",
    )
    args = parser.parse_args()

    raw_key = asyncio.run(create_key(args.name, args.scope))
    print(f"Created API key '{args.name}' (scopes: {args.scope or 'all'})")
    print(raw_key)


if __name__ == "__main__":
    main()
