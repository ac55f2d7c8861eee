#!/usr/bin/env python3
"""Run a development Yggdrasil authentication server with seeded accounts.

Accounts live in memory only and vanish when the process exits.

Usage:
    python scripts/serve.py --user alice:secret:Alice --user bob:hunter2:Bob

    # Or from the environment (comma separated):
    YGG_SEED_USERS=alice:secret:Alice python scripts/serve.py --port 25585

Environment Variables:
    YGG_SEED_USERS: Comma separated USERNAME:PASSWORD[:PROFILE] entries
    YGG_HOST, YGG_PORT: Bind address (overridden by --host/--port)
    YGG_PREFERRED_LANGUAGE: preferredLanguage user property (default: en)
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

# Add project root to path for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main():
    import uvicorn

    from yggauth.app import create_app
    from yggauth.config import get_settings
    from yggauth.service.seeding import parse_account_spec, seed_accounts
    from yggauth.storage.errors import ConstraintViolation
    from yggauth.storage.memory import MemoryTokenAuthority

    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Run an in-memory Yggdrasil authentication server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--user",
        action="append",
        default=[],
        metavar="USERNAME:PASSWORD[:PROFILE]",
        help="Account to seed; repeat for more",
    )
    parser.add_argument("--host", default=settings.host, help="Bind host")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "info"),
        help="uvicorn log level",
    )

    args = parser.parse_args()

    raw_accounts = list(args.user)
    env_accounts = os.environ.get("YGG_SEED_USERS", "")
    raw_accounts.extend(entry.strip() for entry in env_accounts.split(",") if entry.strip())

    try:
        specs = [parse_account_spec(raw) for raw in raw_accounts]
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not specs:
        print("Note: no accounts seeded; every authenticate call will be rejected")

    authority = MemoryTokenAuthority(preferred_language=settings.preferred_language)
    try:
        seeded = seed_accounts(authority, specs)
    except ConstraintViolation as e:
        print(f"Error: {e.message} {e.detail}")
        sys.exit(1)

    for account in seeded:
        if account.profile:
            print(
                f"Seeded {account.username} (user {account.user_id}, "
                f"profile {account.profile.name} {account.profile.profile_id})"
            )
        else:
            print(f"Seeded {account.username} (user {account.user_id}, no profile)")

    app = create_app(authority, settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
