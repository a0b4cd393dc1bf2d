#!/usr/bin/env python3
"""
Credgate -- user registration, login and role-gated bearer tokens.

Usage:
  python main.py serve
  python main.py serve --port 9000 --reload
  python main.py create-user admin --role admin

Environment variables (or a local .env file):
  SECRET_KEY     Token signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG          true to auto-generate SECRET_KEY for local development.
  PORT           Listen port (default 8081).
  DB_URL         SQLAlchemy URL of the user database (default sqlite:///app.db).
"""

import argparse
import getpass
import logging
import sys
from datetime import timedelta

from auth.errors import AccountError
from auth.passwords import PasswordHasher
from auth.service import AccountService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

logger = logging.getLogger("credgate.cli")


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("Starting Credgate API on %s:%d", host, port)
    uvicorn.run(
        "asgi:app",
        host=host,
        port=port,
        reload=args.reload,
    )
    return 0


def _create_user(args: argparse.Namespace) -> int:
    """Register a user directly against the configured database.

    This is how the first admin account is bootstrapped; the password is read
    from the terminal so it never appears in shell history.
    """
    settings = get_settings()
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.")
        return 1

    store = UserStore(db_url=settings.db_url)
    accounts = AccountService(
        store=store,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens=TokenService(
            secret=settings.secret_key,
            lifetime=timedelta(seconds=settings.token_expire_seconds),
        ),
    )
    try:
        user = accounts.register(args.username, password, args.role)
    except AccountError as exc:
        print(f"  [!] Could not create user: {exc.message}")
        return 1
    finally:
        store.close()
    print(f"  Created user id={user.id} username={user.username} role={user.role}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credgate",
        description="Credential and session service.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting).")
    serve.add_argument("--port", type=int, default=None, help="Listen port (default: PORT setting).")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development).")
    serve.set_defaults(func=_serve)

    create = sub.add_parser("create-user", help="Register a user from the command line.")
    create.add_argument("username")
    create.add_argument("--role", default="user", help='Role to assign (default: "user").')
    create.set_defaults(func=_create_user)

    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s %(message)s")
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
