"""
Sublet marketplace command line.

Usage:
    python -m sublet [serve] [--host HOST] [--port PORT] [--log-level LEVEL]
    python -m sublet create-admin --username NAME --email EMAIL
"""

import argparse
import getpass
import sys
from dataclasses import replace

from aiohttp import web
from loguru import logger

from .api import create_app
from .auth.permissions import Role
from .config import ConfigError, Settings
from .context import AppContext
from .errors import SubletError
from .logging_setup import configure_logging
from .service import Marketplace


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="sublet", description="Sublet marketplace API server")
    parser.add_argument("--log-level", help="Log level (default: SUBLET_LOG_LEVEL or INFO)")
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP API (default)")
    serve.add_argument("--host", help="Bind address (default: SUBLET_HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, help="Port (default: SUBLET_PORT or 8080)")

    admin = commands.add_parser("create-admin", help="Create an admin account")
    admin.add_argument("--username", required=True)
    admin.add_argument("--email", required=True)

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "serve"
        args.host = None
        args.port = None
    return args


def serve(marketplace: Marketplace, settings: Settings) -> int:
    app = create_app(marketplace)
    logger.info(f"Starting sublet API on http://{settings.host}:{settings.port}")
    web.run_app(app, host=settings.host, port=settings.port, print=None)
    return 0


def create_admin(marketplace: Marketplace, username: str, email: str) -> int:
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Confirm password: "):
        logger.error("Passwords do not match")
        return 1

    try:
        account = marketplace.users.create_account(username, email, password, Role.ADMIN)
    except SubletError as e:
        logger.error(f"Could not create admin: {e.message}")
        return 1

    logger.success(f"Admin account created: {account.username} ({account.id})")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        configure_logging("INFO")
        logger.error(f"Configuration error: {e}")
        return 1

    overrides = {"log_level": args.log_level}
    if args.command == "serve":
        overrides.update(host=args.host, port=args.port)
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    configure_logging(settings.log_level.upper())
    marketplace = Marketplace(AppContext.create(settings))

    if args.command == "create-admin":
        return create_admin(marketplace, args.username, args.email)
    return serve(marketplace, settings)


if __name__ == "__main__":
    sys.exit(main())
