"""Command line entry point: run the API or seed an admin account."""

import argparse
import asyncio
import getpass
import logging

from pymongo.errors import DuplicateKeyError, PyMongoError

from portfolio_chatbot.config import get_settings
from portfolio_chatbot.repositories.admin_repository import AdminRepository
from portfolio_chatbot.repositories.database import ADMINS, DatabaseManager
from portfolio_chatbot.services.auth_service import AuthenticationService

logger = logging.getLogger(__name__)


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from portfolio_chatbot.api.app import create_app

    logger.info("Starting API server on %s:%s.", args.host, args.port)
    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


async def _create_admin(email: str, username: str, password: str) -> int:
    settings = get_settings()
    db_manager = DatabaseManager(settings.mongo_uri, settings.mongodb_db)
    try:
        await db_manager.create_indexes()
        auth_service = AuthenticationService(
            AdminRepository(db_manager.get_collection(ADMINS)), settings.jwt_secret
        )
        admin = await auth_service.create_admin(email, username, password)
    except DuplicateKeyError:
        print(f"An admin with email {email} already exists.")
        return 1
    except PyMongoError as exc:
        print(f"Could not reach MongoDB: {exc}")
        return 1
    finally:
        db_manager.close()

    print(f"Created admin {admin.email} ({admin.id}).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-chatbot", description="Portfolio chatbot backend."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")

    admin = commands.add_parser("create-admin", help="Create an admin account")
    admin.add_argument("--email", required=True, help="Login email address")
    admin.add_argument("--username", required=True, help="Display name")
    admin.add_argument(
        "--password", help="Password; prompted for when omitted"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        return _serve(args)

    password = args.password or getpass.getpass("Password: ")
    if not password:
        print("A password is required.")
        return 1
    return asyncio.run(_create_admin(args.email, args.username, password))


if __name__ == "__main__":
    raise SystemExit(main())
