import argparse
import json
import logging
import os
import sys
from pathlib import Path

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.app_shell.context import ServiceContext
from src.components.invite import (
    AcceptInviteInput,
    InviteMetadataInput,
    run_accept,
    run_metadata,
)
from src.domain.entities import UserProfile
from src.rules.loader import load_rules

logger = logging.getLogger("cli")

RULES_PATH = "rules.yaml"
MIGRATIONS_DIR = "migrations"


def db_path() -> str:
    data_dir = Path(os.environ.get("INVITE_DATA_DIR", "./data"))
    data_dir.mkdir(parents=True, exist_ok=True)
    return str(data_dir / "invites.db")


def get_context() -> ServiceContext:
    if not Path(RULES_PATH).exists():
        logger.error("Rules file %s not found.", RULES_PATH)
        sys.exit(1)

    rules = load_rules(Path(RULES_PATH))
    return ServiceContext.create(db_path(), rules)


def handle_migrate(args: argparse.Namespace) -> int:
    applied = SQLiteMigrator(db_path(), MIGRATIONS_DIR).run_migrations()
    print(f"Applied {len(applied)} migration(s).")
    return 0


def handle_show(ctx: ServiceContext, args: argparse.Namespace) -> int:
    result = run_metadata(InviteMetadataInput(token=args.token), service=ctx.invite_service)
    if not result.success or result.metadata is None:
        logger.error("%s (%s)", result.error, result.error_code)
        return 1
    print(json.dumps(result.metadata.model_dump(), indent=2))
    return 0


def handle_accept(ctx: ServiceContext, args: argparse.Namespace) -> int:
    profile = UserProfile(
        name=args.name, image=args.image, auth_type=args.auth_type, email=args.email
    )
    result = run_accept(
        AcceptInviteInput(token=args.token, user_id=args.user_id, profile=profile),
        service=ctx.invite_service,
    )
    if not result.success:
        logger.error("%s (%s)", result.error, result.error_code)
        return 1
    print(f"User {args.user_id} linked to brand {result.brand_id}.")
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Brand invite engine CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending database migrations")

    show_parser = subparsers.add_parser("show", help="Print invite metadata")
    show_parser.add_argument("token")

    accept_parser = subparsers.add_parser("accept", help="Accept an invite on behalf of a user")
    accept_parser.add_argument("token")
    accept_parser.add_argument("--user-id", required=True)
    accept_parser.add_argument("--email")
    accept_parser.add_argument("--name")
    accept_parser.add_argument("--image")
    accept_parser.add_argument("--auth-type")

    args = parser.parse_args(argv)

    if args.command == "migrate":
        return handle_migrate(args)

    ctx = get_context()
    if args.command == "show":
        return handle_show(ctx, args)
    return handle_accept(ctx, args)


if __name__ == "__main__":
    sys.exit(main())
