"""Command-line interface for the Jira user client."""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from typing import Any, Sequence

import yaml
from pydantic import BaseModel

from .client import Client, JiraError
from .config import CONFIG_ENV_VAR, ClientConfig, load_client_config, resolve_config_path
from .models import FindUsersOptions, User, dump_model
from .users import UserService

logger = logging.getLogger("jiraclient.cli")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Jira user management utilities")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to the YAML configuration file (default: ${CONFIG_ENV_VAR} or config/jira.yaml)",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Override the Jira base URL from the configuration file",
    )
    parser.add_argument("--verbose", action="store_true", help="Log outgoing requests")
    subparsers = parser.add_subparsers(dest="command", required=True)

    get_parser = subparsers.add_parser("get", help="Show a single user")
    get_parser.add_argument("username")

    subparsers.add_parser("whoami", help="Show the authenticated user")

    groups_parser = subparsers.add_parser("groups", help="List the groups of a user")
    groups_parser.add_argument("username")

    delete_parser = subparsers.add_parser("delete", help="Delete a user")
    delete_parser.add_argument("username")

    create_parser = subparsers.add_parser("create", help="Create a user")
    create_parser.add_argument("name", help="Username of the new account")
    create_parser.add_argument("--email", required=True, help="Email address of the new account")
    create_parser.add_argument("--display-name", default=None, help="Full name shown in Jira")
    create_parser.add_argument(
        "--application-key",
        dest="application_keys",
        action="append",
        default=None,
        help="Application the user gets access to (repeatable)",
    )

    search_parser = subparsers.add_parser("search", help="Search users by username fragment")
    search_parser.add_argument("username")
    search_parser.add_argument("--start-at", type=int, default=None, help="Index of the first result")
    search_parser.add_argument("--max-results", type=int, default=None, help="Maximum results per page")
    search_parser.add_argument(
        "--include-inactive",
        action="store_true",
        help="Include deactivated accounts",
    )
    search_parser.add_argument(
        "--exclude-active",
        action="store_true",
        help="Leave active accounts out of the results",
    )
    search_parser.add_argument("--property", default=None, help="Property query, e.g. key.path=value")

    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> ClientConfig:
    config_path = resolve_config_path(args.config or os.getenv(CONFIG_ENV_VAR))
    if config_path.exists():
        try:
            config = load_client_config(config_path)
        except (ValueError, yaml.YAMLError) as exc:
            raise SystemExit(f"Invalid configuration file {config_path}: {exc}") from exc
        logger.debug("Loaded configuration from %s", config_path)
        if args.base_url:
            config = replace(config, base_url=args.base_url)
        return config

    if not args.base_url:
        raise SystemExit(
            f"No configuration found at {config_path}. Provide --config or --base-url."
        )
    return ClientConfig(base_url=args.base_url).with_env()


def _search_options(args: argparse.Namespace) -> FindUsersOptions | None:
    if (
        args.start_at is None
        and args.max_results is None
        and not args.include_inactive
        and not args.exclude_active
        and args.property is None
    ):
        return None
    return FindUsersOptions(
        start_at=args.start_at or 0,
        max_results=args.max_results if args.max_results is not None else 50,
        include_active=not args.exclude_active,
        include_inactive=args.include_inactive,
        property=args.property or "",
    )


def _dump(value: Any) -> str:
    if isinstance(value, BaseModel):
        return json.dumps(dump_model(value), indent=2)
    if isinstance(value, list):
        return json.dumps([dump_model(item) for item in value], indent=2)
    return json.dumps(value, indent=2)


def _run(service: UserService, args: argparse.Namespace) -> str:
    if args.command == "get":
        user, _ = service.get(args.username)
        return _dump(user)
    if args.command == "whoami":
        user, _ = service.get_self()
        return _dump(user)
    if args.command == "groups":
        groups, _ = service.get_groups(args.username)
        return _dump(groups)
    if args.command == "delete":
        response = service.delete(args.username)
        return f"Deleted {args.username} (status {response.status_code})."
    if args.command == "create":
        user = User(
            name=args.name,
            email_address=args.email,
            display_name=args.display_name,
            application_keys=args.application_keys,
        )
        created, _ = service.create(user)
        return _dump(created)
    if args.command == "search":
        users, _ = service.find_users(args.username, _search_options(args))
        logger.info("Found %d user(s) matching %s", len(users), args.username)
        return _dump(users)
    raise SystemExit(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    config = _load_config(args)
    with Client.from_config(config) as client:
        try:
            output = _run(UserService(client), args)
        except JiraError as exc:
            print(f"Jira request failed: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc

    print(output)


if __name__ == "__main__":
    main()
