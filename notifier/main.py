"""Command-line entry point for the notification dispatch service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import ValidationError

from notifier.channels.exceptions import ChannelConfigurationError
from notifier.channels.factory import build_adapters
from notifier.config.environment import EnvironmentConfig
from notifier.config.exceptions import ConfigurationError
from notifier.config.loader import load_config
from notifier.config.models import AppConfig
from notifier.directory.exceptions import DirectoryError
from notifier.directory.sql import SQLRecipientDirectory
from notifier.dispatch import Dispatcher, MalformedNotificationError
from notifier.domain.models import Notification, RecipientContact
from notifier.logging import get_logger
from notifier.logging.config import configure_logging
from notifier.persistence.database import close_database, get_session, init_database
from notifier.persistence.exceptions import PersistenceError
from notifier.persistence.repositories import ContactRepository, NotificationFilter
from notifier.persistence.store import SQLNotificationStore

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_MALFORMED = 2


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """Load configuration and settle the effective log level.

    Priority: CLI flag > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def load_notification(path: Path) -> Notification:
    """Read a notification from a YAML or JSON file.

    Raises:
        MalformedNotificationError: If the file does not describe a notification
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise MalformedNotificationError(f"cannot read notification file {path}: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedNotificationError("notification file must contain a mapping")

    try:
        return Notification.model_validate(payload)
    except ValidationError as e:
        raise MalformedNotificationError(f"malformed request body: {e.error_count()} invalid field(s)") from e


def build_dispatcher(app_config: AppConfig, env_config: EnvironmentConfig) -> Dispatcher:
    """Wire the SQL store, SQL directory and configured adapters together."""
    return Dispatcher(
        store=SQLNotificationStore(),
        directory=SQLRecipientDirectory(),
        adapters=build_adapters(app_config, env_config),
        max_channel_workers=app_config.dispatch.max_channel_workers,
    )


def cmd_send(args, dispatcher: Dispatcher) -> int:
    notification = load_notification(args.file)
    outcome = dispatcher.dispatch(notification)
    print(json.dumps(outcome.to_dict(), indent=2, sort_keys=True))
    return EXIT_OK


def cmd_list(args, dispatcher: Dispatcher) -> int:
    records = dispatcher.list_notifications(
        NotificationFilter(recipient_id=args.recipient, type=args.type, limit=args.limit)
    )
    print(json.dumps([record.to_dict() for record in records], indent=2))
    return EXIT_OK


def cmd_add_contact(args, dispatcher: Dispatcher) -> int:
    contact = RecipientContact(
        recipient_id=args.recipient_id,
        push_token=args.push_token,
        phone_number=args.phone or "",
    )
    with get_session() as session:
        saved = ContactRepository(session).upsert(contact)
    logger.info(
        f"Saved contact {saved.recipient_id}",
        extra={"event": "contact.saved", "has_push_token": saved.push_token is not None},
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notifier",
        description="Notification dispatch - fan notifications out over push and SMS",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Dispatch a notification from a YAML/JSON file")
    send.add_argument("file", type=Path, help="Notification file")
    send.set_defaults(handler=cmd_send)

    listing = subparsers.add_parser("list", help="List stored notifications")
    listing.add_argument("--recipient", default=None, help="Only notifications sent to this id")
    listing.add_argument("--type", default=None, help="Only notifications of this type")
    listing.add_argument("--limit", type=int, default=100, help="Maximum results (default: 100)")
    listing.set_defaults(handler=cmd_list)

    contact = subparsers.add_parser("add-contact", help="Create or update a recipient contact")
    contact.add_argument("recipient_id", help="Recipient id")
    contact.add_argument("--push-token", default=None, help="Expo push token")
    contact.add_argument("--phone", default=None, help="Phone number for SMS")
    contact.set_defaults(handler=cmd_add_contact)

    return parser


def main(argv=None) -> int:
    """Run the CLI.

    Returns:
        0 on success (including dispatches with per-recipient failures),
        2 for a malformed notification, 1 for any other fatal error
    """
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=os.environ.get("ENVIRONMENT", "local"),
        )

        init_database(env_config.database_url)
        try:
            dispatcher = build_dispatcher(app_config, env_config)
            return args.handler(args, dispatcher)
        finally:
            close_database()

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except MalformedNotificationError as e:
        print(f"Malformed notification: {e}", file=sys.stderr)
        logger.error(f"Malformed notification: {e}", extra={"event": "cli.malformed"})
        return EXIT_MALFORMED
    except (PersistenceError, DirectoryError, ChannelConfigurationError) as e:
        print(f"Dispatch failed: {e}", file=sys.stderr)
        logger.error(
            f"Dispatch failed: {e}",
            extra={"event": "cli.failed", "error_type": type(e).__name__},
        )
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
