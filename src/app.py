"""Application entry point for the kfeed client."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from rich.console import Console

import settings
from adapters.mention_formatting import (
    format_mention_text,
    format_notification_line,
    notification_to_rich_text,
    to_rich_text,
)
from client import build_channel
from core.errors import KFeedError
from core.reply_chain import decode_mentions, parse_envelope, validate_keys

NAME = "KFEED"
FONT = "tarty-1"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks configured secret values (e.g. the user's pubkey) in log lines."""

    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = [os.getenv(name) for name in redact_cfg.get("patterns", [])]
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = _RedactingFormatter(
        _collect_redaction_values(config),
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/kfeed.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    if handlers:
        logging.basicConfig(level=level, handlers=handlers)


def _resolve_pubkey(value: Optional[str]) -> str:
    pubkey = (value or settings.DEFAULT_PUBKEY).strip()
    # Fail fast rather than polling for nobody.
    if not pubkey:
        raise RuntimeError("A pubkey argument or KFEED_PUBKEY is required")
    return pubkey


async def _watch(pubkey: str, console: Console) -> None:
    channel, scheduler = build_channel()
    unsubscribe = channel.subscribe(lambda count: console.print(f"Unread notifications: [bold]{count}[/bold]"))
    channel.start_polling(pubkey)
    try:
        # Runs until cancelled (Ctrl+C).
        await asyncio.Event().wait()
    finally:
        unsubscribe()
        channel.stop_polling()
        await scheduler.shutdown()


async def _show_notifications(pubkey: str, limit: Optional[int], mode: str, console: Console) -> None:
    channel, scheduler = build_channel()
    channel.start_polling(pubkey)
    try:
        page = await channel.fetch_notifications(limit=limit)
        if not page.notifications:
            console.print("No notifications.")
            return

        now_ms = int(time.time() * 1000)
        for notification in page.notifications:
            if mode == "plain":
                console.print(
                    format_notification_line(notification, now_ms, settings.MENTION_MAX_LENGTH),
                    markup=False,
                    highlight=False,
                    soft_wrap=True,
                )
            else:
                console.print(notification_to_rich_text(notification, now_ms, settings.MENTION_MAX_LENGTH))
        if page.has_more:
            console.print(f"More available before cursor {page.next_cursor}", markup=False)

        # Viewing the list moves the seen boundary to the newest item.
        if page.latest_cursor:
            channel.mark_seen(page.latest_cursor)
    finally:
        channel.stop_polling()
        await scheduler.shutdown()


def _mentions(text: str, mode: str, console: Console) -> None:
    if mode == "rich":
        console.print(to_rich_text(text, settings.MENTION_MAX_LENGTH))
        return
    console.print(
        format_mention_text(text, mode, settings.MENTION_MAX_LENGTH),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _decode(payload: str, console: Console) -> None:
    envelope = parse_envelope(payload)
    if envelope is None:
        console.print("Not a k:1 post or reply payload; no mentions.")
        return
    keys = decode_mentions(payload)
    console.print(f"Action: {envelope.action}")
    if envelope.post_id:
        console.print(f"Replying to: {envelope.post_id}", markup=False)
    message = envelope.decoded_message
    if message is not None:
        console.print(to_rich_text(message, settings.MENTION_MAX_LENGTH))
    for key in keys:
        console.print(f"  {key}", markup=False)
    console.print(f"Mentions: {len(keys)} (raw keys valid: {validate_keys(keys)})")


def _logout() -> None:
    channel, _ = build_channel()
    channel.clear_persisted_cursor()
    LOGGER.info("Notification cursor cleared")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="kfeed")
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch_parser = subparsers.add_parser("watch", help="Poll the unread notification count")
    watch_parser.add_argument("pubkey", nargs="?", help="Identity to poll for (default: KFEED_PUBKEY)")

    list_parser = subparsers.add_parser("notifications", help="Show notifications and mark them seen")
    list_parser.add_argument("pubkey", nargs="?", help="Identity to list for (default: KFEED_PUBKEY)")
    list_parser.add_argument("--limit", type=int, help="Page size (default: notifications.page_limit)")
    list_parser.add_argument("--format", dest="mode", choices=["rich", "plain"], default="rich")

    mentions_parser = subparsers.add_parser("mentions", help="Render @mentions in a piece of text")
    mentions_parser.add_argument("text")
    mentions_parser.add_argument(
        "--format",
        dest="mode",
        choices=["rich", "plain", "markdown", "html"],
        default="rich",
    )

    decode_parser = subparsers.add_parser("decode", help="Decode the mention list of a payload")
    decode_parser.add_argument("payload")

    subparsers.add_parser("logout", help="Forget the notification seen cursor")

    args = parser.parse_args(argv)
    _configure_logging()
    console = Console()

    try:
        if args.command == "watch":
            _print_banner()
            asyncio.run(_watch(_resolve_pubkey(args.pubkey), console))
        elif args.command == "notifications":
            asyncio.run(_show_notifications(_resolve_pubkey(args.pubkey), args.limit, args.mode, console))
        elif args.command == "mentions":
            _mentions(args.text, args.mode, console)
        elif args.command == "decode":
            _decode(args.payload, console)
        elif args.command == "logout":
            _logout()
    except KeyboardInterrupt:
        LOGGER.info("Stopped")
    except KFeedError as exc:
        LOGGER.error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
