"""Print the digest of this week's events and optionally send it to the chat groups."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Sequence

import httpx

from forro.services.digest import (
    BeeperChatSender,
    ChatSendError,
    DigestConfig,
    collect_week_events,
    render_digest,
)

LOGGER = logging.getLogger("forro.weekly_digest")

_CHAT_TIMEOUT = 10.0


def _configure_logging() -> None:
    """Configure root logging based on ``FORRO_LOG_LEVEL``."""
    level_name = os.getenv("FORRO_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the weekly Forró Strasbourg events digest")
    parser.add_argument(
        "-send",
        "--send",
        action="store_true",
        help="Send the digest to the configured chat groups instead of only printing it",
    )
    parser.add_argument(
        "--content-dir",
        type=Path,
        default=Path("content/evenements"),
        help="Directory holding the event pages (default: content/evenements)",
    )
    return parser.parse_args(argv)


def _build_sender(config: DigestConfig, client: httpx.Client) -> BeeperChatSender:
    return BeeperChatSender(config.access_token, client=client, base_url=config.api_url)


def main(argv: Sequence[str] | None = None) -> int:
    _configure_logging()
    args = _parse_args(argv)

    config: DigestConfig | None = None
    if args.send:
        try:
            config = DigestConfig.from_env()
        except ValueError as exc:
            LOGGER.error("%s", exc)
            return 2
        LOGGER.info("WEEKLY_DIGEST_START chat_ids=%s", config.chat_ids)

    if not args.content_dir.is_dir():
        LOGGER.error("Content directory does not exist: %s", args.content_dir)
        return 1

    events = collect_week_events(args.content_dir)
    print("EVENTS:")
    for event in events:
        print(f"  {event.start.isoformat()} {event.title} {event.url}")

    message = render_digest(events)
    print("MESSAGE:")
    print(message)

    if config is None:
        LOGGER.info("Not sending")
        return 0

    with httpx.Client(timeout=_CHAT_TIMEOUT) as client:
        sender = _build_sender(config, client)
        try:
            for chat_id in config.chat_ids:
                sender.send(chat_id, message)
        except ChatSendError as exc:
            LOGGER.error("%s", exc)
            return 1

    print("MESSAGE SENT")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
