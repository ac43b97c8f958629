"""Generate an event page from a template, commit it and optionally announce it.

Example::

    publish-event -date 2024-12-23 -template templates/okivu.md.template \\
        -publish-facebook -facebook-pages forro-a-strasbourg

The Facebook page access token is read from ``FACEBOOK_PAGE_ACCESS_TOKEN``
only when ``-publish-facebook`` is given. ``FORRO_LOG_LEVEL`` controls
verbosity.
"""

from __future__ import annotations

import argparse
from datetime import date, datetime, timedelta
import logging
import os
from pathlib import Path
from typing import Sequence

import httpx

from forro.models.event import PublishRequest
from forro.services.availability import PageAvailabilityPoller
from forro.services.facebook import FacebookAPIError, FacebookPublisher
from forro.services.git import SubprocessGit
from forro.services.orchestrator import ConfigurationError, EventPublishOrchestrator, FACEBOOK_PAGES
from forro.services.publisher import MarkdownPublisher, PublishError

LOGGER = logging.getLogger("forro.publish_event")

_TOKEN_ENV_VAR = "FACEBOOK_PAGE_ACCESS_TOKEN"
_FACEBOOK_TIMEOUT = 30.0
_PAGE_REQUEST_TIMEOUT = 10.0


def _configure_logging() -> None:
    """Configure root logging based on ``FORRO_LOG_LEVEL``."""
    level_name = os.getenv("FORRO_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def _parse_date(value: str) -> date:
    message = f"Invalid date format. Expected YYYY-MM-DD, got {value}"
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(message) from exc
    # strptime also accepts unpadded fields such as 2024-1-5.
    if parsed.isoformat() != value:
        raise argparse.ArgumentTypeError(message)
    return parsed


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    pages = ", ".join(f"'{name}'" for name in FACEBOOK_PAGES)
    parser = argparse.ArgumentParser(description="Publish a Forró Strasbourg event page", allow_abbrev=False)
    parser.add_argument("-date", "--date", type=_parse_date, required=True, help="Event date in YYYY-MM-DD format")
    parser.add_argument(
        "-template",
        "--template",
        type=Path,
        required=True,
        help="Path to the template markdown file (e.g. pachamamas.md.template)",
    )
    parser.add_argument(
        "-lang",
        "--lang",
        default="fr",
        help="Language code for date formatting (e.g. 'fr' or 'en')",
    )
    parser.add_argument(
        "-dry-run",
        "--dry-run",
        action="store_true",
        help="Only log the actions without carrying them out",
    )
    parser.add_argument(
        "-publish-facebook",
        "--publish-facebook",
        action="store_true",
        help="Announce the event on Facebook once its page is live",
    )
    parser.add_argument(
        "-facebook-pages",
        "--facebook-pages",
        default="all",
        help=f"Comma-separated list of Facebook pages to publish to ('all', {pages})",
    )
    parser.add_argument(
        "-no-push",
        "--no-push",
        dest="push",
        action="store_false",
        help="Commit the event page without pushing it",
    )
    parser.add_argument(
        "-repo",
        "--repo",
        type=Path,
        default=Path.cwd(),
        help="Working tree of the website repository (default: current directory)",
    )
    return parser.parse_args(argv)


def _build_orchestrator(
    repo_path: Path,
    *,
    facebook_client: httpx.Client,
    page_client: httpx.Client,
) -> EventPublishOrchestrator:
    return EventPublishOrchestrator(
        markdown_publisher=MarkdownPublisher(repo_path=repo_path, git=SubprocessGit()),
        facebook_publisher=FacebookPublisher(client=facebook_client),
        poller=PageAvailabilityPoller(client=page_client),
        wait_timeout=timedelta(seconds=PageAvailabilityPoller.default_timeout()),
        wait_interval=timedelta(seconds=PageAvailabilityPoller.default_interval()),
    )


def main(argv: Sequence[str] | None = None) -> int:
    _configure_logging()
    args = _parse_args(argv)

    token = ""
    if args.publish_facebook:
        token = os.getenv(_TOKEN_ENV_VAR, "")
        if not token:
            LOGGER.error("%s not set", _TOKEN_ENV_VAR)
            return 2

    request = PublishRequest(
        date=args.date,
        template_path=args.template,
        language=args.lang,
        dry_run=args.dry_run,
        publish_facebook=args.publish_facebook,
        page_access_token=token,
        facebook_pages=args.facebook_pages,
        push=args.push,
    )
    LOGGER.info(
        "PUBLISH_EVENT_START date=%s template=%s dry_run=%s facebook=%s",
        request.date.isoformat(),
        request.template_path,
        request.dry_run,
        request.publish_facebook,
    )

    with (
        httpx.Client(timeout=_FACEBOOK_TIMEOUT) as facebook_client,
        httpx.Client(timeout=_PAGE_REQUEST_TIMEOUT, follow_redirects=True) as page_client,
    ):
        orchestrator = _build_orchestrator(args.repo, facebook_client=facebook_client, page_client=page_client)
        try:
            outcome = orchestrator.publish_event(request)
        except ConfigurationError as exc:
            LOGGER.error("%s", exc)
            return 2
        except (PublishError, FacebookAPIError) as exc:
            LOGGER.error("%s", exc)
            return 1

    for name, post_url in outcome.post_urls.items():
        LOGGER.info("Facebook post on %s: %s", name, post_url)
    LOGGER.info(
        "PUBLISH_EVENT_COMPLETE path=%s url=%s already_published=%s",
        outcome.publication.output_path,
        outcome.publication.event_url,
        outcome.publication.already_published,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
