"""Top-level workflow chaining the markdown publisher, the poller and Facebook."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
import logging
from pathlib import Path
from typing import Protocol

from forro.models.event import (
    EventDate,
    FrontMatterRecord,
    MarkdownPublication,
    PublishOutcome,
    PublishRequest,
)
from forro.services.facebook import FacebookAPIError
from forro.services.publisher import PublishError


LOGGER = logging.getLogger(__name__)

# Short page names accepted on the command line, in publishing order.
FACEBOOK_PAGES: Mapping[str, str] = {
    "forro-a-strasbourg": "351984064669408",  # Forró à Strasbourg
    "forro-stras": "111247753705287",  # Forró Stras
}


class ConfigurationError(ValueError):
    """Raised when required settings are missing before any work starts."""


class SupportsMarkdownPublishing(Protocol):
    """Subset of :class:`MarkdownPublisher` used by the orchestrator."""

    def publish(
        self,
        template_path: Path,
        event_day: date,
        date_string: str,
        lang: str,
        *,
        dry_run: bool = False,
        push: bool = True,
    ) -> MarkdownPublication:
        """Generate and record the event page."""


class SupportsFacebookPublishing(Protocol):
    """Subset of :class:`FacebookPublisher` used by the orchestrator."""

    def publish(
        self,
        event_date: EventDate,
        front_matter: FrontMatterRecord,
        event_url: str,
        page_id: str,
        access_token: str,
        *,
        dry_run: bool = False,
    ) -> str:
        """Post the announcement and return the post URL."""


class SupportsPageWait(Protocol):
    """Subset of :class:`PageAvailabilityPoller` used by the orchestrator."""

    def wait(self, url: str, timeout: timedelta | float, interval: timedelta | float) -> None:
        """Block until ``url`` is live."""


def resolve_pages(selection: str, pages: Mapping[str, str] = FACEBOOK_PAGES) -> tuple[list[tuple[str, str]], list[str]]:
    """Split a comma-separated page selection into known ``(name, id)`` pairs and unknown names.

    An empty selection or ``"all"`` selects every registered page.
    """

    if not selection.strip() or selection.strip() == "all":
        return list(pages.items()), []

    resolved: list[tuple[str, str]] = []
    unknown: list[str] = []
    for raw_name in selection.split(","):
        name = raw_name.strip()
        if not name:
            continue
        page_id = pages.get(name)
        if page_id is None:
            unknown.append(name)
        else:
            resolved.append((name, page_id))
    return resolved, unknown


@dataclass(slots=True)
class EventPublishOrchestrator:
    """Coordinate page generation and social announcements for one event."""

    markdown_publisher: SupportsMarkdownPublishing
    facebook_publisher: SupportsFacebookPublishing
    poller: SupportsPageWait
    pages: Mapping[str, str] = field(default_factory=lambda: dict(FACEBOOK_PAGES))
    wait_timeout: timedelta = timedelta(minutes=5)
    wait_interval: timedelta = timedelta(seconds=10)

    def publish_event(self, request: PublishRequest) -> PublishOutcome:
        """Run the publish workflow described by ``request``."""

        if request.publish_facebook and not request.page_access_token:
            raise ConfigurationError("FACEBOOK_PAGE_ACCESS_TOKEN not set")

        template_path = Path(request.template_path)
        if not template_path.exists():
            raise PublishError(f"error publishing event: template file does not exist: {template_path}")

        try:
            publication = self.markdown_publisher.publish(
                template_path,
                request.date,
                request.date.isoformat(),
                request.language,
                dry_run=request.dry_run,
                push=request.push,
            )
        except (PublishError, OSError) as exc:
            raise PublishError(f"error publishing event: {exc}") from exc

        if publication.already_published:
            LOGGER.info("Event was already published: %s", publication.output_path)
        else:
            LOGGER.info("Event published successfully: %s", publication.output_path)

        outcome = PublishOutcome(publication=publication)
        if not request.publish_facebook:
            return outcome

        if not request.dry_run:
            LOGGER.info("Waiting for event page to become available: %s", publication.event_url)
            try:
                self.poller.wait(publication.event_url, self.wait_timeout, self.wait_interval)
            except TimeoutError as exc:
                raise PublishError(f"event page did not become available in time: {exc}") from exc

        selected, unknown = resolve_pages(request.facebook_pages, self.pages)
        for name in unknown:
            LOGGER.warning("Unknown Facebook page '%s', skipping", name)
        outcome.skipped_pages.extend(unknown)

        failures: list[str] = []
        for name, page_id in selected:
            LOGGER.info("Publishing to Facebook page: %s", name)
            try:
                outcome.post_urls[name] = self.facebook_publisher.publish(
                    publication.event_date,
                    publication.front_matter,
                    publication.event_url,
                    page_id,
                    request.page_access_token,
                    dry_run=request.dry_run,
                )
            except FacebookAPIError as exc:
                message = f"Failed to publish event on Facebook page '{name}': {exc}"
                LOGGER.error(message)
                failures.append(message)

        if failures:
            raise FacebookAPIError("Facebook publishing errors:\n" + "\n".join(failures))

        return outcome


__all__ = ["ConfigurationError", "EventPublishOrchestrator", "FACEBOOK_PAGES", "resolve_pages"]
