"""Announce published events on Facebook pages through the Graph API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from forro.models.event import EventDate, FrontMatterRecord


LOGGER = logging.getLogger(__name__)

GRAPH_URL = "https://graph.facebook.com"
_POST_URL_TEMPLATE = "https://www.facebook.com/{page_id}/posts/{post_id}"


class FacebookAPIError(RuntimeError):
    """Raised when the Graph API rejects a post or answers unexpectedly."""


def compose_message(event_date: EventDate, front_matter: FrontMatterRecord, event_url: str) -> str:
    """Return the French announcement posted for an event."""

    return (
        f"{event_date.long_date_capitalized}: {front_matter.title}\n"
        f"{front_matter.place}, {front_matter.city}\n"
        "\n"
        "Plus d'informations :\n"
        f"{event_url}"
    )


def post_url_from_id(post_id: str) -> str:
    """Turn a Graph API ``{pageId}_{postId}`` identifier into a public post URL."""

    parts = post_id.split("_")
    if len(parts) != 2:
        raise FacebookAPIError(f"unexpected format for post id: {post_id}")
    page_id, facebook_post_id = parts
    return _POST_URL_TEMPLATE.format(page_id=page_id, post_id=facebook_post_id)


class FacebookPublisher:
    """Post event announcements to a page feed."""

    _DEFAULT_TIMEOUT = 30.0

    def __init__(self, *, client: httpx.Client | None = None, graph_url: str = GRAPH_URL) -> None:
        self._client = client or httpx.Client(timeout=self._DEFAULT_TIMEOUT)
        self._graph_url = graph_url.rstrip("/")

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
        """Post the announcement on ``page_id`` and return the resulting post URL."""

        LOGGER.info("Publishing event on Facebook Page: %s", page_id)
        message = compose_message(event_date, front_matter, event_url)

        if dry_run:
            LOGGER.info("[Dry Run] Would publish the following message to Facebook:\n%s", message)
            simulated = _POST_URL_TEMPLATE.format(page_id=page_id, post_id="SimulatedPostID")
            LOGGER.info("[Dry Run] Simulated Facebook post URL: %s", simulated)
            return simulated

        url = f"{self._graph_url}/{page_id}/feed"
        payload = {"message": message, "access_token": access_token}
        try:
            response = self._client.post(url, json=payload)
        except httpx.HTTPError as exc:
            raise FacebookAPIError(f"error posting to Facebook: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            detail = _decode_error(response)
            if detail is not None:
                raise FacebookAPIError(f"facebook API returned status {response.status_code}: {detail}")
            raise FacebookAPIError(f"facebook API returned status {response.status_code}")

        try:
            result = response.json()
        except ValueError as exc:
            raise FacebookAPIError(f"error decoding response body: {exc}") from exc

        post_id = result.get("id") if isinstance(result, dict) else None
        if not isinstance(post_id, str) or not post_id:
            raise FacebookAPIError("no 'id' returned from Facebook API")

        post_url = post_url_from_id(post_id)
        LOGGER.info("Post published successfully on Facebook at: %s", post_url)
        return post_url


def _decode_error(response: httpx.Response) -> Any | None:
    try:
        return response.json()
    except ValueError:
        return None


__all__ = ["FacebookAPIError", "FacebookPublisher", "GRAPH_URL", "compose_message", "post_url_from_id"]
