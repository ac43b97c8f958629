"""Weekly digest of upcoming events, optionally sent to chat groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
import logging
import os
from pathlib import Path
from typing import Any, Iterable

import httpx
from jinja2 import Template

from forro.models.digest import DigestEvent
from forro.services.front_matter import FrontMatterError, parse_front_matter
from forro.utils.dates import SITE_URL, event_url


LOGGER = logging.getLogger(__name__)

DIGEST_TEMPLATE = Template(
    """Bonjour à toutes et tous,

Pour cette semaine, on a :
{% for event in events %}
- Le {{ event.weekday }} {{ event.day }}/{{ event.month }} à {{ event.hour }}, {{ event.title }} : {{ event.url }}
{%- endfor %}

Au plaisir de vous y voir
""",
    keep_trailing_newline=True,
)


class ChatSendError(RuntimeError):
    """Raised when the chat API refuses a digest message."""


def _coerce_start(value: Any) -> datetime | None:
    """Return ``startDate`` as a datetime whether YAML decoded it or left it as text."""

    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def current_iso_week(now: datetime | None = None) -> tuple[int, int]:
    """Return the ISO ``(year, week)`` the digest covers.

    The reference point is shifted by a day so that a digest prepared on a
    Sunday announces the week starting the next morning.
    """

    reference = (now or datetime.now(timezone.utc)) + timedelta(hours=24)
    year, week, _ = reference.astimezone(timezone.utc).isocalendar()
    return year, week


def collect_week_events(
    content_dir: Path,
    *,
    now: datetime | None = None,
    base_url: str = SITE_URL,
) -> list[DigestEvent]:
    """Return the events of ``content_dir`` whose start falls in the current ISO week."""

    target = current_iso_week(now)
    events: list[DigestEvent] = []

    for path in sorted(Path(content_dir).rglob("*")):
        if path.is_dir():
            continue
        if path.suffix != ".md":
            LOGGER.debug("Ignoring %s", path)
            continue

        try:
            payload = parse_front_matter(path.read_text(encoding="utf-8"), source=path)
        except (OSError, UnicodeDecodeError, FrontMatterError) as exc:
            LOGGER.warning("Skipping %s: %s", path, exc)
            continue

        start = _coerce_start(payload.get("startDate"))
        if start is None:
            LOGGER.debug("Ignoring %s: no usable startDate", path)
            continue

        year, week, _ = start.isocalendar()
        if (year, week) != target:
            LOGGER.debug("Ignoring event %s in week %s-%s", path.name, year, week)
            continue

        events.append(
            DigestEvent(
                title=str(payload.get("title") or ""),
                start=start,
                url=event_url(path.stem, base_url),
            )
        )

    events.sort(key=lambda event: (event.start.date(), event.start.time()))
    return events


def render_digest(events: Iterable[DigestEvent]) -> str:
    """Render the French digest message for ``events``."""

    return DIGEST_TEMPLATE.render(events=list(events))


@dataclass(slots=True)
class DigestConfig:
    """Credentials and destinations for sending the digest."""

    access_token: str
    chat_ids: list[str] = field(default_factory=list)
    api_url: str = "http://localhost:23373"

    _TOKEN_ENV_VAR = "BEEPER_ACCESS_TOKEN"
    _CHAT_ENV_VARS = ("FORROSTRASBOURG_CHAT_GROUP_ID", "SPECIAL_CHAT_GROUP_ID")
    _API_URL_ENV_VAR = "BEEPER_API_URL"

    @classmethod
    def from_env(cls) -> "DigestConfig":
        """Load the configuration, requiring every variable to be set (possibly empty)."""

        token = os.getenv(cls._TOKEN_ENV_VAR)
        if token is None:
            raise ValueError(f"{cls._TOKEN_ENV_VAR} not set in env")

        chat_ids: list[str] = []
        for variable in cls._CHAT_ENV_VARS:
            value = os.getenv(variable)
            if value is None:
                raise ValueError(f"{variable} not set in env")
            if value:
                chat_ids.append(value)

        api_url = os.getenv(cls._API_URL_ENV_VAR) or "http://localhost:23373"
        return cls(access_token=token, chat_ids=chat_ids, api_url=api_url)


class BeeperChatSender:
    """Send text messages to chat groups through the local Beeper API."""

    _DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        access_token: str,
        *,
        client: httpx.Client | None = None,
        base_url: str = "http://localhost:23373",
    ) -> None:
        self._access_token = access_token
        self._client = client or httpx.Client(timeout=self._DEFAULT_TIMEOUT)
        self._base_url = base_url.rstrip("/")

    def send(self, chat_id: str, message: str) -> None:
        url = f"{self._base_url}/v1/chats/{chat_id}/messages"
        headers = {"Authorization": f"Bearer {self._access_token}"}
        try:
            response = self._client.post(url, json={"text": message}, headers=headers)
        except httpx.HTTPError as exc:
            raise ChatSendError(f"error sending message to chat {chat_id}: {exc}") from exc

        if response.status_code >= 300:
            raise ChatSendError(f"unexpected status: {response.status_code}: {response.text}")
        LOGGER.info("Digest sent to chat %s", chat_id)


__all__ = [
    "BeeperChatSender",
    "ChatSendError",
    "DigestConfig",
    "collect_week_events",
    "current_iso_week",
    "render_digest",
]
