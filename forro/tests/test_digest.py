from __future__ import annotations

from datetime import datetime, timedelta, timezone
import json
from pathlib import Path

import httpx
import pytest

from forro.models.digest import DigestEvent
from forro.services.digest import (
    BeeperChatSender,
    ChatSendError,
    DigestConfig,
    collect_week_events,
    current_iso_week,
    render_digest,
)


# Sunday evening: the digest covers the week starting the next day.
NOW = datetime(2024, 12, 22, 18, 0, tzinfo=timezone.utc)


def _event_file(directory: Path, name: str, body: str) -> None:
    (directory / name).write_text(body, encoding="utf-8")


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "evenements"
    directory.mkdir()
    _event_file(
        directory,
        "241227-okivu.md",
        "---\ntitle: Bal avec Okivu\nstartDate: 2024-12-27T20:30:00+01:00\n---\nbody\n",
    )
    _event_file(
        directory,
        "241223-pratique.md",
        '---\ntitle: "Pratique du lundi"\nstartDate: "2024-12-23T19:00:00+01:00"\n---\n',
    )
    _event_file(
        directory,
        "241216-old.md",
        "---\ntitle: Old\nstartDate: 2024-12-16T20:00:00+01:00\n---\n",
    )
    _event_file(directory, "notes.txt", "not an event")
    _event_file(directory, "broken.md", "no front matter here")
    return directory


def test_current_iso_week_looks_one_day_ahead() -> None:
    assert current_iso_week(NOW) == (2024, 52)
    assert current_iso_week(NOW - timedelta(days=1)) == (2024, 51)


def test_collect_week_events_filters_and_sorts(content_dir: Path) -> None:
    events = collect_week_events(content_dir, now=NOW)

    assert [event.title for event in events] == ["Pratique du lundi", "Bal avec Okivu"]
    assert events[0].url == "https://forrostrasbourg.fr/evenements/241223-pratique/"
    assert events[1].weekday == "vendredi"
    assert events[1].hour == "20h30"


def test_render_digest(content_dir: Path) -> None:
    message = render_digest(collect_week_events(content_dir, now=NOW))

    assert message == (
        "Bonjour à toutes et tous,\n"
        "\n"
        "Pour cette semaine, on a :\n"
        "\n"
        "- Le lundi 23/12 à 19h00, Pratique du lundi : "
        "https://forrostrasbourg.fr/evenements/241223-pratique/\n"
        "- Le vendredi 27/12 à 20h30, Bal avec Okivu : "
        "https://forrostrasbourg.fr/evenements/241227-okivu/\n"
        "\n"
        "Au plaisir de vous y voir\n"
    )


def test_digest_event_properties() -> None:
    event = DigestEvent(title="Bal", start=datetime(2025, 3, 2, 9, 5), url="https://example.com")

    assert (event.weekday, event.day, event.month, event.hour) == ("dimanche", 2, 3, "09h05")


def test_config_requires_every_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BEEPER_ACCESS_TOKEN", "token")
    monkeypatch.setenv("FORROSTRASBOURG_CHAT_GROUP_ID", "!group:beeper.local")
    monkeypatch.delenv("SPECIAL_CHAT_GROUP_ID", raising=False)

    with pytest.raises(ValueError, match="SPECIAL_CHAT_GROUP_ID not set"):
        DigestConfig.from_env()


def test_config_drops_empty_chat_ids(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BEEPER_ACCESS_TOKEN", "token")
    monkeypatch.setenv("FORROSTRASBOURG_CHAT_GROUP_ID", "!group:beeper.local")
    monkeypatch.setenv("SPECIAL_CHAT_GROUP_ID", "")
    monkeypatch.delenv("BEEPER_API_URL", raising=False)

    config = DigestConfig.from_env()

    assert config.chat_ids == ["!group:beeper.local"]
    assert config.api_url == "http://localhost:23373"


def test_sender_posts_text_with_bearer_token() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201, json={"id": "m1"})

    sender = BeeperChatSender("token", client=httpx.Client(transport=httpx.MockTransport(handler)))
    sender.send("chat-1", "Bonjour")

    request = captured[0]
    assert str(request.url) == "http://localhost:23373/v1/chats/chat-1/messages"
    assert request.headers["Authorization"] == "Bearer token"
    assert json.loads(request.content) == {"text": "Bonjour"}


def test_sender_raises_on_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="forbidden")

    sender = BeeperChatSender("token", client=httpx.Client(transport=httpx.MockTransport(handler)))

    with pytest.raises(ChatSendError, match="unexpected status: 403: forbidden"):
        sender.send("chat-1", "Bonjour")


def test_collect_week_events_skips_undecodable_files(content_dir: Path) -> None:
    (content_dir / "bad.md").write_bytes(b"---\ntitle: \xe9t\xe9\n---\n")

    events = collect_week_events(content_dir, now=NOW)

    assert [event.title for event in events] == ["Pratique du lundi", "Bal avec Okivu"]
