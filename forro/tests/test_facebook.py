from __future__ import annotations

from datetime import date
import json

import httpx
import pytest

from forro.models.event import EventDate, FrontMatterRecord
from forro.services.facebook import FacebookAPIError, FacebookPublisher, compose_message, post_url_from_id


EVENT_URL = "https://forrostrasbourg.fr/evenements/241223-okivu/"


def _event() -> tuple[EventDate, FrontMatterRecord]:
    return (
        EventDate.from_date(date(2024, 12, 23), "fr"),
        FrontMatterRecord(title="Bal avec Okivu", place="La Grenze", city="Strasbourg"),
    )


def _publisher(handler) -> FacebookPublisher:
    return FacebookPublisher(client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_compose_message() -> None:
    event_date, front_matter = _event()

    message = compose_message(event_date, front_matter, EVENT_URL)

    assert message == (
        "Lundi 23 décembre: Bal avec Okivu\n"
        "La Grenze, Strasbourg\n"
        "\n"
        "Plus d'informations :\n"
        "https://forrostrasbourg.fr/evenements/241223-okivu/"
    )


def test_dry_run_returns_simulated_url_without_network() -> None:
    event_date, front_matter = _event()

    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("dry run must not hit the network")

    url = _publisher(handler).publish(event_date, front_matter, EVENT_URL, "123", "token", dry_run=True)

    assert url == "https://www.facebook.com/123/posts/SimulatedPostID"


def test_publish_posts_message_and_builds_post_url() -> None:
    event_date, front_matter = _event()
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"id": "351984064669408_987654321"})

    url = _publisher(handler).publish(event_date, front_matter, EVENT_URL, "351984064669408", "secret-token")

    assert url == "https://www.facebook.com/351984064669408/posts/987654321"
    assert len(captured) == 1
    request = captured[0]
    assert request.method == "POST"
    assert str(request.url) == "https://graph.facebook.com/351984064669408/feed"
    body = json.loads(request.content)
    assert body == {
        "message": compose_message(event_date, front_matter, EVENT_URL),
        "access_token": "secret-token",
    }


def test_error_status_includes_decoded_body() -> None:
    event_date, front_matter = _event()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "Invalid OAuth access token."}})

    with pytest.raises(FacebookAPIError, match="status 400.*Invalid OAuth access token"):
        _publisher(handler).publish(event_date, front_matter, EVENT_URL, "123", "bad-token")


def test_error_status_without_json_body() -> None:
    event_date, front_matter = _event()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad gateway")

    with pytest.raises(FacebookAPIError, match=r"facebook API returned status 502$"):
        _publisher(handler).publish(event_date, front_matter, EVENT_URL, "123", "token")


@pytest.mark.parametrize(
    "payload",
    [{}, {"id": ""}, {"id": 42}, ["not", "an", "object"]],
)
def test_missing_post_id_is_an_error(payload: object) -> None:
    event_date, front_matter = _event()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    with pytest.raises(FacebookAPIError, match="no 'id' returned"):
        _publisher(handler).publish(event_date, front_matter, EVENT_URL, "123", "token")


def test_non_json_success_body_is_an_error() -> None:
    event_date, front_matter = _event()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="ok")

    with pytest.raises(FacebookAPIError, match="error decoding response body"):
        _publisher(handler).publish(event_date, front_matter, EVENT_URL, "123", "token")


def test_transport_failure_is_an_error() -> None:
    event_date, front_matter = _event()

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(FacebookAPIError, match="error posting to Facebook"):
        _publisher(handler).publish(event_date, front_matter, EVENT_URL, "123", "token")


@pytest.mark.parametrize("post_id", ["123", "1_2_3", "nounderscore"])
def test_post_url_rejects_malformed_ids(post_id: str) -> None:
    with pytest.raises(FacebookAPIError, match="unexpected format for post id"):
        post_url_from_id(post_id)
