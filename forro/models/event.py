"""Data structures shared by the event publishing workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Mapping

from forro.utils.dates import capitalize_first_letter, month_name, weekday_name


@dataclass(slots=True, frozen=True)
class EventDate:
    """Localised representation of the day an event takes place."""

    date: date
    lang: str
    weekday: str
    month_name: str
    date_string: str
    long_date: str
    long_date_capitalized: str

    @classmethod
    def from_date(cls, value: date, lang: str, date_string: str | None = None) -> "EventDate":
        """Derive every display string for ``value`` in the requested language."""

        weekday = weekday_name(value, lang)
        month = month_name(value, lang)
        return cls(
            date=value,
            lang=lang,
            weekday=weekday,
            month_name=month,
            date_string=date_string or value.isoformat(),
            long_date=f"{weekday} {value.day} {month}",
            long_date_capitalized=f"{capitalize_first_letter(weekday)} {value.day} {month}",
        )

    @property
    def day(self) -> int:
        return self.date.day

    @property
    def month(self) -> int:
        return self.date.month

    def template_context(self) -> dict[str, str]:
        """Return the variables exposed to event templates.

        The ``Date``/``LongDate``/``LongDateCapitalized`` spellings are kept for
        templates written as ``{{ .LongDate }}``.
        """

        return {
            "date": self.date_string,
            "long_date": self.long_date,
            "long_date_capitalized": self.long_date_capitalized,
            "Date": self.date_string,
            "LongDate": self.long_date,
            "LongDateCapitalized": self.long_date_capitalized,
        }


@dataclass(slots=True)
class FrontMatterRecord:
    """Subset of an event page's front matter used for announcements."""

    title: str = ""
    place: str = ""
    city: str = ""

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "FrontMatterRecord":
        """Build a record from decoded YAML, ignoring keys the workflow does not use."""

        def _text(key: str) -> str:
            value = payload.get(key)
            return "" if value is None else str(value)

        return cls(title=_text("title"), place=_text("place"), city=_text("city"))


@dataclass(slots=True)
class PublishRequest:
    """Parameters of a single ``publish-event`` invocation."""

    date: date
    template_path: Path
    language: str = "fr"
    dry_run: bool = False
    publish_facebook: bool = False
    page_access_token: str = ""
    facebook_pages: str = "all"
    push: bool = True


@dataclass(slots=True)
class MarkdownPublication:
    """Outcome returned by the markdown publisher."""

    output_path: Path
    event_date: EventDate
    front_matter: FrontMatterRecord
    already_published: bool
    event_url: str


@dataclass(slots=True)
class PublishOutcome:
    """Summary of a full publish run, including social announcements."""

    publication: MarkdownPublication
    post_urls: dict[str, str] = field(default_factory=dict)
    skipped_pages: list[str] = field(default_factory=list)
