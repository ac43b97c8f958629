"""Localised date helpers used to render event pages and announcements."""
from __future__ import annotations

from datetime import date


SITE_URL = "https://forrostrasbourg.fr"

# Indexed with 0 = Sunday.
_WEEKDAYS: dict[str, tuple[str, ...]] = {
    "fr": ("dimanche", "lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi"),
    "en": ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"),
}

_MONTHS: dict[str, tuple[str, ...]] = {
    "fr": (
        "janvier",
        "février",
        "mars",
        "avril",
        "mai",
        "juin",
        "juillet",
        "août",
        "septembre",
        "octobre",
        "novembre",
        "décembre",
    ),
    "en": (
        "january",
        "february",
        "march",
        "april",
        "may",
        "june",
        "july",
        "august",
        "september",
        "october",
        "november",
        "december",
    ),
}


def _locale(lang: str) -> str:
    """Return the supported locale key for ``lang``, falling back to English."""

    return "fr" if lang == "fr" else "en"


def weekday_name(value: date, lang: str) -> str:
    """Return the lower-case weekday name of ``value`` in the requested language."""

    return _WEEKDAYS[_locale(lang)][value.isoweekday() % 7]


def month_name(value: date, lang: str) -> str:
    """Return the lower-case month name of ``value`` in the requested language."""

    return _MONTHS[_locale(lang)][value.month - 1]


def capitalize_first_letter(value: str) -> str:
    """Upper-case the first character of ``value`` and leave the rest untouched.

    Python strings are sequences of code points, so accented initials such as
    ``"école"`` become ``"École"`` rather than a mangled byte sequence.
    """

    if not value:
        return value
    return value[0].upper() + value[1:]


def long_date(value: date, lang: str) -> str:
    """Compose the ``"{weekday} {day} {month}"`` form used on event pages."""

    return f"{weekday_name(value, lang)} {value.day} {month_name(value, lang)}"


def event_url(slug: str, base_url: str = SITE_URL) -> str:
    """Return the public URL of the event page identified by ``slug``."""

    return f"{base_url.rstrip('/')}/evenements/{slug}/"


__all__ = [
    "SITE_URL",
    "capitalize_first_letter",
    "event_url",
    "long_date",
    "month_name",
    "weekday_name",
]
