"""Data structures for the weekly events digest."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from forro.utils.dates import weekday_name


@dataclass(slots=True)
class DigestEvent:
    """An event listed in the weekly digest message."""

    title: str
    start: datetime
    url: str

    @property
    def weekday(self) -> str:
        return weekday_name(self.start, "fr")

    @property
    def day(self) -> int:
        return self.start.day

    @property
    def month(self) -> int:
        return self.start.month

    @property
    def hour(self) -> str:
        """Start time in the French ``20h30`` notation."""

        return self.start.strftime("%Hh%M")
