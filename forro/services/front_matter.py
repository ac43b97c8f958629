"""Extraction of the YAML front matter block from generated markdown files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from forro.models.event import FrontMatterRecord


FRONT_MATTER_DELIMITER = "---"


class FrontMatterError(ValueError):
    """Raised when a markdown file does not carry a usable front matter block."""


def read_front_matter_block(text: str) -> str:
    """Return the raw lines between the first two ``---`` markers of ``text``.

    Lines are stripped before comparison and collection. Anything after the
    closing marker is ignored, even when malformed.
    """

    collected: list[str] = []
    in_block = False
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if line == FRONT_MATTER_DELIMITER:
            if in_block:
                break
            in_block = True
            continue
        if in_block:
            collected.append(line)
    return "\n".join(collected)


def parse_front_matter(text: str, *, source: str | Path = "<string>") -> dict[str, Any]:
    """Decode the front matter of ``text`` into a mapping."""

    block = read_front_matter_block(text)
    if not block:
        raise FrontMatterError(f"no front matter found in {source}")

    try:
        payload = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"failed to parse front matter: {exc}") from exc

    # A block of blank lines is an empty YAML document: an empty record.
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise FrontMatterError(f"failed to parse front matter: expected a mapping in {source}")
    return payload


def extract_front_matter(path: Path) -> FrontMatterRecord:
    """Read ``path`` and return the title, place and city of its front matter."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FrontMatterError(f"failed to open file for front matter parsing: {exc}") from exc

    return FrontMatterRecord.from_mapping(parse_front_matter(text, source=path))


__all__ = [
    "FRONT_MATTER_DELIMITER",
    "FrontMatterError",
    "extract_front_matter",
    "parse_front_matter",
    "read_front_matter_block",
]
