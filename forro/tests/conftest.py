"""Shared fixtures and helpers for the test suite."""

from __future__ import annotations

from pathlib import Path
import subprocess

import pytest


EVENT_TEMPLATE = """---
title: "Bal forró avec Okivu"
place: "La Grenze"
city: "Strasbourg"
date: {{ date }}
---
Rendez-vous {{ long_date }} pour danser.

{{ long_date_capitalized }} : bal à partir de 20h.
"""


def init_repo(path: Path) -> None:
    subprocess.run(["git", "init"], cwd=path, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    subprocess.run(["git", "config", "user.name", "Forró Bot"], cwd=path, check=True, stdout=subprocess.PIPE, text=True)
    subprocess.run(
        ["git", "config", "user.email", "bot@example.com"],
        cwd=path,
        check=True,
        stdout=subprocess.PIPE,
        text=True,
    )
    subprocess.run(
        ["git", "config", "commit.gpgsign", "false"],
        cwd=path,
        check=True,
        stdout=subprocess.PIPE,
        text=True,
    )


@pytest.fixture
def template_path(tmp_path: Path) -> Path:
    """Write the sample event template and return its path."""

    templates = tmp_path / "templates"
    templates.mkdir()
    path = templates / "okivu.md.template"
    path.write_text(EVENT_TEMPLATE, encoding="utf-8")
    return path


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Return an initialised Git working tree."""

    path = tmp_path / "site"
    path.mkdir()
    init_repo(path)
    return path
