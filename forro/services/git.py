"""Thin Git adapter used to stage, commit and push generated event pages."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import subprocess
from typing import Protocol, Sequence


class GitCommandError(RuntimeError):
    """Raised when a Git invocation fails, carrying the captured output."""

    def __init__(self, args: Sequence[str], returncode: int | None, output: str) -> None:
        self.command = list(args)
        self.returncode = returncode
        self.output = output
        command = " ".join(self.command)
        super().__init__(f"failed to run git command '{command}' (exit {returncode})\nOutput: {output.strip()}")


class SupportsGit(Protocol):
    """Operations the publisher relies on to record a generated file."""

    def run_command(self, directory: Path, *args: str) -> str:
        """Run ``git <args>`` inside ``directory`` and return its combined output."""

    def check_changes(self, directory: Path, file_path: str | Path) -> bool:
        """Return ``True`` when ``file_path`` has staged changes."""


@dataclass(slots=True)
class SubprocessGit:
    """Invoke the ``git`` executable through :mod:`subprocess`."""

    git_executable: str = "git"

    def run_command(self, directory: Path, *args: str) -> str:
        result = self._run(directory, args)
        if result.returncode != 0:
            raise GitCommandError(args, result.returncode, result.stdout)
        return result.stdout

    def check_changes(self, directory: Path, file_path: str | Path) -> bool:
        """Check the index for ``file_path``.

        ``git diff --cached --exit-code`` exits with 0 when the index matches
        ``HEAD`` and with 1 when differences are staged. Any other exit code
        is a genuine failure.
        """

        args = ("diff", "--cached", "--exit-code", str(file_path))
        result = self._run(directory, args)
        if result.returncode == 0:
            return False
        if result.returncode == 1:
            return True
        raise GitCommandError(args, result.returncode, result.stdout)

    def _run(self, directory: Path, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                [self.git_executable, *args],
                cwd=directory,
                text=True,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as exc:
            raise GitCommandError(args, None, str(exc)) from exc


__all__ = ["GitCommandError", "SubprocessGit", "SupportsGit"]
