"""Publisher responsible for rendering event pages and committing them to Git."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
from pathlib import Path
import re

from jinja2 import Environment, StrictUndefined, TemplateError

from forro.models.event import EventDate, FrontMatterRecord, MarkdownPublication
from forro.services.front_matter import FrontMatterError, extract_front_matter
from forro.services.git import GitCommandError, SupportsGit
from forro.utils.dates import SITE_URL, event_url


LOGGER = logging.getLogger(__name__)

_TEMPLATE_SUFFIX = ".template"
_MARKDOWN_SUFFIX = ".md"

# Only ``{{ ... }}`` is live in event templates: markdown bodies may contain
# ``{#anchor}`` or ``{%`` and those must pass through untouched.
_TEMPLATE_ENVIRONMENT = Environment(
    block_start_string="<%forro",
    block_end_string="forro%>",
    comment_start_string="<#forro",
    comment_end_string="forro#>",
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)

# ``{{ .LongDate }}`` as written in the site's existing templates.
_FIELD_REFERENCE = re.compile(r"\{\{(-?)\s*\.([A-Za-z_]\w*)\s*(-?)\}\}")


def _rewrite_field_references(source: str) -> str:
    """Turn ``{{ .Name }}`` references into plain ``{{ Name }}`` expressions."""

    def _replace(match: re.Match[str]) -> str:
        open_trim, name, close_trim = match.groups()
        return f"{{{{{open_trim} {name} {close_trim}}}}}"

    return _FIELD_REFERENCE.sub(_replace, source)


class PublishError(RuntimeError):
    """Raised when an event page cannot be generated or recorded."""


def template_base_name(template_path: Path) -> str:
    """Strip ``.template`` then ``.md`` from the template's file name."""

    name = Path(template_path).name
    name = name.removesuffix(_TEMPLATE_SUFFIX)
    return name.removesuffix(_MARKDOWN_SUFFIX)


def event_slug(template_path: Path, value: date) -> str:
    """Return the ``YYMMDD-basename`` identifier shared by the file and its URL."""

    return f"{value.strftime('%y%m%d')}-{template_base_name(template_path)}"


@dataclass(slots=True)
class MarkdownPublisher:
    """Render an event template into the content tree and record it with Git."""

    repo_path: Path
    git: SupportsGit
    content_directory: Path = field(default_factory=lambda: Path("content/evenements"))
    base_url: str = SITE_URL

    def publish(
        self,
        template_path: Path,
        event_day: date,
        date_string: str,
        lang: str,
        *,
        dry_run: bool = False,
        push: bool = True,
    ) -> MarkdownPublication:
        """Generate the event page for ``event_day`` and commit it.

        Every action is logged. With ``dry_run`` the filesystem and Git are
        left untouched and the front matter record stays empty.
        """

        template_path = Path(template_path)
        slug = event_slug(template_path, event_day)
        relative_path = self.content_directory / f"{slug}{_MARKDOWN_SUFFIX}"
        output_path = self.repo_path / relative_path
        url = event_url(slug, self.base_url)
        event_date = EventDate.from_date(event_day, lang, date_string)

        LOGGER.info("Creating event markdown file at: %s", output_path)
        front_matter = FrontMatterRecord()
        if dry_run:
            LOGGER.info("[Dry Run] Skipping rendering of %s", template_path)
        else:
            self._render(template_path, output_path, event_date)
            try:
                front_matter = extract_front_matter(output_path)
            except FrontMatterError as exc:
                raise PublishError(f"failed to extract front matter: {exc}") from exc

        LOGGER.info("Running 'git add' on %s", relative_path)
        if dry_run:
            LOGGER.info("[Dry Run] Skipping git add, commit and push")
            return MarkdownPublication(
                output_path=output_path,
                event_date=event_date,
                front_matter=front_matter,
                already_published=False,
                event_url=url,
            )

        self._git("add", str(relative_path), action="git add")

        try:
            has_changes = self.git.check_changes(self.repo_path, relative_path)
        except GitCommandError as exc:
            raise PublishError(f"git diff failed: {exc}") from exc

        if not has_changes:
            LOGGER.info("No changes detected. The event appears to be already published.")
            return MarkdownPublication(
                output_path=output_path,
                event_date=event_date,
                front_matter=front_matter,
                already_published=True,
                event_url=url,
            )

        commit_message = f"Add event for {date_string} based on template {template_path.name}"
        LOGGER.info("Running 'git commit' with message: %r", commit_message)
        self._git("commit", "-m", commit_message, action="git commit")

        if push:
            LOGGER.info("Running 'git push'")
            self._git("push", action="git push")
        else:
            LOGGER.info("Skipping 'git push'")

        return MarkdownPublication(
            output_path=output_path,
            event_date=event_date,
            front_matter=front_matter,
            already_published=False,
            event_url=url,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _render(self, template_path: Path, output_path: Path, event_date: EventDate) -> None:
        """Render ``template_path`` with the event's date strings into ``output_path``."""

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PublishError(f"failed to create output directory: {exc}") from exc

        try:
            source = template_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PublishError(f"error parsing template file: {exc}") from exc

        try:
            template = _TEMPLATE_ENVIRONMENT.from_string(_rewrite_field_references(source))
        except TemplateError as exc:
            raise PublishError(f"error parsing template file: {exc}") from exc

        try:
            rendered = template.render(**event_date.template_context())
        except TemplateError as exc:
            raise PublishError(f"error executing template: {exc}") from exc

        try:
            output_path.write_text(rendered, encoding="utf-8")
        except OSError as exc:
            raise PublishError(f"failed to create output file: {exc}") from exc

    def _git(self, *args: str, action: str) -> str:
        try:
            return self.git.run_command(self.repo_path, *args)
        except GitCommandError as exc:
            raise PublishError(f"{action} failed: {exc}") from exc


__all__ = ["MarkdownPublisher", "PublishError", "event_slug", "template_base_name"]
