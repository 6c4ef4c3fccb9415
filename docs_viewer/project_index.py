"""Build and render the docs-viewer project index landing page.

This module takes a fully resolved :class:`~docs_viewer.config.SiteConfig`
and produces ``public/index.html`` (or the configured output path) listing
every configured project with its description, feature bullets, and a link to
its first rendered viewer page.

Typical usage pairs the loader with a site config:

>>> from pathlib import Path
>>> from docs_viewer.config import load_site_config
>>> from docs_viewer.project_index import ProjectIndexBuilder
>>> site = load_site_config(Path("config/viewer.yaml"))  # doctest: +SKIP
>>> builder = ProjectIndexBuilder(site)  # doctest: +SKIP
>>> print(builder.run())  # doctest: +SKIP
public/index.html

Descriptions come from the configuration when set, otherwise from the
project's ``package.json`` or ``pyproject.toml`` read through a
:class:`~docs_viewer.projects.ProjectResolver`.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import os
import tomllib
import typing as typ
from pathlib import Path

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markdown import markdown

from ._constants import PROJECT_META_TEMPLATE
from .projects import ProjectResolver

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .config import ProjectConfig, SiteConfig

logger = logging.getLogger(__name__)

MANIFEST_FILES = ("package.json", "pyproject.toml")


class ProjectIndexBuilder:
    """Render a landing page enumerating the configured projects."""

    def __init__(
        self,
        site_config: SiteConfig,
        *,
        templates_dir: Path | None = None,
        resolver_factory: typ.Callable[[ProjectConfig], ProjectResolver] | None = None,
    ) -> None:
        """Initialize the project index builder.

        Parameters
        ----------
        site_config : SiteConfig
            Parsed site configuration (produced by
            :func:`docs_viewer.config.load_site_config`).
        templates_dir : Path, optional
            Directory containing the Jinja templates. Defaults to the
            ``docs_viewer/templates`` directory when ``None``.
        resolver_factory : Callable[[ProjectConfig], ProjectResolver], optional
            Builds the resolver used to read project manifests. Defaults to
            :class:`ProjectResolver`.
        """
        self.site_config = site_config
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("project_index.jinja")
        self.description_resolver = ManifestDescriptionResolver(
            resolver_factory or ProjectResolver
        )
        self._markdown_extensions = ["sane_lists", "tables", "fenced_code"]

    def run(self) -> Path:
        """Render the project index HTML file to the configured output path."""
        entries = self._gather_entries()
        output_path = self.site_config.index_output
        output_path.parent.mkdir(parents=True, exist_ok=True)
        context = {
            "theme": self.site_config.theme,
            "entries": entries,
            "generated_at": dt.datetime.now(dt.UTC),
        }
        html = self.template.render(**context)
        output_path.write_text(html, encoding="utf-8")
        return output_path

    def _gather_entries(self) -> list[dict[str, typ.Any]]:
        """Collect and return project card dictionaries for the index."""
        entries: list[dict[str, typ.Any]] = []
        index_root = self.site_config.index_output.parent
        for project in self.site_config.projects.values():
            description = (
                project.description_override
                or self.description_resolver.resolve(project)
            )
            entries.append(
                {
                    "key": project.key,
                    "title": project.title,
                    "description": description,
                    "description_html": self._render_description(description),
                    "features": project.features,
                    "href": _discover_entry_href(project, index_root),
                    "repo_url": _build_repo_url(project.repo),
                }
            )
        return entries

    def _render_description(self, text: str) -> str:
        normalized = (text or "").strip()
        if not normalized:
            return ""
        return markdown(
            normalized,
            extensions=self._markdown_extensions,
            output_format="html5",
        )


def _discover_entry_href(project: ProjectConfig, relative_to: Path) -> str | None:
    """Resolve the href used by a project card.

    Parameters
    ----------
    project : ProjectConfig
        Project whose rendered pages live under ``<output_dir>/<key>``.
    relative_to : Path
        Directory holding the index page.

    Returns
    -------
    str | None
        Relative POSIX path to the project's first page, or ``None`` when the
        project has not been generated yet.

    Notes
    -----
    The function favors the ``first_file`` recorded in the project metadata
    and only falls back to the alphabetically first ``*.html`` page when the
    metadata is absent or stale.
    """
    project_dir = project.output_dir / project.key
    candidate = _read_project_metadata(project_dir, project.key)
    if candidate is None:
        if not project_dir.is_dir():
            return None
        pages = sorted(
            path.relative_to(project_dir).as_posix()
            for path in project_dir.rglob("*.html")
        )
        if not pages:
            return None
        candidate = project_dir / pages[0]
    return Path(os.path.relpath(candidate, start=relative_to)).as_posix()


def _read_project_metadata(project_dir: Path, key: str) -> Path | None:
    """Return the first page recorded in project metadata, if present."""
    meta_path = project_dir / PROJECT_META_TEMPLATE.format(key=key)
    if not meta_path.exists():
        return None
    try:
        payload = json.loads(meta_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):  # pragma: no cover - IO guard
        return None
    first_file = payload.get("first_file")
    if not first_file:
        return None
    full_path = project_dir / first_file
    if not full_path.exists():
        return None
    return full_path


def _build_repo_url(repo: str | None) -> str | None:
    """Return the GitHub repository URL built from ``repo`` (owner/repo)."""
    if not repo:
        return None
    return f"https://github.com/{repo}"


class ManifestDescriptionResolver:
    """Resolve project descriptions from manifests with caching."""

    def __init__(
        self, resolver_factory: typ.Callable[[ProjectConfig], ProjectResolver]
    ) -> None:
        self._resolver_factory = resolver_factory
        self._cache: dict[str, str] = {}

    def resolve(self, project: ProjectConfig) -> str:
        """Return the manifest description for ``project``.

        Returns
        -------
        str
            The ``description`` from ``package.json`` or ``pyproject.toml``,
            or ``"Annotated source for <title>."`` when neither provides one.

        Notes
        -----
        Results are cached per project key. Read or parse failures fall back
        to the default description so index generation stays resilient.
        """
        if project.key in self._cache:
            return self._cache[project.key]
        description: str | None = None
        with self._resolver_factory(project) as resolver:
            for name in MANIFEST_FILES:
                try:
                    text = resolver.read_text(name)
                except (OSError, requests.RequestException) as exc:
                    logger.warning("could not read %s for %s: %s", name, project.key, exc)
                    continue
                if text is None:
                    continue
                try:
                    description = _extract_description(text, name)
                except (ValueError, TypeError):  # pragma: no cover - parse failure fallback
                    description = None
                if description:
                    break
        if not description:
            description = f"Annotated source for {project.title}."
        self._cache[project.key] = description
        return description


def _extract_description(text: str, filename: str) -> str | None:
    """Return the manifest-provided description for ``filename``."""
    if filename.endswith(".toml"):
        data = tomllib.loads(text)
        project = data.get("project") or {}
        return project.get("description")
    data = json.loads(text)
    if not isinstance(data, dict):
        return None
    return data.get("description")


__all__ = ["ManifestDescriptionResolver", "ProjectIndexBuilder"]
