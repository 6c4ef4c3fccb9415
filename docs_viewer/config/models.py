"""Typed dataclasses describing docs-viewer site configuration."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class ThemeConfig:
    """Labels and branding applied to generated viewer pages."""

    site_name: str = "Docs Viewer"
    tagline: str = "Interactive side-by-side code documentation"
    doc_label: str = "Documentation"
    code_label: str = "Code"


@dc.dataclass(slots=True)
class ProjectConfig:
    """A fully resolved project definition sourced from YAML config.

    Attributes
    ----------
    key : str
        Project identifier used in URLs and output paths.
    title : str
        Display name shown in headers and on the index page.
    description_override : str or None
        Description from the config; when ``None`` the project manifest is
        consulted.
    features : list[str]
        Feature bullets shown on the index card.
    root : Path or None
        Local directory holding the project sources.
    repo : str or None
        ``owner/name`` GitHub repository used when ``root`` is unset.
    branch : str
        Branch (or ``refs/...`` ref) read from ``repo``.
    subdir : str
        Directory inside ``repo`` holding the project.
    output_dir : Path
        Directory receiving the rendered pages for this project.
    pygments_style : str
        Pygments style used for the code pane and code samples.
    extensions : tuple[str, ...]
        File extensions listed in the file tree.
    skip_dirs : tuple[str, ...]
        Directory names never descended into.
    theme : ThemeConfig
        Labels for the rendered pages.
    """

    key: str
    title: str
    description_override: str | None
    features: list[str]
    root: Path | None
    repo: str | None
    branch: str
    subdir: str
    output_dir: Path
    pygments_style: str
    extensions: tuple[str, ...]
    skip_dirs: tuple[str, ...]
    theme: ThemeConfig = dc.field(default_factory=ThemeConfig)


@dc.dataclass(slots=True)
class SiteConfig:
    """Collection of project configs alongside shared defaults."""

    projects: dict[str, ProjectConfig]
    default_project: str | None = None
    output_dir: Path = Path("public")
    index_output: Path = Path("public/index.html")
    theme: ThemeConfig = dc.field(default_factory=ThemeConfig)

    def get_project(self, project_id: str | None) -> ProjectConfig:
        """Return the requested project or fall back to the configured default."""
        if project_id is None:
            return self._get_default_project()
        try:
            return self.projects[project_id]
        except KeyError as exc:
            available = ", ".join(sorted(self.projects))
            msg = f"Unknown project '{project_id}'. Known projects: {available}"
            raise KeyError(msg) from exc

    def _get_default_project(self) -> ProjectConfig:
        """Return the configured default project or the first defined one."""
        if self.default_project and self.default_project in self.projects:
            return self.projects[self.default_project]
        if not self.projects:  # pragma: no cover - configuration error
            msg = "No projects configured."
            raise SiteConfigError(msg)
        first_key = next(iter(self.projects))
        return self.projects[first_key]


__all__ = ["ProjectConfig", "SiteConfig", "SiteConfigError", "ThemeConfig"]
