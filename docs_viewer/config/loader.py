"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import (
    DEFAULT_SKIP_DIRS,
    _build_theme_config,
    _merge_theme,
    _normalize_extensions,
    _normalize_list,
    _optional_str,
)
from .models import ProjectConfig, SiteConfig, SiteConfigError, ThemeConfig


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing the viewer site and its projects.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``config/viewer.yaml``).

    Returns
    -------
    SiteConfig
        Parsed site configuration with one :class:`ProjectConfig` per entry
        under ``projects``.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If no projects are defined or a project has neither a local ``root``
        nor a ``repo``.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from docs_viewer.config import load_site_config
    >>> config = load_site_config(Path("config/viewer.yaml"))  # doctest: +SKIP
    >>> sorted(config.projects)[:1]  # doctest: +SKIP
    ['nextjs-firebase']
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):  # pragma: no cover - config error guard
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    defaults = raw.get("defaults", {}) or {}

    default_theme = _build_theme_config(defaults.get("theme", {}) or {})
    default_output_dir = Path(defaults.get("output_dir", "public"))
    index_output = Path(defaults.get("index_output", default_output_dir / "index.html"))
    skip_dirs = _normalize_list(defaults.get("skip_dirs"))

    projects_raw = raw.get("projects") or {}
    if not projects_raw:
        msg = "No projects defined in viewer configuration."
        raise SiteConfigError(msg)

    project_defaults = _ProjectDefaults(
        theme=default_theme,
        output_dir=default_output_dir,
        pygments_style=defaults.get("pygments_style", "monokai"),
        branch=defaults.get("branch", "main"),
        repo=_optional_str(defaults.get("repo")),
        source_root=_optional_path(defaults.get("source_root")),
        extensions=_normalize_extensions(defaults.get("extensions")),
        skip_dirs=tuple(skip_dirs) if skip_dirs else DEFAULT_SKIP_DIRS,
    )

    projects: dict[str, ProjectConfig] = {}
    for key, payload in projects_raw.items():
        match payload:
            case dict():
                projects[str(key)] = _build_project_config(
                    key=str(key), payload=payload, defaults=project_defaults
                )
            case None:
                projects[str(key)] = _build_project_config(
                    key=str(key), payload={}, defaults=project_defaults
                )
            case _:
                continue

    return SiteConfig(
        projects=projects,
        default_project=_optional_str(defaults.get("default_project")),
        output_dir=default_output_dir,
        index_output=index_output,
        theme=default_theme,
    )


@dc.dataclass(slots=True)
class _ProjectDefaults:
    """Internal container for project default configuration values."""

    theme: ThemeConfig
    output_dir: Path
    pygments_style: str
    branch: str
    repo: str | None
    source_root: Path | None
    extensions: tuple[str, ...]
    skip_dirs: tuple[str, ...]


def _optional_path(value: object | None) -> Path | None:
    text = _optional_str(value)
    return Path(text) if text else None


def _build_project_config(
    *,
    key: str,
    payload: typ.Mapping[str, typ.Any],
    defaults: _ProjectDefaults,
) -> ProjectConfig:
    """Build a ProjectConfig for a single project entry using defaults."""
    root = _optional_path(payload.get("root"))
    repo = _optional_str(payload.get("repo", defaults.repo))
    if root is None and "repo" not in payload and defaults.source_root is not None:
        root = defaults.source_root / key
    if root is None and repo is None:
        msg = f"Project '{key}' is missing 'root' or 'repo'."
        raise SiteConfigError(msg)

    subdir = _optional_str(payload.get("path"))
    if subdir is None:
        subdir = key if repo and "repo" not in payload else ""

    title = _optional_str(payload.get("title")) or key.replace("-", " ").title()
    skip_dirs = _normalize_list(payload.get("skip_dirs"))
    extensions = payload.get("extensions")

    return ProjectConfig(
        key=key,
        title=title,
        description_override=_optional_str(payload.get("description")),
        features=_normalize_features(payload.get("features")),
        root=root,
        repo=None if root is not None else repo,
        branch=str(payload.get("branch", defaults.branch)),
        subdir=subdir.strip("/"),
        output_dir=Path(payload.get("output_dir", defaults.output_dir)),
        pygments_style=payload.get("pygments_style", defaults.pygments_style),
        extensions=(
            _normalize_extensions(extensions) if extensions else defaults.extensions
        ),
        skip_dirs=tuple(skip_dirs) if skip_dirs else defaults.skip_dirs,
        theme=_merge_theme(defaults.theme, payload.get("theme")),
    )


def _normalize_features(value: object) -> list[str]:
    """Return feature bullets, accepting a single string or a list."""
    if isinstance(value, str):
        text = value.strip()
        return [text] if text else []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


__all__ = ["load_site_config"]
