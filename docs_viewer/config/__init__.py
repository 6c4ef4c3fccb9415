"""Load and validate the docs-viewer site configuration.

This subpackage parses the ``viewer.yaml`` file, merges global defaults with
per-project overrides, resolves where each project's sources live (a local
directory or a GitHub repository), and produces typed dataclasses
(:class:`SiteConfig`, :class:`ProjectConfig`, :class:`ThemeConfig`) that the
generators consume.

Examples
--------
>>> from pathlib import Path
>>> from docs_viewer.config import load_site_config
>>> site = load_site_config(Path("config/viewer.yaml"))  # doctest: +SKIP
>>> site.get_project("nextjs-firebase").root  # doctest: +SKIP
PosixPath('example-projects/nextjs-firebase')
"""

from .loader import load_site_config
from .models import ProjectConfig, SiteConfig, SiteConfigError, ThemeConfig

__all__ = [
    "ProjectConfig",
    "SiteConfig",
    "SiteConfigError",
    "ThemeConfig",
    "load_site_config",
]
