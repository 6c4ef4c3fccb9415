"""Shared fixtures: a small annotated example project on disk."""

from __future__ import annotations

import textwrap
import typing as typ
from pathlib import Path

import pytest

from docs_viewer.config import ProjectConfig, ThemeConfig
from docs_viewer.config.helpers import DEFAULT_EXTENSIONS, DEFAULT_SKIP_DIRS

EXAMPLE_FILES: dict[str, str] = {
    "app/page.tsx": textwrap.dedent(
        """\
        /**
         * REF: page-overview
         *
         * # Home Page
         *
         * See [the layout](./layout.tsx) and [docs](https://example.com).
         */
        export default function Page() {
          return <main>Home</main>
        }
        // CLOSE: page-overview
        """
    ),
    "app/layout.tsx": textwrap.dedent(
        """\
        // REF: root-layout
        // Root layout
        export default function Layout({ children }) {
          return children
        }
        // CLOSE: root-layout
        """
    ),
    "lib/db.sql": textwrap.dedent(
        """\
        -- REF: users
        -- Users table
        CREATE TABLE users (id int);
        -- CLOSE: users
        """
    ),
    "lib/empty.ts": "",
    "node_modules/pkg/index.js": "module.exports = {}\n",
    "assets/logo.png": "not really a png\n",
}


def write_example_project(root: Path) -> Path:
    """Write :data:`EXAMPLE_FILES` below ``root`` and return it."""
    for relative, content in EXAMPLE_FILES.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


def make_project(root: Path | None, output_dir: Path, **overrides: object) -> ProjectConfig:
    """Return a ProjectConfig for the example project."""
    values: dict[str, object] = {
        "key": "example",
        "title": "Example Project",
        "description_override": None,
        "features": ["Annotated pages"],
        "root": root,
        "repo": None,
        "branch": "main",
        "subdir": "",
        "output_dir": output_dir,
        "pygments_style": "monokai",
        "extensions": DEFAULT_EXTENSIONS,
        "skip_dirs": DEFAULT_SKIP_DIRS,
        "theme": ThemeConfig(site_name="Fixture Site"),
    }
    values.update(overrides)
    return ProjectConfig(**values)  # type: ignore[arg-type]


@pytest.fixture
def example_root(tmp_path: Path) -> Path:
    return write_example_project(tmp_path / "sources" / "example")


@pytest.fixture
def example_project(example_root: Path, tmp_path: Path) -> ProjectConfig:
    return make_project(example_root, tmp_path / "public")


@pytest.fixture
def project_factory(tmp_path: Path) -> typ.Callable[..., ProjectConfig]:
    """Return a builder for project configs writing into ``tmp_path/public``."""

    def _factory(root: Path | None, **overrides: object) -> ProjectConfig:
        return make_project(root, tmp_path / "public", **overrides)

    return _factory
