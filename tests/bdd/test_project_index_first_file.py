"""Behaviour tests for the project index entry link.

This module checks that a card on the generated project index opens the
project's first source file, as recorded in the metadata the page generator
writes, rather than the first page found on disk.

Usage:
    Run these behaviour tests with pytest, for example:

        pytest tests/bdd/test_project_index_first_file.py -v

Prerequisites:
    - The development dependencies (including pytest-bdd and BeautifulSoup)
      installed via ``uv sync --group dev``.
    - Access to the feature file at
      ``features/project_index_first_file.feature`` within this repository.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from docs_viewer.config import SiteConfig
from docs_viewer.generator import ViewerPageGenerator
from docs_viewer.project_index import ProjectIndexBuilder
from docs_viewer.projects import ProjectResolver

if typ.TYPE_CHECKING:
    from docs_viewer.config import ProjectConfig

FEATURE_FILE = (
    Path(__file__).resolve().parents[2]
    / "features"
    / "project_index_first_file.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("the example project has been generated")
def given_generated(
    example_project: ProjectConfig,
    tmp_path: Path,
    scenario_state: dict[str, object],
) -> None:
    """Render the example project and record its site configuration.

    Parameters
    ----------
    example_project : ProjectConfig
        Project fixture backed by a temporary source tree.
    tmp_path : Path
        Temporary directory holding the ``public`` output tree.
    scenario_state : dict[str, object]
        Shared state receiving the ``site`` configuration.

    Returns
    -------
    None
        The step writes pages to disk and mutates ``scenario_state``.
    """
    site = SiteConfig(
        projects={example_project.key: example_project},
        output_dir=tmp_path / "public",
        index_output=tmp_path / "public" / "index.html",
    )
    generator = ViewerPageGenerator(
        example_project,
        resolver=ProjectResolver(example_project),
        index_path=site.index_output,
    )
    # Pages are written out of file order.
    generator.run(files=["lib/db.sql", "app/page.tsx", "app/layout.tsx"])
    scenario_state["site"] = site


@when("the project index is built")
def when_index_built(scenario_state: dict[str, object]) -> None:
    site: SiteConfig = scenario_state["site"]  # type: ignore[assignment]
    scenario_state["index_path"] = ProjectIndexBuilder(site).run()


@then(parsers.parse('the "{key}" card links to "{href}"'))
def then_card_links(key: str, href: str, scenario_state: dict[str, object]) -> None:
    """Verify the project card's explore link."""
    index_path: Path = scenario_state["index_path"]  # type: ignore[assignment]
    soup = BeautifulSoup(index_path.read_text(encoding="utf-8"), "html.parser")
    link = soup.select_one(f'article.project-card[data-project="{key}"] a.project-card__link')
    assert link is not None, f"expected an explore link on the {key!r} card"
    assert link.get("href") == href, f"expected {href!r}, got {link.get('href')!r}"
