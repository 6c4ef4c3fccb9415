"""Tests for the project index landing page and manifest descriptions."""

from __future__ import annotations

import json
import logging
import typing as typ
from pathlib import Path

import pytest
import requests
from bs4 import BeautifulSoup

from docs_viewer.config import SiteConfig, ThemeConfig
from docs_viewer.generator import ViewerPageGenerator
from docs_viewer.project_index import (
    ManifestDescriptionResolver,
    ProjectIndexBuilder,
    _discover_entry_href,
    _extract_description,
)
from docs_viewer.projects import ProjectResolver

if typ.TYPE_CHECKING:
    from docs_viewer.config import ProjectConfig


class _ManifestResolver:
    """Resolver double serving fixed manifest texts."""

    def __init__(self, files: dict[str, str | Exception]) -> None:
        self.files = files
        self.closed = False

    def read_text(self, path: str) -> str | None:
        value = self.files.get(path)
        if isinstance(value, Exception):
            raise value
        return value

    def __enter__(self) -> _ManifestResolver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True


@pytest.fixture
def site(
    example_project: ProjectConfig,
    project_factory: typ.Callable[..., ProjectConfig],
    tmp_path: Path,
) -> SiteConfig:
    pending_root = tmp_path / "sources" / "pending"
    pending_root.mkdir(parents=True)
    (pending_root / "package.json").write_text(
        json.dumps({"name": "pending", "description": "Described by *package.json*"}),
        encoding="utf-8",
    )
    pending = project_factory(
        pending_root, key="pending", title="Pending Project", features=[]
    )
    return SiteConfig(
        projects={"example": example_project, "pending": pending},
        output_dir=tmp_path / "public",
        index_output=tmp_path / "public" / "index.html",
        theme=ThemeConfig(site_name="Week 12 Documentation"),
    )


@pytest.fixture
def index_soup(site: SiteConfig, example_project: ProjectConfig) -> BeautifulSoup:
    ViewerPageGenerator(
        example_project,
        resolver=ProjectResolver(example_project),
        index_path=site.index_output,
    ).run()
    output = ProjectIndexBuilder(site).run()
    assert output == site.index_output
    return BeautifulSoup(output.read_text(encoding="utf-8"), "html.parser")


def test_index_lists_projects_in_config_order(index_soup: BeautifulSoup) -> None:
    cards = index_soup.select("article.project-card")
    assert [card["data-project"] for card in cards] == ["example", "pending"]
    title = index_soup.select_one(".index-hero__title")
    assert title is not None
    assert title.get_text(strip=True) == "Week 12 Documentation"


def test_generated_project_links_to_first_file(index_soup: BeautifulSoup) -> None:
    card = index_soup.select_one('article.project-card[data-project="example"]')
    assert card is not None
    link = card.select_one("a.project-card__link")
    assert link is not None
    assert link["href"] == "example/app/layout.tsx.html"
    features = [li.get_text(strip=True) for li in card.select(".project-card__features li")]
    assert features == ["Annotated pages"]
    description = card.select_one(".project-card__description")
    assert description is not None
    assert description.get_text(strip=True) == "Annotated source for Example Project."


def test_pending_project_uses_manifest_description(index_soup: BeautifulSoup) -> None:
    card = index_soup.select_one('article.project-card[data-project="pending"]')
    assert card is not None
    assert card.select_one("a.project-card__link") is None
    assert card.select_one("p.project-card__pending") is not None
    emphasis = card.select_one(".project-card__description em")
    assert emphasis is not None
    assert emphasis.get_text() == "package.json"
    assert card.select_one('[data-test="project-card-repo"]') is None


def test_entry_href_falls_back_to_first_page(
    example_project: ProjectConfig, tmp_path: Path
) -> None:
    project_dir = example_project.output_dir / example_project.key
    (project_dir / "lib").mkdir(parents=True)
    (project_dir / "lib" / "db.sql.html").write_text("<html></html>", encoding="utf-8")
    (project_dir / "app").mkdir()
    (project_dir / "app" / "page.tsx.html").write_text("<html></html>", encoding="utf-8")
    href = _discover_entry_href(example_project, tmp_path / "public")
    assert href == "example/app/page.tsx.html"


def test_entry_href_missing_when_not_generated(
    example_project: ProjectConfig, tmp_path: Path
) -> None:
    assert _discover_entry_href(example_project, tmp_path / "public") is None


def test_manifest_resolver_prefers_package_json(example_project: ProjectConfig) -> None:
    resolver = _ManifestResolver(
        {
            "package.json": '{"description": "From npm"}',
            "pyproject.toml": '[project]\ndescription = "From pyproject"\n',
        }
    )
    manifests = ManifestDescriptionResolver(lambda project: resolver)  # type: ignore[arg-type,return-value]
    assert manifests.resolve(example_project) == "From npm"
    assert resolver.closed


def test_manifest_resolver_survives_fetch_errors(
    example_project: ProjectConfig, caplog: pytest.LogCaptureFixture
) -> None:
    resolver = _ManifestResolver(
        {
            "package.json": requests.ConnectionError("offline"),
            "pyproject.toml": '[project]\ndescription = "From pyproject"\n',
        }
    )
    calls: list[str] = []

    def _factory(project: ProjectConfig) -> _ManifestResolver:
        calls.append(project.key)
        return resolver

    manifests = ManifestDescriptionResolver(_factory)  # type: ignore[arg-type]
    with caplog.at_level(logging.WARNING, logger="docs_viewer.project_index"):
        assert manifests.resolve(example_project) == "From pyproject"
        assert manifests.resolve(example_project) == "From pyproject"
    assert "could not read package.json" in caplog.text
    assert calls == ["example"], "Descriptions should be cached per project"


@pytest.mark.parametrize(
    ("text", "filename", "expected"),
    [
        ('{"description": "npm"}', "package.json", "npm"),
        ("[]", "package.json", None),
        ('[project]\nname = "x"\n', "pyproject.toml", None),
    ],
)
def test_extract_description(text: str, filename: str, expected: str | None) -> None:
    assert _extract_description(text, filename) == expected
