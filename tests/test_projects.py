"""Unit tests for project file discovery and document loading.

Local projects are read from a temporary directory written by the
``example_root`` fixture. Remote projects use mocked github3.py and
``requests`` clients so no network access is needed.
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path
from types import SimpleNamespace

import pytest
from github3 import exceptions as gh_exc

from docs_viewer.annotations import NoContent, ParsedDocument
from docs_viewer.projects import ProjectResolver, load_document

if typ.TYPE_CHECKING:
    from docs_viewer.config import ProjectConfig

RAW_URL = (
    "https://raw.githubusercontent.com/org/examples/refs/heads/main/"
    "example-projects/p/app/page.tsx"
)


@pytest.fixture
def remote_project(project_factory: typ.Callable[..., ProjectConfig]) -> ProjectConfig:
    return project_factory(
        None, key="p", repo="org/examples", subdir="example-projects/p"
    )


@pytest.fixture
def github_client(mocker: typ.Any) -> typ.Any:
    entries = [
        SimpleNamespace(type="tree", path="example-projects/p/app"),
        SimpleNamespace(type="blob", path="example-projects/p/app/page.tsx"),
        SimpleNamespace(type="blob", path="example-projects/p/node_modules/x/a.js"),
        SimpleNamespace(type="blob", path="example-projects/p/LICENSE"),
        SimpleNamespace(type="blob", path="example-projects/other/b.ts"),
    ]
    repository = mocker.Mock()
    repository.tree.return_value = SimpleNamespace(tree=entries)
    client = mocker.Mock()
    client.repository.return_value = repository
    return client


def test_local_listing_filters_and_sorts(example_project: ProjectConfig) -> None:
    resolver = ProjectResolver(example_project)
    assert resolver.list_files() == [
        "app/layout.tsx",
        "app/page.tsx",
        "lib/db.sql",
        "lib/empty.ts",
    ]
    assert not resolver.is_remote


def test_missing_local_root_raises(
    project_factory: typ.Callable[..., ProjectConfig], tmp_path: Path
) -> None:
    resolver = ProjectResolver(project_factory(tmp_path / "nowhere"))
    with pytest.raises(FileNotFoundError, match="not found"):
        resolver.list_files()


def test_read_text_rejects_escaping_paths(
    example_project: ProjectConfig, caplog: pytest.LogCaptureFixture
) -> None:
    resolver = ProjectResolver(example_project)
    with caplog.at_level(logging.WARNING, logger="docs_viewer.projects"):
        assert resolver.read_text("../outside.ts") is None
        assert resolver.read_text("/etc/passwd") is None
    assert "rejected path outside project" in caplog.text
    assert resolver.read_text("missing.ts") is None
    assert "Home Page" in (resolver.read_text("app/page.tsx") or "")


def test_load_document_outcomes(example_project: ProjectConfig) -> None:
    resolver = ProjectResolver(example_project)
    assert load_document(resolver, "missing.ts") == NoContent("not-found", "missing.ts")
    assert load_document(resolver, "lib/empty.ts") == NoContent("empty", "lib/empty.ts")
    document = load_document(resolver, "app/page.tsx")
    assert isinstance(document, ParsedDocument)
    assert document.syntax == "tsx"
    assert [s.id for s in document.sections] == ["page-overview"]


def test_remote_listing_uses_git_tree(
    remote_project: ProjectConfig, github_client: typ.Any, mocker: typ.Any
) -> None:
    resolver = ProjectResolver(remote_project, github=github_client, session=mocker.Mock())
    assert resolver.is_remote
    assert resolver.list_files() == ["app/page.tsx"]
    github_client.repository.assert_called_once_with("org", "examples")
    github_client.repository.return_value.tree.assert_called_once_with(
        "main", recursive=True
    )


def test_remote_read_uses_raw_url_and_caches(
    remote_project: ProjectConfig, github_client: typ.Any, mocker: typ.Any
) -> None:
    session = mocker.Mock()
    session.get.return_value = mocker.Mock(status_code=200, text="// REF: a\nx()\n")
    with ProjectResolver(remote_project, github=github_client, session=session) as resolver:
        assert resolver.read_text("app/page.tsx") == "// REF: a\nx()\n"
        assert resolver.read_text("app/page.tsx") == "// REF: a\nx()\n"
    session.get.assert_called_once_with(RAW_URL, timeout=30)
    session.close.assert_not_called()


def test_remote_missing_file_is_none(
    remote_project: ProjectConfig, github_client: typ.Any, mocker: typ.Any
) -> None:
    session = mocker.Mock()
    session.get.return_value = mocker.Mock(status_code=404)
    resolver = ProjectResolver(remote_project, github=github_client, session=session)
    assert resolver.read_text("app/gone.tsx") is None
    session.get.return_value.raise_for_status.assert_not_called()


def test_remote_missing_repository_raises(
    remote_project: ProjectConfig, github_client: typ.Any, mocker: typ.Any
) -> None:
    github_client.repository.return_value = None
    resolver = ProjectResolver(remote_project, github=github_client, session=mocker.Mock())
    with pytest.raises(FileNotFoundError, match="Repository 'org/examples' not found"):
        resolver.list_files()


def test_remote_missing_branch_raises(
    remote_project: ProjectConfig, github_client: typ.Any, mocker: typ.Any
) -> None:
    response = mocker.Mock(status_code=404)
    response.json.return_value = {"message": "Not Found"}
    github_client.repository.return_value.tree.side_effect = gh_exc.NotFoundError(
        response
    )
    resolver = ProjectResolver(remote_project, github=github_client, session=mocker.Mock())
    with pytest.raises(FileNotFoundError, match="Branch 'main' not found"):
        resolver.list_files()
