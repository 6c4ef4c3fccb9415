"""Discover project files and load them as parsed documents.

A :class:`ProjectResolver` answers two questions for one configured project:
which source files exist (sorted, relative POSIX paths filtered by extension),
and what a given file contains. Projects live either in a local directory or
in a GitHub repository; remote listings come from the git tree API through
github3.py and file contents from raw.githubusercontent.com through a retrying
``requests`` session.

Example
-------
>>> from pathlib import Path
>>> from docs_viewer.config import load_site_config
>>> from docs_viewer.projects import ProjectResolver, load_document
>>> site = load_site_config(Path("config/viewer.yaml"))  # doctest: +SKIP
>>> resolver = ProjectResolver(site.get_project("nextjs-firebase"))  # doctest: +SKIP
>>> resolver.list_files()[:2]  # doctest: +SKIP
['app/layout.tsx', 'app/page.tsx']
>>> load_document(resolver, "app/page.tsx").sections[0].id  # doctest: +SKIP
'page-overview'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import os
import typing as typ
from pathlib import Path, PurePosixPath

import requests
from github3 import GitHub
from github3 import exceptions as gh_exc
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ._constants import EXTENSION_SYNTAX
from .annotations import NoContent, ParsedDocument, parse_document
from .config.helpers import _build_raw_url

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .config import ProjectConfig

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404


def syntax_for_path(path: str | os.PathLike[str]) -> str | None:
    """Return the syntax family for ``path`` based on its extension.

    Examples
    --------
    >>> syntax_for_path("app/page.tsx")
    'tsx'
    >>> syntax_for_path("firestore.rules")
    'rules'
    >>> syntax_for_path("LICENSE") is None
    True
    """
    return EXTENSION_SYNTAX.get(PurePosixPath(os.fspath(path)).suffix.lower())


def _safe_relative(path: str) -> PurePosixPath | None:
    """Return ``path`` as a relative POSIX path, or None if it escapes the root."""
    candidate = PurePosixPath(path.replace("\\", "/"))
    if candidate.is_absolute() or ".." in candidate.parts or not candidate.parts:
        return None
    return candidate


class ProjectResolver:
    """List and read the source files of one project."""

    def __init__(
        self,
        project: ProjectConfig,
        *,
        session: requests.Session | None = None,
        github: GitHub | None = None,
    ) -> None:
        """Initialize the resolver.

        Parameters
        ----------
        project : ProjectConfig
            Project whose ``root`` (local) or ``repo``/``branch``/``subdir``
            (GitHub) locate the sources.
        session : requests.Session, optional
            Session used for raw file downloads. A retrying session is built
            lazily when omitted.
        github : GitHub, optional
            Preconfigured github3.py client. Defaults to one authenticated with
            ``GITHUB_TOKEN`` or ``GH_TOKEN`` when set.
        """
        self.project = project
        self._session = session
        self._owns_session = session is None
        self._github_client = github
        self._files: list[str] | None = None
        self._text_cache: dict[str, str | None] = {}

    @property
    def is_remote(self) -> bool:
        return self.project.root is None

    def list_files(self) -> list[str]:
        """Return sorted relative paths of every recognized source file.

        Raises
        ------
        FileNotFoundError
            If a local project root, remote repository or branch does not
            exist.
        github3.exceptions.GitHubException
            If the GitHub API rejects the request.
        """
        if self._files is None:
            files = self._list_remote() if self.is_remote else self._list_local()
            self._files = sorted(files)
            logger.debug(
                "project %s: %d source files", self.project.key, len(self._files)
            )
        return list(self._files)

    def read_text(self, path: str) -> str | None:
        """Return the UTF-8 text of ``path`` or ``None`` when it does not exist.

        Paths that are absolute or climb out of the project with ``..`` are
        treated as missing.
        """
        relative = _safe_relative(path)
        if relative is None:
            logger.warning("rejected path outside project %s: %s", self.project.key, path)
            return None
        key = relative.as_posix()
        if key not in self._text_cache:
            if self.is_remote:
                self._text_cache[key] = self._read_remote(key)
            else:
                self._text_cache[key] = self._read_local(key)
        return self._text_cache[key]

    def close(self) -> None:
        """Close the HTTP session if the resolver created it."""
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None

    def __enter__(self) -> ProjectResolver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _accepts(self, relative: PurePosixPath) -> bool:
        if any(part in self.project.skip_dirs for part in relative.parts[:-1]):
            return False
        return relative.suffix.lower() in self.project.extensions

    def _list_local(self) -> list[str]:
        root = typ.cast("Path", self.project.root)
        if not root.is_dir():
            msg = f"Project root '{root}' not found."
            raise FileNotFoundError(msg)
        files: list[str] = []
        for current, dirnames, filenames in os.walk(root):
            dirnames[:] = [name for name in dirnames if name not in self.project.skip_dirs]
            base = Path(current).relative_to(root)
            for name in filenames:
                relative = PurePosixPath((base / name).as_posix())
                if self._accepts(relative):
                    files.append(relative.as_posix())
        return files

    def _read_local(self, key: str) -> str | None:
        root = typ.cast("Path", self.project.root).resolve()
        target = (root / key).resolve()
        if not target.is_relative_to(root) or not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    def _github(self) -> GitHub:
        """Return a cached github3.py client, lazily configured from env tokens."""
        if self._github_client is None:
            token = os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")
            self._github_client = GitHub(token=token)
        return self._github_client

    def _repo_parts(self) -> tuple[str, str]:
        repo_slug = self.project.repo or ""
        owner, _, name = repo_slug.partition("/")
        if not owner or not name:
            msg = f"Project '{self.project.key}' has an invalid repo '{repo_slug}'."
            raise ValueError(msg)
        return owner, name

    def _list_remote(self) -> list[str]:
        owner, name = self._repo_parts()
        repository = self._github().repository(owner, name)
        if repository is None:  # github3 returns None for a missing repository
            msg = f"Repository '{owner}/{name}' not found."
            raise FileNotFoundError(msg)
        try:
            tree = repository.tree(self.project.branch, recursive=True)
        except gh_exc.NotFoundError as exc:
            msg = f"Branch '{self.project.branch}' not found in '{owner}/{name}'."
            raise FileNotFoundError(msg) from exc
        prefix = PurePosixPath(self.project.subdir) if self.project.subdir else None
        files: list[str] = []
        for entry in tree.tree:
            if entry.type != "blob":
                continue
            path = PurePosixPath(entry.path)
            if prefix is not None:
                if not path.is_relative_to(prefix):
                    continue
                path = path.relative_to(prefix)
            if self._accepts(path):
                files.append(path.as_posix())
        return files

    def _http(self) -> requests.Session:
        if self._session is None:
            session = requests.Session()
            retry = Retry(
                total=5,
                read=5,
                connect=3,
                backoff_factor=0.5,
                status_forcelist=(500, 502, 503, 504),
                allowed_methods=("GET", "HEAD"),
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            self._session = session
        return self._session

    def _read_remote(self, key: str) -> str | None:
        owner, name = self._repo_parts()
        repo_path = f"{self.project.subdir}/{key}" if self.project.subdir else key
        url = _build_raw_url(f"{owner}/{name}", self.project.branch, repo_path)
        resp = self._http().get(url, timeout=30)
        if resp.status_code == HTTP_NOT_FOUND:
            return None
        resp.raise_for_status()
        resp.encoding = "utf-8"
        return resp.text


def load_document(resolver: ProjectResolver, path: str) -> ParsedDocument | NoContent:
    """Read ``path`` through ``resolver`` and parse it.

    Returns
    -------
    ParsedDocument or NoContent
        ``NoContent(reason="not-found")`` when the file is missing,
        ``NoContent(reason="empty")`` when it holds only whitespace.
    """
    text = resolver.read_text(path)
    if text is None:
        return NoContent(reason="not-found", path=path)
    result = parse_document(text, syntax_for_path(path))
    if isinstance(result, NoContent):
        return dc.replace(result, path=path)
    for diagnostic in result.diagnostics:
        if diagnostic.code in {"malformed-marker", "duplicate-id"}:
            logger.warning(
                "%s:%d: %s", path, diagnostic.line, diagnostic.message
            )
    return result


__all__ = ["ProjectResolver", "load_document", "syntax_for_path"]
