"""Rewrite relative links in section prose to sibling viewer pages."""

from __future__ import annotations

import posixpath
import typing as typ
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown

    from docs_viewer.config import ProjectConfig
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any
    ProjectConfig = typ.Any


def viewer_href(target_path: str, current_path: str) -> str:
    """Return the relative href from ``current_path``'s page to ``target_path``'s.

    Examples
    --------
    >>> viewer_href("lib/firebase/client.ts", "app/page.tsx")
    '../lib/firebase/client.ts.html'
    >>> viewer_href("app/layout.tsx", "app/page.tsx")
    'layout.tsx.html'
    """
    start = posixpath.dirname(current_path) or "."
    return posixpath.relpath(f"{target_path}.html", start=start)


def _build_link_rewriter(
    project: ProjectConfig, current_path: str, known_files: typ.Collection[str]
) -> Extension:
    """Return a RelativeLinkExtension configured for one rendered file."""
    return RelativeLinkExtension(
        current_path=current_path,
        known_files=frozenset(known_files),
        repo=project.repo,
        ref=project.branch,
        subdir=project.subdir,
    )


class RelativeLinkExtension(Extension):
    """Point relative prose links at viewer pages or GitHub blobs.

    A link such as ``../lib/firebase/client.ts`` that names another file of
    the project becomes a link to that file's viewer page. Other relative
    links become ``https://github.com/<repo>/blob/<ref>/...`` URLs when the
    project is hosted on GitHub and are left untouched otherwise.
    """

    def __init__(
        self,
        *,
        current_path: str,
        known_files: frozenset[str],
        repo: str | None = None,
        ref: str = "main",
        subdir: str = "",
    ) -> None:
        self.current_path = current_path
        self.known_files = known_files
        self.repo = repo
        self.ref = ref
        self.subdir = subdir

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the relative-link treeprocessor on the Markdown instance."""
        processor = RelativeLinkTreeprocessor(md, self)
        md.treeprocessors.register(processor, "docs_viewer_relative_links", 15)


class RelativeLinkTreeprocessor(Treeprocessor):
    """Rewrite relative anchors using the settings of a RelativeLinkExtension."""

    def __init__(self, md: Markdown, settings: RelativeLinkExtension) -> None:
        super().__init__(md)
        self.settings = settings

    def run(self, root: Element) -> Element:
        """Rewrite relative anchors in the parsed markdown tree."""
        for element in root.iter():
            if element.tag == "a":
                rewritten = self._rewrite(element.get("href"))
                if rewritten:
                    element.set("href", rewritten)
        return root

    def _rewrite(self, target: str | None) -> str | None:
        """Return the rewritten href for ``target`` or None to keep it."""
        if not target:
            return None
        lower = target.lower()
        if lower.startswith(("mailto:", "tel:", "data:", "javascript:")):
            return None
        if target.startswith(("#", "//")) or "://" in target:
            return None

        parsed = urlsplit(target)
        if parsed.scheme or parsed.netloc or not parsed.path:
            return None
        if parsed.path.startswith("/"):
            joined = parsed.path.lstrip("/")
        else:
            base_dir = posixpath.dirname(self.settings.current_path)
            joined = posixpath.normpath(posixpath.join(base_dir, parsed.path))
        if joined in (".", "") or joined.startswith("../"):
            return None

        if joined in self.settings.known_files:
            url = viewer_href(joined, self.settings.current_path)
        elif self.settings.repo:
            repo_path = posixpath.join(self.settings.subdir, joined)
            url = f"https://github.com/{self.settings.repo}/blob/{self.settings.ref}/{repo_path}"
        else:
            return None
        if parsed.query:
            url = f"{url}?{parsed.query}"
        if parsed.fragment:
            url = f"{url}#{parsed.fragment}"
        return url


__all__ = [
    "RelativeLinkExtension",
    "RelativeLinkTreeprocessor",
    "_build_link_rewriter",
    "viewer_href",
]
