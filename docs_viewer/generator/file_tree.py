"""Build the sidebar file tree from a project's file list."""

from __future__ import annotations

import typing as typ

from .link_rewriter import viewer_href
from .models import FileTreeNode


def build_file_tree(
    files: typ.Iterable[str], *, current_path: str | None = None
) -> FileTreeNode:
    """Return the root directory node for ``files``.

    Parameters
    ----------
    files : Iterable[str]
        Relative POSIX file paths, usually sorted. Entries keep the order in
        which their first file appears.
    current_path : str, optional
        Path of the page rendering the tree. When given, file nodes receive an
        ``href`` relative to that page and the matching node is marked active.

    Examples
    --------
    >>> root = build_file_tree(["app/page.tsx", "app/layout.tsx", "README.md"])
    >>> [child.name for child in root.children]
    ['app', 'README.md']
    >>> [child.path for child in root.children[0].children]
    ['app/page.tsx', 'app/layout.tsx']
    """
    root = FileTreeNode(name="", path="", is_dir=True)
    for file_path in files:
        parts = file_path.split("/")
        current = root
        for index, part in enumerate(parts):
            is_last = index == len(parts) - 1
            existing = next(
                (child for child in current.children if child.name == part), None
            )
            if existing is None:
                existing = FileTreeNode(
                    name=part,
                    path=file_path if is_last else "/".join(parts[: index + 1]),
                    is_dir=not is_last,
                )
                if is_last and current_path is not None:
                    existing.href = viewer_href(file_path, current_path)
                    existing.active = file_path == current_path
                current.children.append(existing)
            current = existing
    return root


def expanded_dirs(current_path: str) -> set[str]:
    """Return the directory paths that must be open to reveal ``current_path``.

    >>> sorted(expanded_dirs("lib/firebase/client.ts"))
    ['lib', 'lib/firebase']
    """
    parts = current_path.split("/")[:-1]
    return {"/".join(parts[: index + 1]) for index in range(len(parts))}


__all__ = ["build_file_tree", "expanded_dirs"]
