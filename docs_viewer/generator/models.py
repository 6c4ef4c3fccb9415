"""Shared dataclasses used by the viewer page generation pipeline."""

from __future__ import annotations

import dataclasses as dc


@dc.dataclass(slots=True)
class SectionModel:
    """Structured data passed to the documentation pane template.

    Attributes
    ----------
    id : str
        Section identifier, also used as the HTML anchor.
    title : str
        Section heading; empty for gap sections without prose.
    depth : int
        Nesting depth (0 for top-level sections).
    order : int
        Position among siblings, starting at 1.
    annotated : bool
        ``False`` for synthesized sections covering unannotated lines.
    body_html : str
        Rendered Markdown body.
    doc_line : int
        First documentation-pane line of the section.
    original_start, original_end : int
        Inclusive line range in the original source file.
    code_start, code_end : int or None
        Inclusive line range in the stripped code, or ``None`` when the
        section documents no code.
    highlighted : bool
        ``True`` when a deep link targets this section.
    """

    id: str
    title: str
    depth: int
    order: int
    annotated: bool
    body_html: str
    doc_line: int
    original_start: int
    original_end: int
    code_start: int | None
    code_end: int | None
    highlighted: bool = False


@dc.dataclass(slots=True)
class CodeLineModel:
    """One highlighted line of the code pane."""

    number: int
    html: str
    original_line: int
    section_id: str | None
    highlighted: bool = False


@dc.dataclass(slots=True)
class FileTreeNode:
    """Directory or file entry in the sidebar file tree.

    ``href`` is set for files only and is relative to the page that renders
    the tree.
    """

    name: str
    path: str
    is_dir: bool
    children: list[FileTreeNode] = dc.field(default_factory=list)
    href: str | None = None
    active: bool = False


__all__ = ["CodeLineModel", "FileTreeNode", "SectionModel"]
