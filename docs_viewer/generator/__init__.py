"""Utilities for rendering side-by-side documentation viewer pages."""

from .file_tree import build_file_tree
from .link_rewriter import RelativeLinkExtension
from .models import CodeLineModel, FileTreeNode, SectionModel
from .page_generator import ViewerPageGenerator
from .renderer import HtmlContentRenderer

__all__ = [
    "CodeLineModel",
    "FileTreeNode",
    "HtmlContentRenderer",
    "RelativeLinkExtension",
    "SectionModel",
    "ViewerPageGenerator",
    "build_file_tree",
]
