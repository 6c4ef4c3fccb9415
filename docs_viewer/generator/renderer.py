"""Utilities for rendering section Markdown and the highlighted code pane."""

from __future__ import annotations

import re
import typing as typ
from html import escape

from markdown import Markdown
from pygments import highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from docs_viewer._constants import PYGMENTS_LEXERS

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

CODE_BLOCK_PATTERN = re.compile(r"```([A-Za-z0-9_+#.-]+)?[^\n]*\n(.*?)```", re.DOTALL)
FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
CODEHILITE_OPEN_TAG = re.compile(r'<div class="codehilite">')


def lexer_name_for(syntax: str | None) -> str:
    """Return the Pygments lexer alias for a syntax family.

    Examples
    --------
    >>> lexer_name_for("rules")
    'javascript'
    >>> lexer_name_for(None)
    'text'
    """
    if syntax is None:
        return "text"
    return PYGMENTS_LEXERS.get(syntax, syntax)


class HtmlContentRenderer:
    """Render section prose and source code with consistent styling."""

    def __init__(
        self, pygments_style: str = "monokai", link_extension: Extension | None = None
    ) -> None:
        """Initialize a renderer with optional pygments style and link extension.

        Parameters
        ----------
        pygments_style : str, optional
            Name of the Pygments style used for syntax highlighting. Defaults to
            ``"monokai"``.
        link_extension : Extension, optional
            Markdown extension used when rewriting links; pass ``None`` to skip
            link rewriting.
        """
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")
        self._line_formatter = HtmlFormatter(style=pygments_style, nowrap=True)
        self._link_extension = link_extension

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks and the code pane."""
        return self._formatter.get_style_defs([".codehilite", ".code-pane"])

    def with_links(self, link_extension: Extension | None) -> HtmlContentRenderer:
        """Return a renderer sharing this style but using ``link_extension``."""
        return HtmlContentRenderer(self.pygments_style, link_extension=link_extension)

    def markdown(self, text: str) -> str:
        """Render a section body into HTML using the configured extensions."""
        normalized = FENCED_INDENT_PATTERN.sub(r"\1", text)
        if not normalized.strip():
            return ""
        extensions: list[Extension | str] = [
            "fenced_code",
            "codehilite",
            "tables",
            "sane_lists",
        ]
        if self._link_extension:
            extensions.append(self._link_extension)
        md = Markdown(
            extensions=extensions,
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                }
            },
        )
        html = md.convert(normalized)
        return self._annotate_codehilite(html, normalized)

    def code_lines(self, code: str, syntax: str | None = None) -> list[str]:
        """Highlight ``code`` and return one HTML fragment per source line.

        Parameters
        ----------
        code : str
            Stripped source shown in the code pane.
        syntax : str, optional
            Syntax family of the file; unknown families fall back to plain
            text.

        Returns
        -------
        list[str]
            Exactly one fragment per line of ``code``. Pygments closes and
            reopens token spans at line breaks, so every fragment is balanced
            markup.
        """
        expected = len(code.splitlines())
        if expected == 0:
            return []
        try:
            lexer = get_lexer_by_name(lexer_name_for(syntax), stripnl=False)
        except ClassNotFound:
            lexer = get_lexer_by_name("text", stripnl=False)
        html = highlight(code, lexer, self._line_formatter)
        lines = html.split("\n")[:expected]
        lines.extend("" for _ in range(expected - len(lines)))
        return lines

    def _annotate_codehilite(self, html: str, source_markdown: str) -> str:
        """Attach language metadata to each highlighted block in converted markdown."""
        languages = [
            match.group(1) or "text"
            for match in CODE_BLOCK_PATTERN.finditer(source_markdown)
        ]
        if not languages:
            return html
        lang_iter = iter(languages)

        def _repl(match: re.Match[str]) -> str:
            lang = next(lang_iter, "text")
            return (
                f'<div class="codehilite" data-language="{escape(lang, quote=True)}">'
            )

        return CODEHILITE_OPEN_TAG.sub(_repl, html, len(languages))


__all__ = ["CODE_BLOCK_PATTERN", "HtmlContentRenderer", "lexer_name_for"]
