r"""Recognize ``REF:`` / ``CLOSE:`` markers embedded in source comments.

The tokenizer scans a file line by line, tracks open block comments, and turns
every comment block that carries at least one marker into :class:`Marker`
tokens. Comments without markers are ordinary code and produce nothing.

Example
-------
>>> from docs_viewer.annotations.tokenizer import tokenize
>>> [(m.kind, m.id) for m in tokenize("// REF: a\nfoo()\n// CLOSE: a\n")]
[('open', 'a'), ('close', 'a')]
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from .models import CommentSpan, Marker, MarkerKind

logger = logging.getLogger(__name__)

MARKER_PATTERN = re.compile(
    r"^\s*(?P<tag>REF|CLOSE):[ \t]*"
    r"(?P<id>[\w.-]+(?:[ \t]+\w[\w.-]*)*)?"
    r"(?P<rest>.*)$"
)
GUTTER_PATTERN = re.compile(r"^\s*\*(?=\s|$)\s?")


@dc.dataclass(frozen=True, slots=True)
class CommentStyle:
    """Delimiters for one comment family.

    Line styles set ``line_prefix``; block styles set ``block_open`` and a
    compiled pattern matching the closer.
    """

    name: str
    line_prefix: str | None = None
    block_open: str | None = None
    block_close: re.Pattern[str] | None = None

    @property
    def opener(self) -> str:
        return typ.cast("str", self.block_open or self.line_prefix)

    @property
    def is_block(self) -> bool:
        return self.block_open is not None

    def find_close(self, text: str, start: int = 0) -> re.Match[str] | None:
        """Return the first closer match in ``text`` at or after ``start``."""
        return typ.cast("re.Pattern[str]", self.block_close).search(text, start)


COMMENT_STYLES: dict[str, CommentStyle] = {
    "jsx": CommentStyle("jsx", block_open="{/*", block_close=re.compile(r"\*/\s*\}")),
    "block": CommentStyle("block", block_open="/*", block_close=re.compile(r"\*/")),
    "html": CommentStyle("html", block_open="<!--", block_close=re.compile(r"-->")),
    "slash": CommentStyle("slash", line_prefix="//"),
    "dash": CommentStyle("dash", line_prefix="--"),
    "hash": CommentStyle("hash", line_prefix="#"),
}
DEFAULT_STYLE_ORDER = ("jsx", "block", "html", "slash", "dash", "hash")
SYNTAX_STYLES: dict[str, tuple[str, ...]] = {
    "typescript": ("jsx", "block", "slash"),
    "tsx": ("jsx", "block", "slash"),
    "javascript": ("jsx", "block", "slash"),
    "jsx": ("jsx", "block", "slash"),
    "json": ("block", "slash"),
    "css": ("block",),
    "sql": ("dash", "block"),
    "rules": ("slash", "block"),
    "python": ("hash",),
    "shell": ("hash",),
    "yaml": ("hash",),
    "toml": ("hash",),
    "markdown": ("html",),
    "html": ("html",),
}


def styles_for(syntax: str | None) -> tuple[CommentStyle, ...]:
    """Return every comment style, the syntax family's preferred ones first."""
    preferred = SYNTAX_STYLES.get((syntax or "").lower(), ())
    names = [*preferred, *(name for name in DEFAULT_STYLE_ORDER if name not in preferred)]
    return tuple(COMMENT_STYLES[name] for name in names)


@dc.dataclass(slots=True)
class _OpenComment:
    """Comment being accumulated while the scan is inside it."""

    style: CommentStyle
    line_start: int
    lead: str
    lines: list[tuple[int, str]]


def tokenize(text: str, syntax: str | None = None) -> list[Marker]:
    """Return the markers found in ``text`` in document order.

    Parameters
    ----------
    text : str
        Raw file contents.
    syntax : str, optional
        Syntax family (``"typescript"``, ``"sql"``...). Only the family's own
        comment styles are tried at first; when that finds nothing, or the
        family is unknown, every known style is tried.

    Returns
    -------
    list[Marker]
        Open and close markers. Markers that cannot be interpreted are
        returned with ``malformed=True`` instead of raising.
    """
    preferred = SYNTAX_STYLES.get((syntax or "").lower())
    if preferred:
        markers = _scan(text, tuple(COMMENT_STYLES[name] for name in preferred))
        if markers:
            return markers
    markers = _scan(text, styles_for(syntax))
    logger.debug("tokenized %d markers (syntax=%s)", len(markers), syntax)
    return markers


def _scan(text: str, styles: tuple[CommentStyle, ...]) -> list[Marker]:
    """Scan ``text`` with the given comment styles."""
    trailing = _trailing_pattern(styles)
    by_opener = {style.opener: style for style in styles}
    markers: list[Marker] = []
    block: _OpenComment | None = None
    run: _OpenComment | None = None

    for line_no, content in enumerate(text.splitlines(), start=1):
        if block is not None:
            closer = block.style.find_close(content)
            if closer is None:
                block.lines.append((line_no, content))
                continue
            block.lines.append((line_no, content[: closer.start()]))
            markers.extend(_emit(block, line_no, content[closer.end() :]))
            block = None
            continue

        found = _find_comment(content, styles, trailing, by_opener)
        if found is None:
            markers.extend(_emit_run(run))
            run = None
            continue

        style, column = found
        lead = content[:column]
        start = column + len(style.opener)
        if not style.is_block:
            body = content[start:]
            whole_line = not lead.strip()
            if whole_line and run is not None and run.style is style:
                run.lines.append((line_no, body))
                if _closes_run(style, body):
                    markers.extend(_emit_run(run))
                    run = None
                continue
            markers.extend(_emit_run(run))
            run = None
            comment = _OpenComment(style, line_no, lead, [(line_no, body)])
            if whole_line and not _closes_run(style, body):
                run = comment
            else:
                markers.extend(_emit(comment, line_no, ""))
            continue

        markers.extend(_emit_run(run))
        run = None
        closer = style.find_close(content, start)
        if closer is None:
            block = _OpenComment(style, line_no, lead, [(line_no, content[start:])])
            continue
        comment = _OpenComment(
            style, line_no, lead, [(line_no, content[start : closer.start()])]
        )
        markers.extend(_emit(comment, line_no, content[closer.end() :]))

    if block is not None:
        markers.extend(_emit(block, block.lines[-1][0], ""))
    markers.extend(_emit_run(run))
    return markers


def _trailing_pattern(styles: tuple[CommentStyle, ...]) -> re.Pattern[str]:
    """Build a pattern finding a marker comment that follows code on a line."""
    openers = sorted((style.opener for style in styles), key=len, reverse=True)
    alternation = "|".join(re.escape(opener) for opener in openers)
    return re.compile(rf"(?P<opener>{alternation})[\s*]*(?:REF|CLOSE):")


def _find_comment(
    content: str,
    styles: tuple[CommentStyle, ...],
    trailing: re.Pattern[str],
    by_opener: typ.Mapping[str, CommentStyle],
) -> tuple[CommentStyle, int] | None:
    """Return the comment style and column where a comment starts on the line."""
    stripped = content.lstrip()
    column = len(content) - len(stripped)
    for style in styles:
        if stripped.startswith(style.opener):
            return style, column
    match = trailing.search(content)
    if match is None:
        return None
    return by_opener[match.group("opener")], match.start()


def _closes_run(style: CommentStyle, body: str) -> bool:
    """Return ``True`` when a line comment is a ``CLOSE:`` marker.

    Line comments after a close are commentary on the code that follows.
    """
    match = MARKER_PATTERN.match(_normalize(style, body))
    return match is not None and match.group("tag") == "CLOSE"


def _emit_run(run: _OpenComment | None) -> list[Marker]:
    if run is None:
        return []
    return _emit(run, run.lines[-1][0], "")


def _normalize(style: CommentStyle, raw: str) -> str:
    """Remove gutters and delimiter padding from one comment line."""
    if style.name in {"block", "jsx"}:
        return GUTTER_PATTERN.sub("", raw, count=1).rstrip()
    if style.is_block:
        return raw.rstrip()
    return (raw[1:] if raw.startswith(" ") else raw).rstrip()


def _emit(comment: _OpenComment, line_end: int, tail: str) -> list[Marker]:
    """Split a finished comment into marker segments."""
    texts = [(line_no, _normalize(comment.style, raw)) for line_no, raw in comment.lines]
    hits = [
        (index, match)
        for index, (_, text) in enumerate(texts)
        if (match := MARKER_PATTERN.match(text))
    ]
    if not hits:
        return []

    span = CommentSpan(
        style=comment.style.name,
        line_start=comment.line_start,
        line_end=line_end,
        lead=comment.lead,
        tail=tail,
    )
    markers: list[Marker] = []
    for position, (index, match) in enumerate(hits):
        seg_start = 0 if position == 0 else index
        if position + 1 < len(hits):
            seg_end = hits[position + 1][0] - 1
        else:
            seg_end = len(texts) - 1
        rest = match.group("rest").strip()
        body_lines = [text for _, text in texts[seg_start:index]]
        if rest:
            body_lines.append(rest)
        body_lines.extend(text for _, text in texts[index + 1 : seg_end + 1])

        kind: MarkerKind = "open" if match.group("tag") == "REF" else "close"
        marker_id = match.group("id")
        if marker_id is not None:
            marker_id = "-".join(marker_id.split())
        problem: str | None = None
        if marker_id is None and kind == "open":
            problem = "REF: marker without an identifier"
        elif marker_id is None and rest:
            problem = f"CLOSE: marker with an unusable identifier {rest!r}"

        markers.append(
            Marker(
                kind=kind,
                id=marker_id,
                style=comment.style.name,
                line_start=texts[seg_start][0],
                line_end=texts[seg_end][0],
                body_text="\n".join(body_lines),
                span=span,
                malformed=problem is not None,
                problem=problem,
            )
        )
    return markers


__all__ = [
    "COMMENT_STYLES",
    "DEFAULT_STYLE_ORDER",
    "MARKER_PATTERN",
    "SYNTAX_STYLES",
    "CommentStyle",
    "styles_for",
    "tokenize",
]
