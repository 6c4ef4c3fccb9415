r"""Remove documentation comments from source while tracking line positions.

Example
-------
>>> from docs_viewer.annotations.stripper import strip
>>> from docs_viewer.annotations.tokenizer import tokenize
>>> source = "// REF: a\nfoo()\n// CLOSE: a\n"
>>> result = strip(source, tokenize(source))
>>> result.text
'foo()\n'
>>> result.line_map.forward
(0, 1, 1)
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from .models import CommentSpan, LineMap, Marker


@dc.dataclass(frozen=True, slots=True)
class StripResult:
    """Stripped text plus what is needed to map and restore it.

    Attributes
    ----------
    text : str
        Source with documentation comments removed.
    line_map : LineMap
        Original-to-stripped line mapping.
    removed : Mapping[int, str]
        Original text (line ending included) of every removed or altered line,
        keyed by original line number.
    """

    text: str
    line_map: LineMap
    removed: typ.Mapping[int, str]


def strip(text: str, markers: typ.Iterable[Marker]) -> StripResult:
    """Remove every comment block that carries a marker.

    Lines entirely inside a documentation comment are dropped. Code sharing
    the comment's first line (before the opener) or last line (after the
    closer) is kept, right-trimmed when a trailing comment is removed.

    Parameters
    ----------
    text : str
        Raw file contents.
    markers : Iterable[Marker]
        Markers produced by tokenizing ``text``; malformed markers are
        stripped like any other since their comment is still documentation.

    Returns
    -------
    StripResult
        The stripped text, its line map, and the original removed lines.
    """
    spans = _spans_by_line(markers)
    kept_lines: list[str] = []
    kept_flags: list[bool] = []
    removed: dict[int, str] = {}

    for line_no, line in enumerate(text.splitlines(keepends=True), start=1):
        span = spans.get(line_no)
        if span is None:
            kept_lines.append(line)
            kept_flags.append(True)
            continue
        content = line.rstrip("\r\n")
        ending = line[len(content) :]
        removed[line_no] = line
        survivor = _surviving_code(span, line_no)
        if survivor is None:
            kept_flags.append(False)
            continue
        kept_lines.append(survivor + ending)
        kept_flags.append(True)

    return StripResult(
        text="".join(kept_lines),
        line_map=LineMap.from_kept(kept_flags),
        removed=removed,
    )


def restore(result: StripResult) -> str:
    """Rebuild the original text from a :class:`StripResult`."""
    stripped_lines = result.text.splitlines(keepends=True)
    restored: list[str] = []
    for line_no in range(1, result.line_map.original_line_count + 1):
        if line_no in result.removed:
            restored.append(result.removed[line_no])
        else:
            restored.append(stripped_lines[result.line_map.to_stripped(line_no) - 1])
    return "".join(restored)


def _spans_by_line(markers: typ.Iterable[Marker]) -> dict[int, CommentSpan]:
    spans: dict[int, CommentSpan] = {}
    for marker in markers:
        span = marker.span
        for line_no in range(span.line_start, span.line_end + 1):
            spans.setdefault(line_no, span)
    return spans


def _surviving_code(span: CommentSpan, line_no: int) -> str | None:
    """Return the code left on ``line_no`` once the comment is removed."""
    lead = span.lead if line_no == span.line_start else ""
    tail = span.tail if line_no == span.line_end else ""
    if not lead.strip() and not tail.strip():
        return None
    if not lead.strip():
        return lead + tail.lstrip()
    if not tail.strip():
        return lead.rstrip()
    return f"{lead.rstrip()} {tail.lstrip()}"


__all__ = ["StripResult", "restore", "strip"]
