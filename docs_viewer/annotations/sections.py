r"""Resolve a marker stream into ordered documentation sections.

Markers are matched with a stack. An open marker nests inside the innermost
open one only when that one still expects an explicit close later in the
file; otherwise the earlier marker is closed on the line before the new one
(sibling boundary). Markers left open are closed at end of file. Lines that no
top-level section covers become unannotated gap sections, so the top-level
ranges tile the file.

Example
-------
>>> from docs_viewer.annotations.sections import build_sections
>>> from docs_viewer.annotations.tokenizer import tokenize
>>> sections, _ = build_sections(tokenize("// REF: a\nfoo()\n// CLOSE: a\n"), 3)
>>> sections[0].id, sections[0].original_range
('a', LineRange(start=1, end=3))
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import textwrap
import typing as typ

from .models import Diagnostic, LineRange, Marker, Section
from .tokenizer import COMMENT_STYLES

logger = logging.getLogger(__name__)

TITLE_LEAD_PATTERN = re.compile(r"^[\s#*\-]+")
TITLE_TRAIL_PATTERN = re.compile(r"[\s#*]+$")


@dc.dataclass(slots=True)
class _Frame:
    """Open marker on the matching stack."""

    marker: Marker
    open_index: int
    depth: int
    parent: _Frame | None
    expects_close: bool
    end: int | None = None
    section_id: str | None = None


def build_sections(
    markers: typ.Sequence[Marker], line_count: int
) -> tuple[list[Section], list[Diagnostic]]:
    """Build sections from ``markers`` for a file of ``line_count`` lines.

    Parameters
    ----------
    markers : Sequence[Marker]
        Tokens in document order, as produced by
        :func:`~docs_viewer.annotations.tokenizer.tokenize`.
    line_count : int
        Number of lines in the original file; markers still open at the end
        are closed on this line.

    Returns
    -------
    tuple[list[Section], list[Diagnostic]]
        Sections in document order (parents before their children, gap
        sections interleaved) and the problems repaired along the way.
    """
    diagnostics: list[Diagnostic] = []
    usable: list[Marker] = []
    for marker in markers:
        if marker.malformed:
            diagnostics.append(
                Diagnostic(
                    "malformed-marker",
                    marker.line_start,
                    marker.problem or "unreadable marker",
                )
            )
            continue
        usable.append(marker)

    frames = _match_markers(_drop_inline_closes(usable), line_count, diagnostics)
    _assign_ids(frames, diagnostics)

    sections: list[Section] = []
    ranges: dict[int, LineRange] = {}
    for frame in frames:
        span = LineRange(frame.marker.line_start, typ.cast("int", frame.end))
        if frame.parent is not None:
            parent_span = ranges[frame.parent.open_index]
            if not parent_span.contains_range(span):
                clipped = span.clip(parent_span) or LineRange(
                    parent_span.end, parent_span.end
                )
                diagnostics.append(
                    Diagnostic(
                        "range-clipped",
                        span.start,
                        f"section '{frame.section_id}' clipped to its parent",
                    )
                )
                span = clipped
        ranges[frame.open_index] = span
        title, body = split_title(frame.marker.body_text)
        sections.append(
            Section(
                id=typ.cast("str", frame.section_id),
                depth=frame.depth,
                title=title,
                body=body,
                original_range=span,
                order=0,
                parent_id=frame.parent.section_id if frame.parent else None,
            )
        )

    sections.extend(_gap_sections(sections, line_count))
    sections.sort(key=lambda section: (section.original_range.start, section.depth))
    return _number_siblings(sections), diagnostics


def _drop_inline_closes(markers: list[Marker]) -> list[Marker]:
    """Drop closes written inside the same comment as the open they close.

    A block comment such as ``/** REF: a ... CLOSE: a */`` documents the code
    after it, so its open is treated as having no explicit close. Runs of line
    comments keep their close and form a prose-only section.
    """
    kept: list[Marker] = []
    for marker in markers:
        if marker.kind == "close" and any(
            earlier.kind == "open"
            and earlier.span == marker.span
            and COMMENT_STYLES[marker.style].is_block
            and marker.id in {None, earlier.id}
            for earlier in kept
        ):
            logger.debug(
                "CLOSE: %s on line %d shares its comment with the open",
                marker.id,
                marker.line_start,
            )
            continue
        kept.append(marker)
    return kept


def _match_markers(
    markers: list[Marker], line_count: int, diagnostics: list[Diagnostic]
) -> list[_Frame]:
    """Pair open and close markers, returning frames in open order."""
    stack: list[_Frame] = []
    frames: list[_Frame] = []
    for index, marker in enumerate(markers):
        if marker.kind == "open":
            while stack and not stack[-1].expects_close:
                stack.pop().end = marker.line_start - 1
            frame = _Frame(
                marker=marker,
                open_index=len(frames),
                depth=len(stack),
                parent=stack[-1] if stack else None,
                expects_close=_expects_close(markers, index),
            )
            stack.append(frame)
            frames.append(frame)
            continue

        if marker.id is None:
            if not stack:
                diagnostics.append(
                    Diagnostic(
                        "unmatched-close", marker.line_start, "CLOSE: with nothing open"
                    )
                )
                continue
            stack.pop().end = marker.line_end
            continue

        position = _innermost(stack, marker.id)
        if position is None:
            diagnostics.append(
                Diagnostic(
                    "unmatched-close",
                    marker.line_start,
                    f"CLOSE: {marker.id} has no open REF: {marker.id}",
                )
            )
            continue
        while len(stack) > position + 1:
            inner = stack.pop()
            inner.end = marker.line_end
            if inner.expects_close:
                diagnostics.append(
                    Diagnostic(
                        "mismatched-close",
                        marker.line_start,
                        f"REF: {inner.marker.id} closed by CLOSE: {marker.id}",
                    )
                )
        stack.pop().end = marker.line_end

    for frame in stack:
        frame.end = line_count
    return frames


def _expects_close(markers: list[Marker], index: int) -> bool:
    """Return ``True`` when a later close marker will claim ``markers[index]``."""
    target = markers[index]
    depth = 0
    for marker in markers[index + 1 :]:
        if marker.kind == "open":
            depth += 1
        elif marker.id is not None and marker.id == target.id:
            return True
        elif marker.id is None:
            if depth == 0:
                return True
            depth -= 1
        elif depth:
            depth -= 1
    return False


def _innermost(stack: list[_Frame], marker_id: str) -> int | None:
    for position in range(len(stack) - 1, -1, -1):
        if stack[position].marker.id == marker_id:
            return position
    return None


def _assign_ids(frames: list[_Frame], diagnostics: list[Diagnostic]) -> None:
    """Give each frame a unique id, suffixing duplicates."""
    used: set[str] = set()
    for frame in frames:
        base = typ.cast("str", frame.marker.id)
        if base in used:
            diagnostics.append(
                Diagnostic(
                    "duplicate-id",
                    frame.marker.line_start,
                    f"REF: {base} is used more than once",
                )
            )
            logger.warning(
                "duplicate REF id %r on line %d", base, frame.marker.line_start
            )
        frame.section_id = unique_id(base, used)


def unique_id(base: str, used: set[str]) -> str:
    """Return ``base`` or ``base-N`` not yet in ``used``, recording the result."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def split_title(body_text: str) -> tuple[str, str]:
    """Split marker text into a heading-free title and a verbatim body."""
    lines = body_text.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    if not lines:
        return "", ""
    title = TITLE_TRAIL_PATTERN.sub("", TITLE_LEAD_PATTERN.sub("", lines[0]))
    rest = lines[1:]
    while rest and not rest[0].strip():
        rest.pop(0)
    while rest and not rest[-1].strip():
        rest.pop()
    return title, textwrap.dedent("\n".join(rest))


def _gap_sections(sections: list[Section], line_count: int) -> list[Section]:
    """Return unannotated sections covering lines outside top-level sections."""
    used = {section.id for section in sections}
    top_level = sorted(
        (section.original_range for section in sections if section.depth == 0),
        key=lambda span: span.start,
    )
    gaps: list[Section] = []
    cursor = 1
    for span in [*top_level, LineRange(line_count + 1, line_count + 1)]:
        if span.start > cursor:
            gaps.append(
                Section(
                    id=unique_id(f"lines-{cursor}-{span.start - 1}", used),
                    depth=0,
                    title="",
                    body="",
                    original_range=LineRange(cursor, span.start - 1),
                    order=0,
                    annotated=False,
                )
            )
        cursor = max(cursor, span.end + 1)
    return gaps


def _number_siblings(sections: list[Section]) -> list[Section]:
    counters: dict[str | None, int] = {}
    numbered: list[Section] = []
    for section in sections:
        counters[section.parent_id] = counters.get(section.parent_id, 0) + 1
        numbered.append(dc.replace(section, order=counters[section.parent_id]))
    return numbered


__all__ = ["build_sections", "split_title", "unique_id"]
