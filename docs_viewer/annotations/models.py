"""Value objects shared by the annotation pipeline.

Every structure here is a frozen, slotted dataclass so that a parsed document
can be cached and shared between callers without defensive copying. Line
numbers are always 1-based and ranges are inclusive on both ends.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

MarkerKind = typ.Literal["open", "close"]
DiagnosticCode = typ.Literal[
    "malformed-marker",
    "unmatched-close",
    "mismatched-close",
    "duplicate-id",
    "range-clipped",
]

NO_LINE = 0


@dc.dataclass(frozen=True, slots=True)
class LineRange:
    """Inclusive span of 1-based line numbers."""

    start: int
    end: int

    def __contains__(self, line: object) -> bool:
        """Return ``True`` when ``line`` falls inside the span."""
        return isinstance(line, int) and self.start <= line <= self.end

    def __len__(self) -> int:
        return max(0, self.end - self.start + 1)

    def clip(self, bounds: LineRange) -> LineRange | None:
        """Return the intersection with ``bounds`` or ``None`` when disjoint."""
        start = max(self.start, bounds.start)
        end = min(self.end, bounds.end)
        if start > end:
            return None
        return LineRange(start, end)

    def contains_range(self, other: LineRange) -> bool:
        """Return ``True`` when ``other`` lies entirely within this span."""
        return self.start <= other.start and other.end <= self.end


@dc.dataclass(frozen=True, slots=True)
class CommentSpan:
    """Physical comment block that carries one or more markers.

    Attributes
    ----------
    style : str
        Name of the comment style that matched (``"block"``, ``"slash"``...).
    line_start : int
        First line occupied by the comment.
    line_end : int
        Last line occupied by the comment.
    lead : str
        Text preceding the comment opener on ``line_start``.
    tail : str
        Text following the comment closer on ``line_end``.
    """

    style: str
    line_start: int
    line_end: int
    lead: str = ""
    tail: str = ""


@dc.dataclass(frozen=True, slots=True)
class Marker:
    """A ``REF:`` or ``CLOSE:`` tag recognized inside a comment.

    Attributes
    ----------
    kind : {"open", "close"}
        Whether the marker opens or closes a section.
    id : str or None
        Label pairing an open with its close; ``None`` for anonymous closes
        and for malformed markers.
    style : str
        Comment style the marker was found in.
    line_start : int
        First line of the marker's segment of the comment block.
    line_end : int
        Last line of the marker's segment of the comment block.
    body_text : str
        Explanatory text of the segment with comment syntax removed.
    span : CommentSpan
        Comment block holding the marker.
    malformed : bool
        ``True`` when the marker could not be interpreted.
    problem : str or None
        Human-readable reason for ``malformed`` markers.
    """

    kind: MarkerKind
    id: str | None
    style: str
    line_start: int
    line_end: int
    body_text: str
    span: CommentSpan
    malformed: bool = False
    problem: str | None = None

    @property
    def is_open(self) -> bool:
        """Return ``True`` for well-formed opening markers."""
        return self.kind == "open" and not self.malformed

    @property
    def is_close(self) -> bool:
        """Return ``True`` for well-formed closing markers."""
        return self.kind == "close" and not self.malformed


@dc.dataclass(frozen=True, slots=True)
class Diagnostic:
    """Non-fatal problem found while interpreting markers."""

    code: DiagnosticCode
    line: int
    message: str


@dc.dataclass(frozen=True, slots=True)
class Section:
    """Documentation unit tied to a range of original lines.

    Attributes
    ----------
    id : str
        Identifier unique within the document.
    depth : int
        Nesting level; ``0`` for top-level sections.
    title : str
        First line of the explanation with heading markup removed.
    body : str
        Remaining explanation, verbatim apart from comment delimiters.
    original_range : LineRange
        Lines of the source file covered by the section.
    order : int
        1-based position among siblings.
    parent_id : str or None
        Identifier of the enclosing section.
    annotated : bool
        ``False`` for sections synthesized to cover unannotated lines.
    """

    id: str
    depth: int
    title: str
    body: str
    original_range: LineRange
    order: int
    parent_id: str | None = None
    annotated: bool = True


@dc.dataclass(frozen=True, slots=True)
class LineMap:
    """Monotonic mapping from original to stripped line numbers.

    ``forward[n - 1]`` holds the stripped line for original line ``n``; removed
    lines hold the value of the nearest preceding surviving line, or
    :data:`NO_LINE` when none precedes them. ``inverse[m - 1]`` holds the
    original line that produced stripped line ``m``.
    """

    forward: tuple[int, ...]
    kept: tuple[bool, ...]
    inverse: tuple[int, ...]

    @classmethod
    def from_kept(cls, kept: typ.Sequence[bool]) -> LineMap:
        """Build the map from per-line survival flags."""
        forward: list[int] = []
        inverse: list[int] = []
        current = NO_LINE
        for index, survives in enumerate(kept, start=1):
            if survives:
                current += 1
                inverse.append(index)
            forward.append(current)
        return cls(tuple(forward), tuple(kept), tuple(inverse))

    @property
    def original_line_count(self) -> int:
        return len(self.forward)

    @property
    def stripped_line_count(self) -> int:
        return len(self.inverse)

    def survives(self, line: int) -> bool:
        """Return ``True`` when original ``line`` has a stripped counterpart."""
        if 1 <= line <= len(self.kept):
            return self.kept[line - 1]
        return False

    def to_stripped(self, line: int) -> int:
        """Map an original line, clamping out-of-range input to the file."""
        if not self.forward or line < 1:
            return NO_LINE
        line = min(line, len(self.forward))
        return self.forward[line - 1]

    def next_stripped(self, line: int) -> int:
        """Return the first stripped line produced at or after original ``line``.

        Returns ``stripped_line_count + 1`` when no surviving line follows.
        """
        if not self.forward:
            return 1
        if line < 1:
            line = 1
        if line > len(self.forward):
            return self.stripped_line_count + 1
        mapped = self.forward[line - 1]
        return mapped if self.kept[line - 1] else mapped + 1

    def to_original(self, stripped_line: int) -> int:
        """Map a stripped line back to the original line that produced it."""
        if not self.inverse:
            return NO_LINE
        stripped_line = min(max(stripped_line, 1), len(self.inverse))
        return self.inverse[stripped_line - 1]


@dc.dataclass(frozen=True, slots=True)
class Pairing:
    """A section joined with its stripped-code line range."""

    section: Section
    code_range: LineRange | None

    @property
    def is_prose_only(self) -> bool:
        """Return ``True`` when the section documents no code lines."""
        return self.code_range is None


@dc.dataclass(frozen=True, slots=True)
class ParsedDocument:
    """Everything the viewer panes need for one source file."""

    sections: tuple[Section, ...]
    stripped_code: str
    pairings: tuple[Pairing, ...]
    line_map: LineMap
    diagnostics: tuple[Diagnostic, ...]
    syntax: str | None
    line_count: int

    def section(self, section_id: str) -> Section | None:
        """Return the section with ``section_id`` if present."""
        for section in self.sections:
            if section.id == section_id:
                return section
        return None


@dc.dataclass(frozen=True, slots=True)
class NoContent:
    """Placeholder result for empty or missing files."""

    reason: typ.Literal["empty", "not-found"]
    path: str | None = None


__all__ = [
    "NO_LINE",
    "CommentSpan",
    "Diagnostic",
    "DiagnosticCode",
    "LineMap",
    "LineRange",
    "Marker",
    "MarkerKind",
    "NoContent",
    "Pairing",
    "ParsedDocument",
    "Section",
]
