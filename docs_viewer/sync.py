r"""Keep the documentation and code panes scrolled to matching regions.

The documentation pane lays sections out one after another; the code pane
shows the stripped source. :class:`SyncTable` turns a parsed document into
monotone anchor arrays for both coordinate spaces, so a line in either pane is
resolved with a binary search and proportional interpolation inside the
matching section.

:class:`ScrollSynchronizer` is a small state machine driven by pane events.
A user scroll makes its pane authoritative and moves the other pane; the
resulting programmatic scroll events carry the synchronizer's epoch and are
ignored, which breaks the two-way feedback loop. The machine returns to idle
once no event for the current epoch has arrived for ``settle_delay`` seconds.

Example
-------
>>> from docs_viewer.annotations import parse_document
>>> from docs_viewer.sync import DeepLink, SyncTable, resolve_deep_link
>>> doc = parse_document("// REF: a\nfoo()\n// CLOSE: a\n")
>>> table = SyncTable.from_document(doc)
>>> resolve_deep_link(table, DeepLink(50)).section_id
'a'
"""

from __future__ import annotations

import bisect
import dataclasses as dc
import enum
import logging
import math
import time
import typing as typ
from urllib.parse import parse_qs

from .annotations.models import NO_LINE, LineMap, LineRange, Pairing, ParsedDocument, Section

logger = logging.getLogger(__name__)

PaneName = typ.Literal["doc", "code"]
DEFAULT_SETTLE_DELAY = 0.15


def section_height(section: Section) -> int:
    """Return the number of documentation-pane lines a section occupies."""
    lines = (1 if section.title else 0) + len(section.body.splitlines())
    return max(1, lines)


@dc.dataclass(frozen=True, slots=True)
class SyncTable:
    """Anchor table shared by both panes of one document.

    Attributes
    ----------
    pairings : tuple[Pairing, ...]
        Pairings in document order.
    doc_starts : tuple[int, ...]
        First documentation-pane line of each pairing.
    code_starts : tuple[int, ...]
        First code-pane line of each pairing; prose-only sections anchor at
        the next code line.
    original_starts : tuple[int, ...]
        First original-file line of each pairing.
    doc_line_count : int
        Total height of the documentation pane in lines.
    code_line_count : int
        Number of lines of stripped code.
    line_map : LineMap
        Mapping between original and stripped lines.
    """

    pairings: tuple[Pairing, ...]
    doc_starts: tuple[int, ...]
    code_starts: tuple[int, ...]
    original_starts: tuple[int, ...]
    doc_line_count: int
    code_line_count: int
    line_map: LineMap
    _index_by_id: dict[str, int] = dc.field(default_factory=dict, compare=False)

    @classmethod
    def from_document(
        cls, document: ParsedDocument, doc_heights: typ.Sequence[int] | None = None
    ) -> SyncTable:
        """Build the table for ``document``.

        Parameters
        ----------
        document : ParsedDocument
            Parse result whose pairings drive the table.
        doc_heights : Sequence[int], optional
            Rendered height of each section in documentation-pane lines, as
            measured by the pane renderer. Defaults to the text line count of
            each section.

        Raises
        ------
        ValueError
            If ``doc_heights`` does not provide one height per pairing.
        """
        pairings = document.pairings
        if doc_heights is None:
            heights = [section_height(pairing.section) for pairing in pairings]
        else:
            heights = list(doc_heights)
        if len(heights) != len(pairings):
            msg = f"Expected {len(pairings)} section heights, got {len(heights)}."
            raise ValueError(msg)

        line_map = document.line_map
        code_line_count = line_map.stripped_line_count
        doc_starts: list[int] = []
        cursor = 1
        for height in heights:
            doc_starts.append(cursor)
            cursor += max(1, height)
        code_starts = [
            min(
                line_map.next_stripped(pairing.section.original_range.start),
                code_line_count + 1,
            )
            for pairing in pairings
        ]
        return cls(
            pairings=tuple(pairings),
            doc_starts=tuple(doc_starts),
            code_starts=tuple(code_starts),
            original_starts=tuple(
                pairing.section.original_range.start for pairing in pairings
            ),
            doc_line_count=cursor - 1,
            code_line_count=code_line_count,
            line_map=line_map,
            _index_by_id={
                pairing.section.id: index for index, pairing in enumerate(pairings)
            },
        )

    def line_count(self, pane: PaneName) -> int:
        return self.doc_line_count if pane == "doc" else self.code_line_count

    def starts(self, pane: PaneName) -> tuple[int, ...]:
        return self.doc_starts if pane == "doc" else self.code_starts

    def segment_at(self, pane: PaneName, line: int) -> int:
        """Return the index of the pairing whose segment holds ``line``."""
        starts = self.starts(pane)
        return max(0, bisect.bisect_right(starts, line) - 1)

    def section_at(self, pane: PaneName, line: int) -> Section | None:
        """Return the innermost section shown at ``line`` of ``pane``."""
        if not self.pairings:
            return None
        index = self.segment_at(pane, line)
        if pane == "code":
            index = self._climb(index, lambda pairing: _covers(pairing.code_range, line))
        return self.pairings[index].section

    def section_for_original_line(self, line: int) -> int:
        """Return the index of the innermost section containing original ``line``."""
        index = max(0, bisect.bisect_right(self.original_starts, line) - 1)
        return self._climb(index, lambda pairing: line in pairing.section.original_range)

    def index_of(self, section_id: str) -> int | None:
        """Return the pairing index of ``section_id``, if present."""
        return self._index_by_id.get(section_id)

    def _climb(self, index: int, accepts: typ.Callable[[Pairing], bool]) -> int:
        """Walk from ``index`` up the parent chain until ``accepts`` holds."""
        current = index
        while not accepts(self.pairings[current]):
            parent_id = self.pairings[current].section.parent_id
            if parent_id is None or parent_id not in self._index_by_id:
                return index
            current = self._index_by_id[parent_id]
        return current


def _covers(code_range: LineRange | None, line: int) -> bool:
    return code_range is not None and line in code_range


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def resolve_counterpart(table: SyncTable, source_pane: PaneName, source_top_line: int) -> int:
    """Return the line the other pane should show at its top.

    Parameters
    ----------
    table : SyncTable
        Anchor table of the document shown in both panes.
    source_pane : {"doc", "code"}
        Pane whose top line is authoritative.
    source_top_line : int
        Top visible line of ``source_pane``; out-of-range values are clamped.

    Returns
    -------
    int
        Top line for the other pane, always within its bounds (``1`` for an
        empty pane).
    """
    target_pane: PaneName = "code" if source_pane == "doc" else "doc"
    target_count = table.line_count(target_pane)
    if not table.pairings:
        return 1

    source_starts = table.starts(source_pane)
    target_starts = table.starts(target_pane)
    source_end = table.line_count(source_pane) + 1
    target_end = target_count + 1
    line = _clamp(source_top_line, 1, max(1, source_end - 1))

    index = table.segment_at(source_pane, line)
    last = index + 1 >= len(source_starts)
    seg_source_start = source_starts[index]
    seg_source_end = source_end if last else source_starts[index + 1]
    seg_target_start = target_starts[index]
    seg_target_end = target_end if last else target_starts[index + 1]

    span = seg_source_end - seg_source_start
    fraction = 0.0 if span <= 0 else (line - seg_source_start) / span
    fraction = min(max(fraction, 0.0), 1.0)
    target = seg_target_start + math.floor(fraction * (seg_target_end - seg_target_start))
    return _clamp(target, 1, max(1, target_count))


@dc.dataclass(frozen=True, slots=True)
class DeepLink:
    """Requested original-file line range (1-based, inclusive)."""

    line: int
    line_end: int | None = None

    @property
    def end(self) -> int:
        return max(self.line, self.line_end or self.line)


def parse_deep_link(
    query: str | typ.Mapping[str, str | typ.Sequence[str]],
) -> DeepLink | None:
    """Read the ``line`` / ``lineEnd`` parameters of a viewer URL query.

    Absent, non-numeric or non-positive values mean "no deep link" for
    ``line`` and "single line" for ``lineEnd``.

    Examples
    --------
    >>> parse_deep_link("?line=12&lineEnd=20")
    DeepLink(line=12, line_end=20)
    >>> parse_deep_link("lineEnd=4") is None
    True
    """
    params: typ.Mapping[str, str | typ.Sequence[str]]
    if isinstance(query, str):
        params = parse_qs(query.lstrip("?"))
    else:
        params = query
    line = _positive_int(params.get("line"))
    if line is None:
        return None
    return DeepLink(line=line, line_end=_positive_int(params.get("lineEnd")))


def _positive_int(value: str | typ.Sequence[str] | None) -> int | None:
    if value is None:
        return None
    if not isinstance(value, str):
        if not value:
            return None
        value = value[0]
    try:
        number = int(value.strip())
    except ValueError:
        return None
    return number if number > 0 else None


@dc.dataclass(frozen=True, slots=True)
class DeepLinkTarget:
    """Where both panes should land for a deep link.

    Attributes
    ----------
    section_id : str
        Section to highlight in the documentation pane.
    doc_line : int
        Top line for the documentation pane.
    code_line : int
        Top line for the code pane.
    code_highlight : LineRange or None
        Stripped-code lines to highlight.
    clamped : bool
        ``True`` when the request lay beyond the file and was clamped.
    """

    section_id: str
    doc_line: int
    code_line: int
    code_highlight: LineRange | None
    clamped: bool = False


def resolve_deep_link(table: SyncTable, link: DeepLink) -> DeepLinkTarget | None:
    """Resolve ``link`` to pane positions; ``None`` only for an empty table."""
    if not table.pairings:
        return None
    last_line = table.line_map.original_line_count
    clamped = link.line > last_line
    if clamped:
        index = len(table.pairings) - 1
        highlight = table.pairings[index].code_range
    else:
        end = min(link.end, last_line)
        index = table.section_for_original_line(link.line)
        start_code = table.line_map.next_stripped(link.line)
        end_code = table.line_map.to_stripped(end)
        if end_code == NO_LINE or start_code > end_code:
            highlight = table.pairings[index].code_range
        else:
            highlight = LineRange(start_code, end_code)

    pairing = table.pairings[index]
    if pairing.code_range is not None:
        code_line = pairing.code_range.start
    else:
        code_line = table.code_starts[index]
    if clamped:
        logger.debug("deep link line %d clamped to section %r", link.line, pairing.section.id)
    return DeepLinkTarget(
        section_id=pairing.section.id,
        doc_line=table.doc_starts[index],
        code_line=_clamp(code_line, 1, max(1, table.code_line_count)),
        code_highlight=highlight,
        clamped=clamped,
    )


class SyncPhase(enum.Enum):
    """States of the scroll synchronizer."""

    IDLE = "idle"
    SYNCING_FROM_DOC = "syncing-from-doc"
    SYNCING_FROM_CODE = "syncing-from-code"


class PaneController(typ.Protocol):
    """What the synchronizer needs from a pane widget."""

    def scroll_to_line(self, line: int, *, epoch: int) -> None:
        """Scroll so ``line`` is at the top; later events carry ``epoch``."""
        ...

    def highlight(self, section_id: str | None, lines: LineRange | None) -> None:
        """Highlight a section (documentation pane) or lines (code pane)."""
        ...


@dc.dataclass(frozen=True, slots=True)
class ScrollEvent:
    """Scroll or line-selection event reported by a pane.

    ``epoch`` is ``None`` for user-originated events and carries the
    synchronizer's epoch for scrolls it issued itself.
    """

    pane: PaneName
    top_line: int
    epoch: int | None = None
    selection: bool = False


@dc.dataclass(slots=True)
class ScrollState:
    """Transient view state of the pair of panes."""

    active_pane: PaneName = "doc"
    top_visible_line: int = 1
    highlighted_section_id: str | None = None


class ScrollSynchronizer:
    """Drive two panes so they keep showing corresponding regions."""

    def __init__(
        self,
        table: SyncTable,
        doc_pane: PaneController,
        code_pane: PaneController,
        *,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        clock: typ.Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the synchronizer for one loaded document.

        Parameters
        ----------
        table : SyncTable
            Anchor table owned by the pane container for this document.
        doc_pane, code_pane : PaneController
            Pane widgets to drive.
        settle_delay : float, optional
            Seconds without events for the current epoch before the machine
            returns to :attr:`SyncPhase.IDLE`.
        clock : Callable[[], float], optional
            Monotonic time source, injectable for tests.
        """
        self.table = table
        self._panes: dict[PaneName, PaneController] = {"doc": doc_pane, "code": code_pane}
        self.settle_delay = settle_delay
        self._clock = clock
        self.phase = SyncPhase.IDLE
        self.epoch = 0
        self.state = ScrollState()
        self._deadline: float | None = None

    def handle(self, event: ScrollEvent) -> int | None:
        """Process a pane event.

        Returns
        -------
        int or None
            Line the other pane was scrolled to, or ``None`` when the event
            was an echo of a programmatic scroll and was suppressed.
        """
        now = self._clock()
        self._settle(now)
        if event.epoch is not None:
            if event.epoch == self.epoch and self.phase is not SyncPhase.IDLE:
                self._deadline = now + self.settle_delay
            return None

        source = event.pane
        target: PaneName = "code" if source == "doc" else "doc"
        self.epoch += 1
        self.phase = (
            SyncPhase.SYNCING_FROM_DOC if source == "doc" else SyncPhase.SYNCING_FROM_CODE
        )
        self._deadline = now + self.settle_delay
        self.state.active_pane = source
        self.state.top_visible_line = event.top_line

        line = resolve_counterpart(self.table, source, event.top_line)
        self._panes[target].scroll_to_line(line, epoch=self.epoch)
        section = self.table.section_at(source, event.top_line)
        section_id = section.id if section else None
        if event.selection or section_id != self.state.highlighted_section_id:
            self._highlight(section_id)
        return line

    def jump_to(self, link: DeepLink) -> DeepLinkTarget | None:
        """Scroll both panes to a deep-linked line range and highlight it."""
        target = resolve_deep_link(self.table, link)
        if target is None:
            return None
        now = self._clock()
        self.epoch += 1
        self.phase = SyncPhase.SYNCING_FROM_CODE
        self._deadline = now + self.settle_delay
        self.state.active_pane = "code"
        self.state.top_visible_line = target.code_line
        self._panes["doc"].scroll_to_line(target.doc_line, epoch=self.epoch)
        self._panes["code"].scroll_to_line(target.code_line, epoch=self.epoch)
        self.state.highlighted_section_id = target.section_id
        for pane in self._panes.values():
            pane.highlight(target.section_id, target.code_highlight)
        return target

    def tick(self) -> SyncPhase:
        """Advance the debounce timer and return the current phase."""
        self._settle(self._clock())
        return self.phase

    def _settle(self, now: float) -> None:
        if self._deadline is not None and now >= self._deadline:
            self.phase = SyncPhase.IDLE
            self._deadline = None

    def _highlight(self, section_id: str | None) -> None:
        self.state.highlighted_section_id = section_id
        lines = None
        if section_id is not None:
            index = self.table.index_of(section_id)
            if index is not None:
                lines = self.table.pairings[index].code_range
        for pane in self._panes.values():
            pane.highlight(section_id, lines)


__all__ = [
    "DEFAULT_SETTLE_DELAY",
    "DeepLink",
    "DeepLinkTarget",
    "PaneController",
    "PaneName",
    "ScrollEvent",
    "ScrollState",
    "ScrollSynchronizer",
    "SyncPhase",
    "SyncTable",
    "parse_deep_link",
    "resolve_counterpart",
    "resolve_deep_link",
    "section_height",
]
