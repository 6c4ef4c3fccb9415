"""Join sections with their line ranges in the stripped code."""

from __future__ import annotations

import logging
import typing as typ

from .models import NO_LINE, LineMap, LineRange, Pairing, Section

logger = logging.getLogger(__name__)


def pair(sections: typ.Sequence[Section], line_map: LineMap) -> list[Pairing]:
    """Map every section's original range into stripped-code coordinates.

    The code range starts at the first surviving line at or after the
    section's first line and ends at the mapping of its last line. A section
    whose lines were all removed (prose only) gets an empty range. Nested
    ranges are clipped to their parent's range.

    Parameters
    ----------
    sections : Sequence[Section]
        Sections in document order, parents before children.
    line_map : LineMap
        Mapping produced while stripping the same file.

    Returns
    -------
    list[Pairing]
        One pairing per section, in the same order.
    """
    resolved: dict[str, LineRange | None] = {}
    pairings: list[Pairing] = []
    for section in sections:
        code_range = _map_range(section.original_range, line_map)
        if section.parent_id is not None:
            code_range = _clip_to_parent(
                section, code_range, resolved.get(section.parent_id)
            )
        resolved[section.id] = code_range
        pairings.append(Pairing(section=section, code_range=code_range))
    return pairings


def _map_range(span: LineRange, line_map: LineMap) -> LineRange | None:
    start = line_map.next_stripped(span.start)
    end = line_map.to_stripped(span.end)
    if end == NO_LINE or start > end:
        return None
    return LineRange(start, end)


def _clip_to_parent(
    section: Section, code_range: LineRange | None, parent_range: LineRange | None
) -> LineRange | None:
    """Keep a child's code range inside its parent's."""
    if code_range is None:
        return None
    if parent_range is None:
        logger.debug("section %r has a prose-only parent", section.id)
        return None
    if parent_range.contains_range(code_range):
        return code_range
    logger.debug("clipping code range of section %r to its parent", section.id)
    return code_range.clip(parent_range)


__all__ = ["pair"]
