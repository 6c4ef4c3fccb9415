r"""Run the full annotation pipeline for one source file.

``parse_document`` tokenizes the text once, feeds the markers to both the
section builder and the stripper, and pairs the results. The output is the
contract the viewer panes consume.

Example
-------
>>> from docs_viewer.annotations.pipeline import parse_document
>>> doc = parse_document("// REF: a\nfoo()\n// CLOSE: a\n", syntax="typescript")
>>> doc.stripped_code
'foo()\n'
>>> doc.pairings[0].code_range
LineRange(start=1, end=1)
"""

from __future__ import annotations

import functools
import logging
import typing as typ

from .models import NoContent, ParsedDocument
from .pairing import pair
from .sections import build_sections
from .stripper import strip
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

PARSE_CACHE_SIZE = 256


@functools.lru_cache(maxsize=PARSE_CACHE_SIZE)
def parse_document(text: str, syntax: str | None = None) -> ParsedDocument | NoContent:
    """Parse ``text`` into sections, stripped code and pairings.

    Parameters
    ----------
    text : str
        Raw file contents.
    syntax : str, optional
        Syntax family used to order comment-style detection.

    Returns
    -------
    ParsedDocument or NoContent
        ``NoContent(reason="empty")`` when the text is blank; otherwise the
        immutable parse result. Results are memoized per ``(text, syntax)``.
    """
    if not text.strip():
        return NoContent(reason="empty")

    markers = tokenize(text, syntax)
    line_count = len(text.splitlines())
    sections, diagnostics = build_sections(markers, line_count)
    stripped = strip(text, markers)
    pairings = pair(sections, stripped.line_map)
    for diagnostic in diagnostics:
        logger.debug(
            "line %d: %s (%s)", diagnostic.line, diagnostic.message, diagnostic.code
        )
    return ParsedDocument(
        sections=tuple(sections),
        stripped_code=stripped.text,
        pairings=tuple(pairings),
        line_map=stripped.line_map,
        diagnostics=tuple(diagnostics),
        syntax=syntax,
        line_count=line_count,
    )


def document_payload(document: ParsedDocument) -> dict[str, typ.Any]:
    """Return the JSON-ready ``{sections, strippedCode, pairings}`` payload."""
    sections = [
        {
            "id": section.id,
            "depth": section.depth,
            "title": section.title,
            "body": section.body,
            "originalRange": [section.original_range.start, section.original_range.end],
            "order": section.order,
            "parentId": section.parent_id,
            "annotated": section.annotated,
        }
        for section in document.sections
    ]
    pairings = [
        {
            "sectionId": pairing.section.id,
            "codeRange": (
                [pairing.code_range.start, pairing.code_range.end]
                if pairing.code_range
                else None
            ),
        }
        for pairing in document.pairings
    ]
    return {
        "sections": sections,
        "strippedCode": document.stripped_code,
        "pairings": pairings,
        "lineMap": list(document.line_map.forward),
    }


__all__ = ["PARSE_CACHE_SIZE", "document_payload", "parse_document"]
