"""Annotation extraction: tokenize markers, build sections, strip and pair."""

from .models import (
    NO_LINE,
    CommentSpan,
    Diagnostic,
    LineMap,
    LineRange,
    Marker,
    NoContent,
    Pairing,
    ParsedDocument,
    Section,
)
from .pairing import pair
from .pipeline import document_payload, parse_document
from .sections import build_sections
from .stripper import StripResult, restore, strip
from .tokenizer import tokenize

__all__ = [
    "NO_LINE",
    "CommentSpan",
    "Diagnostic",
    "LineMap",
    "LineRange",
    "Marker",
    "NoContent",
    "Pairing",
    "ParsedDocument",
    "Section",
    "StripResult",
    "build_sections",
    "document_payload",
    "pair",
    "parse_document",
    "restore",
    "strip",
    "tokenize",
]
