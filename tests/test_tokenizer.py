"""Unit tests for the REF/CLOSE marker tokenizer.

These tests feed small source snippets in each supported comment style to
``tokenize`` and check the kinds, identifiers, line spans and bodies of the
markers it reports.

Usage
-----
Run ``pytest tests/test_tokenizer.py -v`` to execute the suite.
"""

from __future__ import annotations

import re
import textwrap

import pytest

from docs_viewer.annotations.tokenizer import COMMENT_STYLES, styles_for, tokenize


def _kinds(text: str, syntax: str | None = None) -> list[tuple[str, str | None]]:
    return [(marker.kind, marker.id) for marker in tokenize(text, syntax)]


def test_line_comment_markers() -> None:
    """Whole-line ``//`` comments should yield an open and a close marker."""
    markers = tokenize("// REF: a\nfoo()\n// CLOSE: a\n", "typescript")
    assert [(m.kind, m.id) for m in markers] == [("open", "a"), ("close", "a")]
    assert {m.style for m in markers} == {"slash"}
    assert (markers[0].line_start, markers[0].line_end) == (1, 1)
    assert (markers[1].line_start, markers[1].line_end) == (3, 3)


def test_consecutive_slash_lines_form_one_block() -> None:
    """Adjacent ``//`` lines after a marker belong to the marker's body."""
    markers = tokenize("// REF: a\n// Title here\n// more\ncode()\n", "typescript")
    assert len(markers) == 1
    marker = markers[0]
    assert (marker.line_start, marker.line_end) == (1, 3)
    assert marker.body_text == "Title here\nmore"


def test_block_comment_with_two_markers_is_segmented() -> None:
    """Each marker in a block comment owns the lines up to the next marker."""
    source = textwrap.dedent(
        """\
        /**
         * REF: first
         * First title
         * REF: second
         * Second title
         */
        run()
        """
    )
    markers = tokenize(source, "typescript")
    assert [(m.kind, m.id) for m in markers] == [("open", "first"), ("open", "second")]
    assert [(m.line_start, m.line_end) for m in markers] == [(1, 3), (4, 6)]
    assert markers[0].body_text.strip() == "First title"
    assert markers[1].body_text.strip() == "Second title"
    assert markers[0].span == markers[1].span, "Segments should share one comment span"


def test_trailing_close_after_code() -> None:
    """A marker comment following code on the same line keeps the code as lead."""
    markers = tokenize("doSomething() // CLOSE: b\n", "typescript")
    assert [(m.kind, m.id) for m in markers] == [("close", "b")]
    assert markers[0].span.lead == "doSomething() "


def test_jsx_markers_and_anonymous_close() -> None:
    """JSX expression comments are recognized; a bare CLOSE: is anonymous."""
    source = textwrap.dedent(
        """\
        <div>
          {/* REF: jsx-part */}
          <p>Hi</p>
          {/* CLOSE: */}
        </div>
        """
    )
    markers = tokenize(source, "tsx")
    assert [(m.kind, m.id) for m in markers] == [("open", "jsx-part"), ("close", None)]
    assert {m.style for m in markers} == {"jsx"}
    assert not any(m.malformed for m in markers)


@pytest.mark.parametrize(
    ("source", "syntax", "style"),
    [
        ("-- REF: users\n-- Users table\nCREATE TABLE users();\n-- CLOSE: users\n", "sql", "dash"),
        ("/* REF: btn */\n.btn { color: red; }\n/* CLOSE: btn */\n", "css", "block"),
        ("# REF: main\nprint(1)\n# CLOSE: main\n", "python", "hash"),
        ("<!-- REF: intro -->\nHello\n<!-- CLOSE: intro -->\n", "markdown", "html"),
    ],
)
def test_other_comment_styles(source: str, syntax: str, style: str) -> None:
    """Each syntax family finds markers in its own comment style."""
    markers = tokenize(source, syntax)
    assert [m.kind for m in markers] == ["open", "close"]
    assert {m.style for m in markers} == {style}


def test_malformed_markers_are_flagged() -> None:
    """A REF: without id or a CLOSE: with an unusable id is malformed."""
    markers = tokenize("// REF:\nfoo()\n// CLOSE: ???\n", "typescript")
    assert [m.malformed for m in markers] == [True, True]
    assert all(m.problem for m in markers)
    assert not any(m.is_open or m.is_close for m in markers)


def test_plain_comments_produce_nothing() -> None:
    """Comments without markers are ordinary code."""
    assert tokenize("// just a note\n/* another */\nfoo()\n", "typescript") == []


def test_unterminated_block_ends_at_last_line() -> None:
    """A block comment never closed runs to the end of the file."""
    markers = tokenize("/* REF: a\nstill comment\n", "typescript")
    assert len(markers) == 1
    assert (markers[0].line_start, markers[0].line_end) == (1, 2)


def test_unknown_syntax_tries_every_style() -> None:
    """Without a known syntax every comment style is attempted."""
    assert _kinds("# REF: a\nx\n# CLOSE: a\n", "cobol") == [("open", "a"), ("close", "a")]


def test_styles_for_puts_family_first() -> None:
    names = [style.name for style in styles_for("sql")]
    assert names[:2] == ["dash", "block"]
    assert sorted(names) == sorted(["jsx", "block", "html", "slash", "dash", "hash"])


def test_comment_after_close_is_not_part_of_marker() -> None:
    """A line comment following a ``CLOSE:`` line starts fresh commentary."""
    source = (
        "// REF: check\nif (error) {\n// CLOSE: check\n"
        "  // Not found\n  return null\n}\n"
    )
    markers = tokenize(source, "typescript")
    close = markers[-1]
    assert (close.kind, close.id) == ("close", "check")
    assert (close.line_start, close.line_end) == (3, 3)
    assert close.body_text == ""


def test_multi_word_identifier_is_joined() -> None:
    """Words after the identifier with no separator extend the identifier."""
    source = "// REF: Control flow\nif (a) {}\n// CLOSE: Control flow\n"
    markers = tokenize(source, "typescript")
    assert [(m.kind, m.id) for m in markers] == [
        ("open", "Control-flow"),
        ("close", "Control-flow"),
    ]
    assert markers[0].body_text == ""


def test_block_closers_are_compiled() -> None:
    for name in ("jsx", "block", "html"):
        assert isinstance(COMMENT_STYLES[name].block_close, re.Pattern), name
