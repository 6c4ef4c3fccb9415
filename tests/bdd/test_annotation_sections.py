"""Behaviour tests for splitting annotated source into sections.

The scenarios in ``features/annotation_sections.feature`` give a source file
as a docstring, parse it through :func:`docs_viewer.annotations.parse_document`,
and check section ids, nesting, code pairings, diagnostics, and the stripped
code shown in the code pane.

Usage:
    pytest tests/bdd/test_annotation_sections.py -v
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from docs_viewer.annotations import LineRange, ParsedDocument, parse_document

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "annotation_sections.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _document(scenario_state: dict[str, object]) -> ParsedDocument:
    document = scenario_state["document"]
    assert isinstance(document, ParsedDocument), "expected a parsed document"
    return document


@given("an annotated source file")
def given_source(docstring: str, scenario_state: dict[str, object]) -> None:
    """Store the scenario's docstring as the file contents.

    Parameters
    ----------
    docstring : str
        Source text attached to the step in the feature file.
    scenario_state : dict[str, object]
        Shared state receiving the ``source`` key.
    """
    scenario_state["source"] = docstring + "\n"


@when(parsers.parse('the file is parsed as "{syntax}"'))
def when_parsed(syntax: str, scenario_state: dict[str, object]) -> None:
    scenario_state["document"] = parse_document(
        str(scenario_state["source"]), syntax
    )


@then(parsers.parse('the sections are "{names}"'))
def then_sections(names: str, scenario_state: dict[str, object]) -> None:
    expected = [name.strip() for name in names.split(",")]
    annotated = [s.id for s in _document(scenario_state).sections if s.annotated]
    assert annotated == expected, f"expected sections {expected}, got {annotated}"


@then(parsers.parse('section "{section_id}" has parent "{parent_id}"'))
def then_parent(section_id: str, parent_id: str, scenario_state: dict[str, object]) -> None:
    section = _document(scenario_state).section(section_id)
    assert section is not None, f"missing section {section_id!r}"
    assert section.parent_id == parent_id


@then(
    parsers.parse(
        'section "{section_id}" pairs with code lines {start:d} to {end:d}'
    )
)
def then_pairing(
    section_id: str, start: int, end: int, scenario_state: dict[str, object]
) -> None:
    ranges = {p.section.id: p.code_range for p in _document(scenario_state).pairings}
    assert ranges[section_id] == LineRange(start, end), (
        f"expected {section_id!r} to pair with {start}-{end}, got {ranges[section_id]}"
    )


@then(parsers.parse('the diagnostics are "{codes}"'))
def then_diagnostics(codes: str, scenario_state: dict[str, object]) -> None:
    expected = [code.strip() for code in codes.split(",")]
    actual = [d.code for d in _document(scenario_state).diagnostics]
    assert actual == expected


@then(parsers.parse('the stripped code is "{code}"'))
def then_stripped(code: str, scenario_state: dict[str, object]) -> None:
    assert _document(scenario_state).stripped_code.strip() == code
