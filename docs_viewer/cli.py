"""Cyclopts CLI entrypoint for the docs-viewer static site and parse tools.

The ``docs-viewer`` console script defined here renders side-by-side viewer
pages for every configured project and the project index, and exposes the
annotation pipeline for inspection: ``parse`` prints the sections, pairings
and diagnostics of one file, and ``resolve`` shows where a ``line``/``lineEnd``
deep link lands in both panes.

Examples
--------
Generate every project for the default configuration:

>>> from docs_viewer.cli import main
>>> main()  # doctest: +SKIP

Render one file of one project with a deep link pre-selected:

>>> from docs_viewer.cli import app
>>> app(
...     ["generate", "--project", "nextjs-firebase", "--file", "app/page.tsx",
...      "--line", "12"]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import json
import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .annotations import NoContent, document_payload, parse_document
from .config import load_site_config
from .generator import ViewerPageGenerator
from .project_index import ProjectIndexBuilder
from .projects import ProjectResolver, syntax_for_path
from .sync import DeepLink, SyncTable, resolve_deep_link

DEFAULT_CONFIG = Path("config/viewer.yaml")
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

app = App(name="docs-viewer", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT
    )


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _deep_link(line: int | None, line_end: int | None) -> DeepLink | None:
    if line is None:
        return None
    if line < 1:
        msg = "--line must be a positive line number."
        raise ValueError(msg)
    return DeepLink(line=line, line_end=line_end)


@app.command(help="Generate side-by-side viewer pages and the project index.")
def generate(
    *,
    project: typ.Annotated[
        str | None, Parameter(help="Project identifier", env_var="INPUT_PROJECT")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUTPUT_DIR"),
    ] = None,
    file: typ.Annotated[
        list[str] | None,
        Parameter(help="Render only these project-relative files"),
    ] = None,
    line: typ.Annotated[
        int | None, Parameter(help="Deep-link start line (original file)")
    ] = None,
    line_end: typ.Annotated[
        int | None, Parameter(help="Deep-link end line (original file)")
    ] = None,
    verbose: typ.Annotated[bool, Parameter(help="Enable debug logging")] = False,
) -> None:
    """Generate viewer pages for the requested site configuration.

    Parameters
    ----------
    project : str or None, optional
        Specific project key to render; when ``None`` (default) all projects
        are rendered.
    config : Path, optional
        Path to the ``viewer.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``).
    output_dir : Path or None, optional
        Override output directory for single-project rendering.
    file : list[str] or None, optional
        Restrict rendering to these files of the selected project.
    line, line_end : int or None, optional
        Deep link pre-selected on every rendered page.
    verbose : bool, optional
        Log parser diagnostics and progress at debug level.

    Raises
    ------
    ValueError
        If ``output_dir`` or ``file`` is supplied when more than one project
        is requested, or ``line`` is not positive.
    """
    _configure_logging(verbose)
    site_config = load_site_config(config)

    if project:
        target_projects = [site_config.get_project(project)]
    else:
        target_projects = list(site_config.projects.values())

    if len(target_projects) > 1 and (output_dir or file):
        msg = "Cannot override output_dir/file when generating multiple projects."
        raise ValueError(msg)
    deep_link = _deep_link(line, line_end)

    for project_config in target_projects:
        with ProjectResolver(project_config) as resolver:
            generator = ViewerPageGenerator(
                project_config,
                output_dir=output_dir,
                resolver=resolver,
                index_path=site_config.index_output,
            )
            written = generator.run(files=file, deep_link=deep_link)
        for path in written:
            print(f"wrote {_format_path(path)}")
    index_path = ProjectIndexBuilder(site_config).run()
    print(f"wrote {_format_path(index_path)}")


@app.command(help="Print the sections, pairings and diagnostics of one file.")
def parse(
    path: Path,
    *,
    syntax: typ.Annotated[
        str | None, Parameter(help="Syntax family; guessed from the extension")
    ] = None,
    as_json: typ.Annotated[
        bool, Parameter(name="--json", help="Emit the JSON payload")
    ] = False,
    verbose: typ.Annotated[bool, Parameter(help="Enable debug logging")] = False,
) -> None:
    """Parse ``path`` and print the result.

    Parameters
    ----------
    path : Path
        Source file to parse.
    syntax : str or None, optional
        Syntax family overriding the extension-based guess.
    as_json : bool, optional
        Print the ``{sections, strippedCode, pairings}`` payload plus
        diagnostics as JSON instead of a table.
    verbose : bool, optional
        Enable debug logging.
    """
    _configure_logging(verbose)
    text = path.read_text(encoding="utf-8")
    document = parse_document(text, syntax or syntax_for_path(path))
    if isinstance(document, NoContent):
        print(f"{path}: no content ({document.reason})")
        return

    if as_json:
        payload = document_payload(document)
        payload["diagnostics"] = [
            {"code": item.code, "line": item.line, "message": item.message}
            for item in document.diagnostics
        ]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for pairing in document.pairings:
        section = pairing.section
        code = pairing.code_range
        code_label = f"{code.start}-{code.end}" if code else "-"
        span = section.original_range
        indent = "  " * section.depth
        marker = "" if section.annotated else " (unannotated)"
        print(
            f"{indent}{section.id}: lines {span.start}-{span.end} -> code {code_label}"
            f"{marker}"
        )
    for item in document.diagnostics:
        print(f"{path}:{item.line}: {item.code}: {item.message}")


@app.command(help="Show where a line/lineEnd deep link lands in both panes.")
def resolve(
    path: Path,
    *,
    line: typ.Annotated[int, Parameter(help="Start line (original file)")],
    line_end: typ.Annotated[
        int | None, Parameter(help="End line (original file)")
    ] = None,
    syntax: typ.Annotated[
        str | None, Parameter(help="Syntax family; guessed from the extension")
    ] = None,
) -> None:
    """Resolve a deep link against ``path`` and print both pane positions."""
    text = path.read_text(encoding="utf-8")
    document = parse_document(text, syntax or syntax_for_path(path))
    if isinstance(document, NoContent):
        print(f"{path}: no content ({document.reason})")
        return
    link = _deep_link(line, line_end)
    table = SyncTable.from_document(document)
    target = resolve_deep_link(table, link) if link else None
    if target is None:  # pragma: no cover - parsed documents always have pairings
        print(f"{path}: nothing to resolve")
        return
    highlight = target.code_highlight
    highlight_label = f"{highlight.start}-{highlight.end}" if highlight else "-"
    clamped = " (clamped)" if target.clamped else ""
    print(f"section {target.section_id}{clamped}")
    print(f"doc line {target.doc_line}")
    print(f"code line {target.code_line}, highlight {highlight_label}")


def main() -> None:
    """Invoke the Cyclopts application that powers the `docs-viewer` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
