"""Side-by-side documentation viewer for annotated teaching source.

This package extracts ``REF:`` / ``CLOSE:`` annotations from source files,
pairs each documentation section with the stripped code it describes, keeps
the two panes of the viewer in sync, and renders static viewer pages through
the ``docs-viewer`` console script.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from docs_viewer import main
>>> main()  # doctest: +SKIP
>>> from docs_viewer import app
>>> "docs-viewer" in app.name
True
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
