"""High-level orchestration for side-by-side viewer page generation.

This module walks one project's files, parses each through the annotation
pipeline, and writes a static viewer page per file: rendered documentation
sections on one side, highlighted stripped code on the other, and the file
tree in a sidebar. Next to each page it writes a JSON sidecar holding the
sections, pairings and scroll anchors the in-browser synchronizer consumes,
plus a metadata file recording the project's first page for the index.

Example
-------
>>> from pathlib import Path
>>> from docs_viewer.config import load_site_config
>>> from docs_viewer.generator import ViewerPageGenerator
>>> site = load_site_config(Path("config/viewer.yaml"))  # doctest: +SKIP
>>> project = site.get_project("nextjs-firebase")  # doctest: +SKIP
>>> ViewerPageGenerator(project).run()[:1]  # doctest: +SKIP
[PosixPath('public/nextjs-firebase/app/layout.tsx.html')]
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import json
import logging
import os
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from docs_viewer._constants import PROJECT_META_TEMPLATE, SIDECAR_SUFFIX
from docs_viewer.annotations import NoContent, ParsedDocument, document_payload
from docs_viewer.generator.file_tree import build_file_tree, expanded_dirs
from docs_viewer.generator.link_rewriter import _build_link_rewriter
from docs_viewer.generator.models import CodeLineModel, SectionModel
from docs_viewer.generator.renderer import HtmlContentRenderer
from docs_viewer.projects import ProjectResolver, load_document
from docs_viewer.sync import DeepLink, DeepLinkTarget, SyncTable, resolve_deep_link

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from docs_viewer.config import ProjectConfig

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True)
class _RenderedFile:
    """Everything needed to write one viewer page and its sidecar."""

    path: str
    html_path: Path
    sidecar_path: Path
    html: str
    sidecar: dict[str, typ.Any]


class ViewerPageGenerator:
    """Render every file of a project into a side-by-side viewer page."""

    def __init__(
        self,
        project: ProjectConfig,
        *,
        templates_dir: Path | None = None,
        output_dir: Path | None = None,
        resolver: ProjectResolver | None = None,
        index_path: Path | None = None,
    ) -> None:
        """Initialize the generator with configuration and template context.

        Parameters
        ----------
        project : ProjectConfig
            Project whose files are rendered.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package
            templates.
        output_dir : Path, optional
            Override for the HTML output directory; defaults to
            ``project.output_dir``. Pages land under ``<output_dir>/<key>/``.
        resolver : ProjectResolver, optional
            Source of file listings and contents; built from ``project`` when
            omitted.
        index_path : Path, optional
            Location of the project index page, linked from each header.
        """
        self.project = project
        default_templates = Path(__file__).resolve().parents[1] / "templates"
        self.templates_dir = templates_dir or default_templates
        self.output_dir = (output_dir or project.output_dir) / project.key
        self.resolver = resolver or ProjectResolver(project)
        self.index_path = index_path
        self.renderer = HtmlContentRenderer(project.pygments_style)
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("viewer_page.jinja")

    def run(
        self,
        *,
        files: typ.Sequence[str] | None = None,
        deep_link: DeepLink | None = None,
    ) -> list[Path]:
        """Render viewer pages to disk.

        Parameters
        ----------
        files : Sequence[str], optional
            Relative paths to render; defaults to every file of the project.
        deep_link : DeepLink, optional
            Line range to pre-select on every rendered page.

        Returns
        -------
        list[Path]
            Paths to the generated HTML pages, in file order.

        Raises
        ------
        RuntimeError
            If the project contains no recognized source files.

        Notes
        -----
        Side effects include writing HTML pages, JSON sidecars, and the
        project metadata file into the output directory.
        """
        all_files = self.resolver.list_files()
        if not all_files:
            msg = f"No source files found for project '{self.project.key}'."
            raise RuntimeError(msg)
        targets = list(files) if files else all_files

        generated_at = dt.datetime.now(dt.UTC)
        written: list[Path] = []
        for path in targets:
            rendered = self._render_file(path, all_files, deep_link, generated_at)
            rendered.html_path.parent.mkdir(parents=True, exist_ok=True)
            rendered.html_path.write_text(rendered.html, encoding="utf-8")
            rendered.sidecar_path.write_text(
                json.dumps(rendered.sidecar, ensure_ascii=False), encoding="utf-8"
            )
            written.append(rendered.html_path)
        self._write_metadata(self.page_path(all_files[0]))
        logger.info("project %s: wrote %d pages", self.project.key, len(written))
        return written

    def page_path(self, path: str) -> Path:
        """Return the output location of the viewer page for ``path``."""
        return self.output_dir / f"{path}.html"

    def _render_file(
        self,
        path: str,
        all_files: list[str],
        deep_link: DeepLink | None,
        generated_at: dt.datetime,
    ) -> _RenderedFile:
        """Parse ``path`` and render its page HTML and sidecar payload."""
        document = load_document(self.resolver, path)
        html_path = self.page_path(path)
        sidecar_path = html_path.with_name(f"{Path(path).name}{SIDECAR_SUFFIX}")
        tree = build_file_tree(all_files, current_path=path)

        sections: list[SectionModel] = []
        code_lines: list[CodeLineModel] = []
        target: DeepLinkTarget | None = None
        sidecar: dict[str, typ.Any] = {"project": self.project.key, "path": path}
        if isinstance(document, ParsedDocument):
            table = SyncTable.from_document(document)
            if deep_link is not None:
                target = resolve_deep_link(table, deep_link)
            sections = self._build_section_models(document, table, path, all_files, target)
            code_lines = self._build_code_lines(document, table, target)
            sidecar.update(document_payload(document))
            sidecar["anchors"] = {
                "doc": list(table.doc_starts),
                "code": list(table.code_starts),
                "original": list(table.original_starts),
            }
            sidecar["deepLink"] = _deep_link_payload(target)
        else:
            sidecar["noContent"] = document.reason

        context = {
            "project": self.project,
            "theme": self.project.theme,
            "file_path": path,
            "file_count": len(all_files),
            "tree": tree,
            "expanded": expanded_dirs(path),
            "sections": sections,
            "code_lines": code_lines,
            "no_content": document.reason if isinstance(document, NoContent) else None,
            "deep_link": target,
            "pygments_css": self.renderer.stylesheet,
            "sidecar_href": sidecar_path.name,
            "index_href": self._index_href(html_path),
            "html_title": f"{path} | {self.project.title} | {self.project.theme.site_name}",
            "generated_at": generated_at,
        }
        return _RenderedFile(
            path=path,
            html_path=html_path,
            sidecar_path=sidecar_path,
            html=self.template.render(**context),
            sidecar=sidecar,
        )

    def _build_section_models(
        self,
        document: ParsedDocument,
        table: SyncTable,
        path: str,
        all_files: list[str],
        target: DeepLinkTarget | None,
    ) -> list[SectionModel]:
        """Render each pairing into a SectionModel for the documentation pane."""
        renderer = self.renderer.with_links(
            _build_link_rewriter(self.project, path, all_files)
        )
        models: list[SectionModel] = []
        for index, pairing in enumerate(document.pairings):
            section = pairing.section
            code_range = pairing.code_range
            models.append(
                SectionModel(
                    id=section.id,
                    title=section.title,
                    depth=section.depth,
                    order=section.order,
                    annotated=section.annotated,
                    body_html=renderer.markdown(section.body),
                    doc_line=table.doc_starts[index],
                    original_start=section.original_range.start,
                    original_end=section.original_range.end,
                    code_start=code_range.start if code_range else None,
                    code_end=code_range.end if code_range else None,
                    highlighted=target is not None and target.section_id == section.id,
                )
            )
        return models

    def _build_code_lines(
        self,
        document: ParsedDocument,
        table: SyncTable,
        target: DeepLinkTarget | None,
    ) -> list[CodeLineModel]:
        """Highlight the stripped code and tag each line with its section."""
        fragments = self.renderer.code_lines(document.stripped_code, document.syntax)
        highlight = target.code_highlight if target else None
        lines: list[CodeLineModel] = []
        for number, fragment in enumerate(fragments, start=1):
            section = table.section_at("code", number)
            lines.append(
                CodeLineModel(
                    number=number,
                    html=fragment,
                    original_line=document.line_map.to_original(number),
                    section_id=section.id if section else None,
                    highlighted=highlight is not None and number in highlight,
                )
            )
        return lines

    def _index_href(self, html_path: Path) -> str | None:
        if self.index_path is None:
            return None
        rel_path = Path(os.path.relpath(self.index_path, start=html_path.parent))
        return rel_path.as_posix()

    def _metadata_path(self) -> Path:
        """Return the path to the metadata JSON file for this project."""
        filename = PROJECT_META_TEMPLATE.format(key=self.project.key)
        return self.output_dir / filename

    def _write_metadata(self, first_page: Path) -> None:
        """Persist the metadata JSON that records the project's first page."""
        metadata = {
            "first_file": first_page.relative_to(self.output_dir).as_posix(),
            "file_count": len(self.resolver.list_files()),
        }
        path = self._metadata_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            path.write_text(json.dumps(metadata), encoding="utf-8")
        except OSError:  # pragma: no cover - IO issues
            logger.warning("could not write project metadata to %s", path)


def _deep_link_payload(target: DeepLinkTarget | None) -> dict[str, typ.Any] | None:
    if target is None:
        return None
    highlight = target.code_highlight
    return {
        "sectionId": target.section_id,
        "docLine": target.doc_line,
        "codeLine": target.code_line,
        "codeHighlight": [highlight.start, highlight.end] if highlight else None,
        "clamped": target.clamped,
    }


__all__ = ["ViewerPageGenerator"]
