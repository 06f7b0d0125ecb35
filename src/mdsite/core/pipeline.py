"""Pipeline step functions: per-document build, index barrier, and site output"""

import json
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from typing import Collection

import structlog

from mdsite.config import Settings
from mdsite.core.builder import build_document
from mdsite.core.errors import PermalinkCollision, PipelineError, ReadError
from mdsite.core.index import build_index
from mdsite.core.models import BuildReport, DocResult, Failure, Index, SourceFile
from mdsite.core.permalink import output_path
from mdsite.core.scan import collect_sources
from mdsite.render.highlight import stylesheet
from mdsite.render.layouts import LayoutRegistry, render_page, site_context, summary
from mdsite.render.markdown import MarkdownConverter


logger = structlog.get_logger(__name__)


def _failure(e: PipelineError) -> Failure:
    return Failure(code=e.code, path=str(e.path), message=e.message)


def _read(source: SourceFile) -> str:
    try:
        return source.path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(f"cannot read file: {e}", source.path) from e


def process_source(source: SourceFile, settings: Settings, layouts: Collection[str]) -> DocResult:
    """Read and build one source file end-to-end; content errors become a Failure."""
    path = str(source.path)
    try:
        document, issues = build_document(source, _read(source), settings, layouts)
    except PipelineError as e:
        logger.warning("build.document_failed", path=path, code=e.code, error=e.message)
        return DocResult(path=path, failure=_failure(e))
    logger.debug("build.document_built", path=path, id=document.id)
    return DocResult(path=path, document=document, issues=issues)


def _split_collisions(results: list[DocResult]) -> tuple[list[DocResult], list[Failure]]:
    """Fail every document whose output file is shared with another document."""
    groups: dict[PurePosixPath, list[DocResult]] = defaultdict(list)
    for r in results:
        if r.document:
            groups[output_path(r.document.permalink)].append(r)

    kept, failures = [], []
    for r in results:
        if not r.document or len(groups[output_path(r.document.permalink)]) == 1:
            kept.append(r)
            continue
        others = [o.path for o in groups[output_path(r.document.permalink)] if o is not r]
        e = PermalinkCollision(
            f"permalink {r.document.permalink!r} is also used by {', '.join(others)}",
            Path(r.path),
        )
        logger.warning("build.permalink_collision", path=r.path, permalink=r.document.permalink)
        failures.append(_failure(e))
    return kept, failures


def run_documents(
    settings: Settings,
    layouts: Collection[str],
    posts_dir: Path | None = None,
    ) -> BuildReport:
    """Scan, build every document on a worker pool, then build the Index after all finish."""
    root = posts_dir or Path(settings.posts_dir)
    sources, scan_errors = collect_sources(root, settings.extensions)

    with ThreadPoolExecutor(max_workers=settings.workers) as pool:
        futures = [pool.submit(process_source, s, settings, layouts) for s in sources]
        results = [f.result() for f in futures]

    results, collisions = _split_collisions(results)

    failures = [_failure(e) for e in scan_errors]
    failures += [r.failure for r in results if r.failure]
    failures += collisions
    failures.sort(key=lambda f: f.path)
    issues = [i for r in results for i in r.issues]

    index = build_index(r.document for r in results if r.document)
    logger.info(
        "build.indexed",
        documents=len(index.documents), failures=len(failures), issues=len(issues),
    )
    return BuildReport(index=index, failures=failures, issues=issues)


def _dump(data) -> str:
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False, default=str) + "\n"


def index_json(index: Index) -> dict:
    """Chronological list and tag index as plain data."""
    return {
        "posts": [summary(d) for d in index.documents],
        "tags": {tag: [d.id for d in docs] for tag, docs in index.tags.items()},
    }


def write_site(
    report: BuildReport,
    settings: Settings,
    registry: LayoutRegistry,
    output_dir: Path,
    ) -> list[Path]:
    """Render every built document at its permalink plus index.json, report.json and CSS."""
    converter = MarkdownConverter(settings.parser_config, settings.highlight_style)
    site = site_context(report.index, settings)
    written: list[Path] = []

    root = output_dir.resolve()

    def write(rel: Path, text: str) -> None:
        dest = output_dir / rel
        if not dest.resolve().is_relative_to(root):
            raise ValueError(f"output path {rel} is outside {output_dir}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(text, encoding="utf-8")
        written.append(dest)

    for doc in report.index.documents:
        content = converter.convert(doc)
        write(Path(output_path(doc.permalink)), render_page(doc, content, report.index, registry, site))

    write(Path("assets") / "highlight.css", stylesheet(settings.highlight_style))
    write(Path("index.json"), _dump(index_json(report.index)))
    write(Path("report.json"), _dump(report.summary()))
    return written


def run_build(
    settings: Settings,
    posts_dir: Path | None = None,
    output_dir: Path | None = None,
    write: bool = True,
    ) -> BuildReport:
    """Full build: documents -> index -> rendered output. write=False stops after the index."""
    registry = LayoutRegistry(Path(settings.layouts_dir))
    report = run_documents(settings, registry, posts_dir)
    if write:
        out = output_dir or Path(settings.output_dir)
        paths = write_site(report, settings, registry, out)
        report = report.model_copy(update={"written": [str(p) for p in paths]})
    logger.info("build.complete", documents=len(report.documents), written=len(report.written))
    return report
