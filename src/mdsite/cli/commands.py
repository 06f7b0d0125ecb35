"""CLI command implementations"""

import datetime as dt
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml

from mdsite.config import Settings, load_config
from mdsite.core.builder import title_from_slug
from mdsite.core.models import BuildReport
from mdsite.core.pipeline import run_build
from mdsite.core.utils.slug import slugify
from mdsite.log import configure_logging


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    configure_logging(settings.log_level, settings.log_format)
    return settings


def _echo_report(report: BuildReport) -> None:
    """Print failures and issues, then a summary line."""
    for f in report.failures:
        typer.echo(f"  failed [{f.code}]: {f.path}: {f.message}", err=True)
    for i in report.issues:
        typer.echo(f"  warning [{i.code}]: {i.path}: {i.message}", err=True)
    typer.echo(
        f"Built {len(report.documents)} document(s) - "
        f"{len(report.failures)} failed, "
        f"{len(report.issues)} warning(s)"
    )


def _documents(posts: Optional[str], settings: Settings) -> BuildReport:
    """Run the per-document phase and the index, without writing output."""
    posts_dir = Path(posts or settings.posts_dir)
    if not posts_dir.exists():
        _fail(f"Posts directory not found: {posts_dir}")
    return run_build(settings, posts_dir=posts_dir, write=False)


def build_cmd(
    posts: Annotated[Optional[str], typer.Argument(help="Posts directory")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    layouts: Annotated[Optional[str], typer.Option("--layouts-dir", help="Layouts directory")] = None,
    strict: Annotated[Optional[bool], typer.Option("--strict/--no-strict", help="Fail on any error or warning")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Parallel document workers")] = None,
    ):
    """Run the full pipeline: scan -> build documents -> index -> render."""
    settings = _settings(overrides={
        "posts_dir": posts, "output_dir": out, "layouts_dir": layouts,
        "strict": strict, "workers": workers,
    })
    posts_dir = Path(settings.posts_dir)
    if not posts_dir.exists():
        _fail(f"Posts directory not found: {posts_dir}")

    report = run_build(settings, posts_dir=posts_dir, output_dir=Path(settings.output_dir))
    _echo_report(report)
    typer.echo(f"Wrote {len(report.written)} file(s) to {settings.output_dir}/")
    raise typer.Exit(report.exit_code(settings.strict))


def check_cmd(
    posts: Annotated[Optional[str], typer.Argument(help="Posts directory")] = None,
    strict: Annotated[Optional[bool], typer.Option("--strict/--no-strict", help="Fail on any error or warning")] = None,
    ):
    """Validate every document and the index without writing output."""
    settings = _settings(overrides={"strict": strict})
    report = _documents(posts, settings)
    _echo_report(report)
    raise typer.Exit(report.exit_code(settings.strict))


def list_cmd(
    posts: Annotated[Optional[str], typer.Argument(help="Posts directory")] = None,
    ):
    """Print documents newest first."""
    settings = _settings()
    report = _documents(posts, settings)
    if not report.documents:
        typer.echo("No documents found.")
        raise typer.Exit(1)
    for doc in report.documents:
        typer.echo(f"{doc.date.isoformat()}  {doc.permalink}  {doc.title}")


def tags_cmd(
    posts: Annotated[Optional[str], typer.Argument(help="Posts directory")] = None,
    ):
    """Print each tag with its documents in chronological order."""
    settings = _settings()
    report = _documents(posts, settings)
    if not report.index.tags:
        typer.echo("No tags found.")
        raise typer.Exit(1)
    for tag, docs in report.index.tags.items():
        typer.echo(f"{tag} ({len(docs)})")
        for doc in docs:
            typer.echo(f"  {doc.id}")


def new_cmd(
    title: Annotated[str, typer.Argument(help="Post title")],
    date: Annotated[Optional[str], typer.Option("--date", help="YYYY-MM-DD; defaults to today")] = None,
    layout: Annotated[Optional[str], typer.Option("--layout", help="Layout name")] = None,
    tags: Annotated[Optional[list[str]], typer.Option("--tag", help="Tag; repeatable")] = None,
    ):
    """Create a new YYYY-MM-DD-slug.md post with a front-matter stub."""
    settings = _settings()
    try:
        day = dt.date.fromisoformat(date) if date else dt.date.today()
    except ValueError as e:
        _fail(f"Invalid --date {date!r}", e)

    slug = slugify(title)
    if not slug:
        _fail(f"Cannot derive a slug from title {title!r}")

    posts_dir = Path(settings.posts_dir)
    path = posts_dir / f"{day.isoformat()}-{slug}.md"
    if path.exists():
        _fail(f"Post already exists: {path}")

    fm = {"layout": layout or settings.default_layout or "post", "title": title}
    if tags:
        fm["tags"] = list(tags)
    header = yaml.safe_dump(fm, default_flow_style=None, allow_unicode=True, sort_keys=False)
    posts_dir.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\n{header}---\n\n", encoding="utf-8")
    typer.echo(f"Created {path}")
