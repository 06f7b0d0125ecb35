"""Unit tests for core/scan.py"""

import datetime as dt
from pathlib import Path

import pytest

from mdsite.core.errors import DuplicateSlug, InvalidFilename
from mdsite.core.scan import collect_sources, discover_files, parse_filename, scan_sources


@pytest.mark.parametrize("name,date,slug", [
    ("2012-01-28-hello-world.md",     dt.date(2012, 1, 28), "hello-world"),
    ("1999-12-31-party.markdown",     dt.date(1999, 12, 31), "party"),
    ("2020-02-29-leap-day.md",        dt.date(2020, 2, 29), "leap-day"),
    ("2013-05-01-v1.2-release.md",    dt.date(2013, 5, 1), "v1.2-release"),
    ("2014-07-04-2014-07-04.md",      dt.date(2014, 7, 4), "2014-07-04"),
])
def test_parse_filename(name, date, slug):
    """parse_filename extracts the date and the text between date and extension."""
    source = parse_filename(Path(name))
    assert source.date == date
    assert source.slug == slug
    assert source.id == f"{date.isoformat()}-{slug}"


@pytest.mark.parametrize("name", [
    "hello-world.md",
    "2012-1-28-short-month.md",
    "2012-01-28.md",
    "2012-01-28-.md",
    "about.md",
])
def test_parse_filename_rejects_pattern(name):
    """Names not matching YYYY-MM-DD-slug.ext raise InvalidFilename."""
    with pytest.raises(InvalidFilename):
        parse_filename(Path(name))


@pytest.mark.parametrize("name", ["2012-02-30-nope.md", "2013-13-01-nope.md", "2013-00-10-nope.md"])
def test_parse_filename_rejects_invalid_date(name):
    """A well-formed name with an impossible calendar date raises InvalidFilename."""
    with pytest.raises(InvalidFilename, match="invalid date"):
        parse_filename(Path(name))


def test_discover_files_filters_extensions(posts_dir, write_post):
    """discover_files keeps configured extensions and skips dot-files."""
    write_post("2012-01-01-a.md", "a")
    write_post("2012-01-02-b.markdown", "b")
    write_post("notes.txt", "x")
    write_post(".2012-01-03-hidden.md", "h")
    names = [p.name for p in discover_files(posts_dir)]
    assert names == ["2012-01-01-a.md", "2012-01-02-b.markdown"]


def test_discover_files_recurses(posts_dir, write_post):
    """Posts in subdirectories are found."""
    write_post("2012/2012-01-01-a.md", "a")
    assert len(discover_files(posts_dir)) == 1


def test_scan_sources_is_restartable(posts_dir, write_post):
    """Calling scan_sources again rescans and sees new files."""
    write_post("2012-01-01-a.md", "a")
    assert [s.slug for s in scan_sources(posts_dir)] == ["a"]
    write_post("2012-01-02-b.md", "b")
    assert [s.slug for s in scan_sources(posts_dir)] == ["a", "b"]


def test_scan_sources_raises_on_invalid_name(posts_dir, write_post):
    """scan_sources does not skip bad names silently."""
    write_post("untitled.md", "x")
    with pytest.raises(InvalidFilename):
        list(scan_sources(posts_dir))


def test_scan_sources_raises_on_duplicate(posts_dir, write_post):
    """Two files with the same (date, slug) raise DuplicateSlug."""
    write_post("2012-01-01-a.md", "a")
    write_post("2012-01-01-a.markdown", "a")
    with pytest.raises(DuplicateSlug):
        list(scan_sources(posts_dir))


def test_collect_sources_reports_every_bad_file(posts_dir, write_post):
    """collect_sources keeps going and returns each error alongside valid sources."""
    write_post("2012-01-01-a.md", "a")
    write_post("2012-01-01-a.markdown", "a")
    write_post("draft.md", "d")
    write_post("2012-01-05-ok.md", "ok")

    sources, errors = collect_sources(posts_dir)

    assert [s.slug for s in sources] == ["ok"]
    codes = sorted(e.code for e in errors)
    assert codes == ["DuplicateSlug", "DuplicateSlug", "InvalidFilename"]
