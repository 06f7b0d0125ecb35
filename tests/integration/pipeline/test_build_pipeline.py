"""Integration tests for the scan -> build -> index -> render pipeline.

The corpus below is written into a temporary _posts directory for each test.

    2012-01-28-reference-links.md   layout post, tags [a, b], a reference link
                                    defined after use and a fenced block
                                    containing a definition lookalike
    2012-01-20-plain.md             no front matter, tags none
    2012-01-20-another.md           same date as plain; tags [b]
    2012-02-01-broken-fence.md      unterminated fence -> UnbalancedCodeFence
    notes.md                        bad filename -> InvalidFilename

Chronological order of the built documents:
    2012-01-28-reference-links, 2012-01-20-another, 2012-01-20-plain
"""

import json

import pytest

from mdsite.core.pipeline import run_build, run_documents
from mdsite.render.layouts import LayoutRegistry


CORPUS = {
    "2012-01-28-reference-links.md": """\
---
layout: post
title: Reference Links
tags: [a, b]
---
See [here][1] and [there][EX].

```
[1]: http://wrong.example
```

[1]: http://example.com "Example"
[ex]: http://example.org
""",
    "2012-01-20-plain.md": "Just text with a [bracket][unknown].\n",
    "2012-01-20-another.md": "---\ntags: [b]\n---\nAnother post.\n",
    "2012-02-01-broken-fence.md": "```python\nprint('never closed')\n",
    "notes.md": "Not a post.\n",
}


@pytest.fixture(autouse=True)
def corpus(write_post):
    for name, text in CORPUS.items():
        write_post(name, text)


def test_documents_and_failures(settings):
    """Good documents build; per-document failures are collected, not raised."""
    report = run_documents(settings, LayoutRegistry(None))
    assert [d.id for d in report.documents] == [
        "2012-01-28-reference-links", "2012-01-20-another", "2012-01-20-plain",
    ]
    assert sorted(f.code for f in report.failures) == ["InvalidFilename", "UnbalancedCodeFence"]
    assert [i.code for i in report.issues] == ["UnresolvedReference"]


def test_reference_resolution_ignores_code(settings):
    """The definition lookalike in the fence does not shadow or duplicate the real one."""
    report = run_documents(settings, LayoutRegistry(None))
    doc = report.index.get("2012-01-28-reference-links")
    assert {(l.text, l.target) for l in doc.links} == {
        ("here", "http://example.com"), ("there", "http://example.org"),
    }
    assert doc.code_blocks[0].text == "[1]: http://wrong.example\n"


def test_tag_index(settings):
    report = run_documents(settings, LayoutRegistry(None))
    tags = report.index.tags
    assert [d.id for d in tags["b"]] == ["2012-01-28-reference-links", "2012-01-20-another"]
    assert [d.id for d in tags["a"]] == ["2012-01-28-reference-links"]


def test_build_writes_pages_at_permalinks(settings, tmp_path):
    report = run_build(settings)
    out = tmp_path / "_site"
    page = out / "2012" / "01" / "28" / "reference-links" / "index.html"
    assert page.exists()
    html = page.read_text()
    assert '<a href="http://example.com" title="Example">here</a>' in html
    assert "[1]: http://wrong.example" in html
    assert (out / "assets" / "highlight.css").exists()
    assert str(page) in report.written


def test_build_index_and_report_json(settings, tmp_path):
    run_build(settings)
    out = tmp_path / "_site"
    index = json.loads((out / "index.json").read_text())
    assert [p["id"] for p in index["posts"]][0] == "2012-01-28-reference-links"
    assert index["tags"]["a"] == ["2012-01-28-reference-links"]
    report = json.loads((out / "report.json").read_text())
    assert report["documents"] == 3
    assert len(report["failures"]) == 2


def test_build_is_idempotent(settings, tmp_path):
    """Two builds of unchanged input produce byte-identical output."""
    out = tmp_path / "_site"
    run_build(settings)
    first = {p: p.read_bytes() for p in sorted(out.rglob("*")) if p.is_file()}
    run_build(settings)
    second = {p: p.read_bytes() for p in sorted(out.rglob("*")) if p.is_file()}
    assert first == second


def test_strict_mode_exit_code(settings):
    """Strict mode turns any failure or issue into a non-zero exit; otherwise zero."""
    report = run_build(settings, write=False)
    assert report.exit_code(strict=False) == 0
    assert report.exit_code(strict=True) == 1


def test_single_worker_matches_pool(settings):
    """Results do not depend on worker count."""
    pooled = run_documents(settings, LayoutRegistry(None))
    serial = run_documents(settings.model_copy(update={"workers": 1}), LayoutRegistry(None))
    assert [d.model_dump() for d in pooled.documents] == [d.model_dump() for d in serial.documents]
