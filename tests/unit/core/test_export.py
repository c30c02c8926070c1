"""Unit tests for core/export.py"""

import json

import pytest

from mdsite.core.collection import Collection
from mdsite.core.export import build_index_entry, export_collection, render_html
from mdsite.core.models import Reference
from mdsite.core.pipeline import BuildReport, build_collection
from mdsite.core.utils.tokens import make_parser


@pytest.fixture(name="linked")
def linked_fixture(make_doc):
    """Two posts where b links back to a through a ref: link and a post_url tag."""
    a = make_doc("a", 12)
    b = make_doc("b", 18, body="Back to [a](ref:a) or [here]({% post_url 2015-08-12-a %}). [Gone](ref:gone)\n")
    ref = Reference(source="b", name="a", target="a", resolved="a")
    post_url = Reference(source="b", name="2015-08-12-a", target="2015-08-12-a", resolved="a")
    return Collection([a, b], {"b": [ref, post_url]})


def test_render_html_rewrites_references(linked):
    html = render_html(linked.get("b"), linked, make_parser())
    assert html.count('href="/2015/08/12/a/"') == 2
    assert 'href="ref:gone"' in html
    assert "post_url" not in html


def test_index_entry_neighbours(linked):
    entry = build_index_entry(linked.get("b"), linked)
    assert entry["previous"] == "a"
    assert entry["next"] is None
    assert entry["date"] == "2015-08-18T00:00:00"
    assert entry["layout"] == "post"


def test_export_collection_writes_artifacts(tmp_path, linked):
    report = BuildReport()
    results = export_collection(linked, report, tmp_path / "dist")

    assert [slug for slug, _ in results] == ["b", "a"]
    index = json.loads((tmp_path / "dist" / "index.json").read_text())
    assert [e["slug"] for e in index] == ["b", "a"]

    doc = json.loads((tmp_path / "dist" / "documents" / "b.json").read_text())
    assert doc["references"][0] == {"name": "a", "target": "a", "slug": "a"}
    assert "<a href=\"/2015/08/12/a/\">a</a>" in doc["html"]

    assert json.loads((tmp_path / "dist" / "report.json").read_text()) == []


def test_export_report_contents(content_dir, write_post, tmp_path):
    """report.json lists the same issues the build reported."""
    write_post("2015-08-01-x.md", title="X", body="[y](ref:y)\n")
    result = build_collection(content_dir)
    export_collection(result.collection, result.report, tmp_path / "out")
    issues = json.loads((tmp_path / "out" / "report.json").read_text())
    assert [i["kind"] for i in issues] == ["DanglingReferenceError"]
    assert issues[0]["source"] == "2015-08-01-x.md"
    assert issues[0]["severity"] == "error"


def test_render_html_leaves_code_alone(make_doc):
    """post_url tags in code spans and fences render verbatim."""
    a = make_doc("a", 12)
    b = make_doc("b", 18, body="Use `{% post_url 2015-08-12-a %}`.\n\n```\n{% post_url 2015-08-12-a %}\n```\n")
    ref = Reference(source="b", name="2015-08-12-a", target="2015-08-12-a", resolved="a")
    collection = Collection([a, b], {"b": [ref]})
    html = render_html(collection.get("b"), collection, make_parser())
    assert html.count("{% post_url 2015-08-12-a %}") == 2
    assert "/2015/08/12/a/" not in html


def test_export_removes_stale_documents(content_dir, write_post, tmp_path):
    """A document deleted between builds leaves no JSON behind."""
    write_post("2015-08-01-keep.md", title="Keep")
    gone = write_post("2015-08-02-gone.md", title="Gone")
    out = tmp_path / "out"
    result = build_collection(content_dir)
    export_collection(result.collection, result.report, out)
    assert (out / "documents" / "gone.json").exists()

    gone.unlink()
    result = build_collection(content_dir)
    export_collection(result.collection, result.report, out)
    assert sorted(p.name for p in (out / "documents").iterdir()) == ["keep.json"]
    assert [e["slug"] for e in json.loads((out / "index.json").read_text())] == ["keep"]
