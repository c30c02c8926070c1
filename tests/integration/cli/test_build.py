"""Integration tests for the build, check and list commands"""

import json

import pytest
from typer.testing import CliRunner

from mdsite.cli.cli import app


POST = "---\nlayout: post\ntitle: {title}\n{extra}---\n\n{body}\n"


@pytest.fixture(name="site")
def site_fixture(tmp_path, monkeypatch):
    """A content directory with three posts in one series and an about page."""
    monkeypatch.chdir(tmp_path)
    content = tmp_path / "content"
    content.mkdir()
    (content / "2015-08-12-mvvm-intro.md").write_text(
        POST.format(title="MVVM Intro", extra="series: mvvm\n", body="Start here.")
    )
    (content / "2015-08-18-mvvm-bindings.md").write_text(
        POST.format(title="MVVM Bindings", extra="series: mvvm\n",
                    body="Following [the intro](ref:series:previous).")
    )
    (content / "2015-08-25-di.md").write_text(
        POST.format(title="Dependency Injection", extra="", body="See {% post_url 2015-08-12-mvvm-intro %}.")
    )
    (content / "about.md").write_text(
        "---\nlayout: page\ntitle: About\ndate: 2015-08-01\n---\n\nAbout this site.\n"
    )
    return tmp_path


def test_build_cmd_runs_full_pipeline(site):
    """build writes index, per-document JSON and the report."""
    runner = CliRunner()
    result = runner.invoke(app, ["build", "content", "--out-dir", str(site / "dist")])

    assert result.exit_code == 0, result.output
    assert "Exported 4 document(s)" in result.output
    index = json.loads((site / "dist" / "index.json").read_text())
    assert [e["slug"] for e in index] == ["di", "mvvm-bindings", "mvvm-intro", "about"]
    bindings = json.loads((site / "dist" / "documents" / "mvvm-bindings.json").read_text())
    assert 'href="/2015/08/12/mvvm-intro/"' in bindings["html"]


def test_build_uses_source_dir_from_config(site):
    (site / "mdsite.yaml").write_text("source_dir: content\noutput_dir: site-out\n")
    result = CliRunner().invoke(app, ["build"])
    assert result.exit_code == 0, result.output
    assert (site / "site-out" / "index.json").exists()


def test_build_fails_on_duplicate_slug(site):
    """A duplicate slug fails the build and nothing is exported."""
    (site / "content" / "2015-09-01-copy.md").write_text(
        POST.format(title="Copy", extra="slug: di\n", body="Same slug.")
    )
    result = CliRunner().invoke(app, ["build", "content", "--out-dir", str(site / "dist")])
    assert result.exit_code == 1
    assert "DuplicateIdentifierError" in result.output
    assert not (site / "dist" / "index.json").exists()


def test_check_reports_all_problems(site):
    """check lists every problem in one run; non-fatal problems exit 0 unless --strict."""
    (site / "content" / "2015-09-01-untitled.md").write_text("---\nlayout: post\n---\nBody\n")
    (site / "content" / "2015-09-02-lost.md").write_text(
        POST.format(title="Lost", extra="", body="[gone](ref:nowhere)")
    )
    runner = CliRunner()

    result = runner.invoke(app, ["check", "content"])
    assert result.exit_code == 0, result.output
    assert "MissingFieldError" in result.output
    assert "DanglingReferenceError" in result.output
    assert "2015-09-01-untitled.md" in result.output

    strict = runner.invoke(app, ["check", "content", "--strict"])
    assert strict.exit_code == 1


def test_list_cmd(site):
    result = CliRunner().invoke(app, ["list", "content", "--layout", "page"])
    assert result.exit_code == 0, result.output
    assert "2015-08-01  about  About" in result.output
    assert "mvvm-intro" not in result.output


def test_list_cmd_unknown_layout(site):
    result = CliRunner().invoke(app, ["list", "content", "--layout", "draft"])
    assert result.exit_code == 1


def test_missing_source_path(site):
    result = CliRunner().invoke(app, ["check", "does-not-exist"])
    assert result.exit_code == 1
    assert "does not exist" in result.output
