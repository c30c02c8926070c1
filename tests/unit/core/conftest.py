"""Shared fixtures for core unit tests"""

from datetime import datetime
from pathlib import Path

import pytest

from mdsite.core.models import Document, Layout


POST_MD = """\
---
layout: post
title: {title}
{extra}---

{body}
"""


def _make_doc(slug: str, day: int, **fields) -> Document:
    """Build a Document dated 2015-08-<day> with sensible defaults."""
    fields.setdefault("title", slug.replace("-", " ").title())
    fields.setdefault("layout", Layout.post)
    fields.setdefault("source", f"2015-08-{day:02d}-{slug}.md")
    fields.setdefault("permalink", f"/2015/08/{day:02d}/{slug}/")
    return Document(slug=slug, date=datetime(2015, 8, day), **fields)


@pytest.fixture(name="make_doc")
def make_doc_fixture():
    return _make_doc


@pytest.fixture(name="content_dir")
def content_dir_fixture(tmp_path) -> Path:
    d = tmp_path / "content"
    d.mkdir()
    return d


@pytest.fixture(name="write_post")
def write_post_fixture(content_dir):
    """Write a post file into content_dir; extra is raw YAML lines appended to the header."""
    def _write(name: str, title: str = "A Post", body: str = "Body text.", extra: str = "") -> Path:
        p = content_dir / name
        p.write_text(POST_MD.format(title=title, extra=extra, body=body), encoding="utf-8")
        return p
    return _write
