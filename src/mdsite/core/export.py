"""Export pipeline: index, per-document JSON with rendered HTML, and the build report"""

import json
import shutil
from pathlib import Path
from typing import Any

from markdown_it import MarkdownIt

from mdsite.core.collection import Collection
from mdsite.core.models import Document
from mdsite.core.utils.tokens import POST_URL_LINKS, make_parser, ref_links


def _link_targets(doc: Document, collection: Collection) -> dict[str, str]:
    """Map reference name -> permalink of the resolved document."""
    return {
        ref.name: collection.get(ref.resolved).permalink
        for ref in collection.references(doc.slug)
    }


def render_html(doc: Document, collection: Collection, md: MarkdownIt) -> str:
    """Render doc.body to HTML with ref: links and post_url tags pointing at permalinks.

    Unresolved references are left as written.
    """
    targets = _link_targets(doc, collection)
    tokens = md.parse(doc.body, {POST_URL_LINKS: targets})
    for link, name in ref_links(tokens):
        if name in targets:
            link.attrSet('href', targets[name])
    return md.renderer.render(tokens, md.options, {})


def _neighbour(doc: Document | None) -> str | None:
    return doc.slug if doc else None


def build_index_entry(doc: Document, collection: Collection) -> dict[str, Any]:
    """Summary fields for index.json; previous = older, next = newer."""
    return {
        "slug": doc.slug,
        "title": doc.title,
        "date": doc.date.isoformat(),
        "layout": doc.layout.value,
        "summary": doc.summary,
        "permalink": doc.permalink,
        "series": doc.series,
        "tags": list(doc.tags),
        "previous": _neighbour(collection.previous(doc.slug)),
        "next": _neighbour(collection.next(doc.slug)),
    }


def build_document(doc: Document, collection: Collection, md: MarkdownIt) -> dict[str, Any]:
    """Full per-document payload: index fields plus body, html, hash, and references."""
    return {
        **build_index_entry(doc, collection),
        "source": doc.source,
        "hash": doc.hash,
        "body": doc.body,
        "html": render_html(doc, collection, md),
        "references": [
            {"name": r.name, "target": r.target, "slug": r.resolved}
            for r in collection.references(doc.slug)
        ],
    }


def export_collection(
    collection: Collection,
    report,
    output_dir: Path,
    parser_config: str = 'gfm-like',
    ) -> list[tuple[str, Path]]:
    """Write index.json, documents/<slug>.json per document, and report.json.

    documents/ is recreated on every export so removed documents leave no files.
    Returns (slug, json_path) pairs in collection order.
    """
    docs_dir = output_dir / "documents"
    shutil.rmtree(docs_dir, ignore_errors=True)
    docs_dir.mkdir(parents=True, exist_ok=True)
    md = make_parser(parser_config)

    results = []
    for doc in collection:
        out = docs_dir / f"{doc.slug}.json"
        out.write_text(
            json.dumps(build_document(doc, collection, md), indent=2, ensure_ascii=False),
            encoding='utf-8',
        )
        results.append((doc.slug, out))

    (output_dir / "index.json").write_text(
        json.dumps([build_index_entry(d, collection) for d in collection], indent=2, ensure_ascii=False),
        encoding='utf-8',
    )
    (output_dir / "report.json").write_text(
        json.dumps([i.model_dump() for i in report.issues], indent=2, ensure_ascii=False),
        encoding='utf-8',
    )
    return results
