"""Cross-document reference extraction and resolution

Two reference sources are recognized:

- the ``refs`` front matter mapping (name -> target)
- body links using the ``ref:`` scheme, e.g. ``[last time](ref:series:previous)``,
  and Jekyll ``{% post_url 2015-08-12-name %}`` tags. For body references the
  name is the target expression itself.

A target is tried as an exact slug, then as a date-prefixed file stem, then
as a series-relative expression ``series:previous`` / ``series:next``.
Dotted chains (``series:previous.previous``) walk one hop per step and are
bounded by ``max_depth``.
"""

from typing import Iterable

from mdsite.core.models import Document, Reference
from mdsite.core.utils.slug import slugify, split_date_prefix
from mdsite.core.utils.tokens import make_parser, post_url_targets, ref_links
from mdsite.errors import ContentError, DanglingReferenceError, UnsupportedReferenceDepthError
from mdsite.logger import get_logger


log = get_logger(__name__)

SERIES_PREFIX = 'series:'
STEPS = {'previous': -1, 'next': 1}


def _sort_key(doc: Document):
    return (doc.date, doc.slug)


class ReferenceResolver:
    """Resolves symbolic references against a fixed set of documents."""

    def __init__(self, documents: Iterable[Document], max_depth: int = 1, parser_config: str = 'gfm-like'):
        docs = list(documents)
        self.max_depth = max_depth
        self._index = {d.slug: d for d in docs}
        self._series: dict[str, list[str]] = {}
        for d in sorted(docs, key=_sort_key):
            if d.series:
                self._series.setdefault(d.series, []).append(d.slug)
        self._md = make_parser(parser_config)

    def extract(self, doc: Document) -> list[tuple[str, str]]:
        """Return (name, target) pairs from metadata refs, then body links, first occurrence wins."""
        found: dict[str, str] = dict(doc.refs)
        tokens, post_urls = post_url_targets(self._md, doc.body)
        for target in post_urls:
            found.setdefault(target, target)
        for _, target in ref_links(tokens):
            found.setdefault(target, target)
        return list(found.items())

    def _walk_series(self, doc: Document, target: str, name: str) -> str:
        steps = target[len(SERIES_PREFIX):].split('.')
        if len(steps) > self.max_depth:
            raise UnsupportedReferenceDepthError(target, len(steps), self.max_depth, doc.source)
        if any(s not in STEPS for s in steps):
            raise DanglingReferenceError(name, target, doc.source)
        members = self._series.get(doc.series or '', [])
        if doc.slug not in members:
            raise DanglingReferenceError(name, target, doc.source)

        pos = members.index(doc.slug)
        for step in steps:
            pos += STEPS[step]
            if not 0 <= pos < len(members):
                raise DanglingReferenceError(name, target, doc.source)
        return members[pos]

    def resolve_target(self, doc: Document, target: str, name: str | None = None) -> str:
        """Resolve one target expression for doc to a concrete slug."""
        name = name or target
        if target in self._index:
            return target
        stem_slug = slugify(split_date_prefix(target)[1])
        if stem_slug in self._index:
            return stem_slug
        if target.startswith(SERIES_PREFIX):
            return self._walk_series(doc, target, name)
        raise DanglingReferenceError(name, target, doc.source)

    def resolve(self, doc: Document) -> tuple[list[Reference], list[ContentError]]:
        """Resolve every reference of doc; failures are returned, not raised."""
        refs: list[Reference] = []
        errors: list[ContentError] = []
        for name, target in self.extract(doc):
            try:
                resolved = self.resolve_target(doc, target, name)
            except (DanglingReferenceError, UnsupportedReferenceDepthError) as e:
                log.debug("reference_unresolved", source=doc.source, name=name, target=target, error=e.kind)
                errors.append(e)
                continue
            refs.append(Reference(source=doc.slug, name=name, target=target, resolved=resolved))
        return refs, errors

    def resolve_all(self, documents: Iterable[Document]) -> tuple[dict[str, tuple[Reference, ...]], list[ContentError]]:
        """Resolve references for every document, collecting all errors."""
        resolved: dict[str, tuple[Reference, ...]] = {}
        errors: list[ContentError] = []
        for doc in documents:
            refs, errs = self.resolve(doc)
            resolved[doc.slug] = tuple(refs)
            errors.extend(errs)
        return resolved, errors
