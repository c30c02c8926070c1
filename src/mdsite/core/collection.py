"""Ordered, immutable document collection and its assembly from normalized documents"""

from datetime import date, datetime, time
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

from mdsite.core.models import Document, Layout, Reference
from mdsite.errors import DuplicateIdentifierError, NotFoundError
from mdsite.logger import get_logger


log = get_logger(__name__)


def order(documents: Iterable[Document]) -> list[Document]:
    """Sort newest first; same-timestamp documents by slug ascending."""
    by_slug = sorted(documents, key=lambda d: d.slug)
    return sorted(by_slug, key=lambda d: d.date, reverse=True)


def _as_datetime(value: date | datetime, end: bool = False) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max if end else time.min)


class Collection:
    """Documents in presentation order plus a slug index and resolved references.

    Built once per run and never mutated; with_references returns a new value.
    """

    def __init__(
        self,
        documents: Iterable[Document] = (),
        references: Optional[Mapping[str, Iterable[Reference]]] = None,
        ):
        ordered = tuple(order(documents))
        index: dict[str, Document] = {}
        for doc in ordered:
            if doc.slug in index:
                raise DuplicateIdentifierError(doc.slug, index[doc.slug].source, doc.source)
            index[doc.slug] = doc

        references = references or {}
        self._documents = ordered
        self._index = MappingProxyType(index)
        self._positions = MappingProxyType({d.slug: i for i, d in enumerate(ordered)})
        self._references = MappingProxyType({
            slug: tuple(references.get(slug, ())) for slug in index
        })

    def with_references(self, references: Mapping[str, Iterable[Reference]]) -> "Collection":
        return Collection(self._documents, references)

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __contains__(self, slug: object) -> bool:
        return slug in self._index

    def __repr__(self) -> str:
        return f"Collection({len(self)} documents)"

    @property
    def documents(self) -> tuple[Document, ...]:
        return self._documents

    @property
    def index(self) -> Mapping[str, Document]:
        return self._index

    def slugs(self) -> list[str]:
        return [d.slug for d in self._documents]

    def get(self, slug: str) -> Document:
        """Return the document with slug or raise NotFoundError."""
        try:
            return self._index[slug]
        except KeyError:
            raise NotFoundError(slug) from None

    def previous(self, slug: str) -> Optional[Document]:
        """Chronologically older neighbour, or None for the oldest document."""
        pos = self._position(slug) + 1
        return self._documents[pos] if pos < len(self._documents) else None

    def next(self, slug: str) -> Optional[Document]:
        """Chronologically newer neighbour, or None for the newest document."""
        pos = self._position(slug) - 1
        return self._documents[pos] if pos >= 0 else None

    def by_layout(self, kind: Layout | str) -> tuple[Document, ...]:
        kind = Layout(kind)
        return tuple(d for d in self._documents if d.layout == kind)

    def between(self, start: date | datetime, end: date | datetime) -> tuple[Document, ...]:
        """Documents published within [start, end]; plain dates cover the whole day."""
        lo, hi = _as_datetime(start), _as_datetime(end, end=True)
        return tuple(d for d in self._documents if lo <= d.date <= hi)

    def series(self, name: str) -> tuple[Document, ...]:
        """Members of a series, oldest first."""
        return tuple(reversed([d for d in self._documents if d.series == name]))

    def references(self, slug: str) -> tuple[Reference, ...]:
        self._position(slug)
        return self._references[slug]

    def resolve(self, slug: str, name: str) -> Document:
        """Return the document that slug's reference called name points to."""
        for ref in self.references(slug):
            if ref.name == name:
                return self._index[ref.resolved]
        raise NotFoundError(slug, f"document '{slug}' has no resolved reference '{name}'")

    def _position(self, slug: str) -> int:
        try:
            return self._positions[slug]
        except KeyError:
            raise NotFoundError(slug) from None


def assemble(documents: Iterable[Document]) -> tuple[Collection, list[DuplicateIdentifierError]]:
    """Build a Collection, excluding every document whose slug is claimed more than once.

    Each extra claimant yields a DuplicateIdentifierError naming it and the
    first claimant by source path, so the outcome is independent of input order.
    """
    groups: dict[str, list[Document]] = {}
    for doc in documents:
        groups.setdefault(doc.slug, []).append(doc)

    unique: list[Document] = []
    errors: list[DuplicateIdentifierError] = []
    for slug in sorted(groups):
        group = sorted(groups[slug], key=lambda d: d.source)
        if len(group) == 1:
            unique.append(group[0])
            continue
        first = group[0]
        for other in group[1:]:
            errors.append(DuplicateIdentifierError(slug, first.source, other.source))
        log.warning("duplicate_slug", slug=slug, sources=[d.source for d in group])

    return Collection(unique), errors
