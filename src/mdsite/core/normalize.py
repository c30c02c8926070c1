"""Metadata validation, defaults, and derivation of slug, date, and permalink"""

import hashlib
from datetime import date, datetime, time, timezone
from pathlib import PurePosixPath
from typing import Any

from mdsite.core.models import Document, Layout, ParsedDocument
from mdsite.core.utils.slug import slugify, split_date_prefix
from mdsite.errors import ConfigurationError, InvalidDateError, InvalidFieldError, MissingFieldError


RECOGNIZED_FIELDS = frozenset({
    'layout', 'title', 'date', 'summary', 'slug', 'series',
    'tags', 'refs', 'permalink', 'published',
})

DATE_FORMATS = (
    '%Y-%m-%d %H:%M:%S %z',
    '%Y-%m-%d %H:%M %z',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%Y-%m-%d',
)

DEFAULT_PERMALINKS = {
    Layout.post: '/{year}/{month}/{day}/{slug}/',
    Layout.page: '/{slug}/',
}


def _naive_utc(value: datetime) -> datetime:
    """Convert aware datetimes to naive UTC so every timestamp is comparable."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_date(value: Any, source: str | None = None) -> datetime:
    """Parse a YAML date/datetime or an ISO-like string into a naive datetime."""
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateError(value, source)

    text = value.strip()
    try:
        return _naive_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return _naive_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    raise InvalidDateError(value, source)


def unknown_fields(metadata: dict[str, Any]) -> list[str]:
    """Return metadata keys outside the recognized set, in header order."""
    return [k for k in metadata if k not in RECOGNIZED_FIELDS]


def _required_text(metadata: dict, name: str, source: str) -> str:
    value = metadata.get(name)
    if value is None or not str(value).strip():
        raise MissingFieldError(name, source)
    return str(value).strip()


def _tags(value: Any, source: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(value.split())
    if isinstance(value, list):
        return tuple(str(t) for t in value)
    raise InvalidFieldError('tags', "expected a list or a space-separated string", source)


def _refs(value: Any, source: str) -> tuple[tuple[str, str], ...]:
    if value is None:
        return ()
    if not isinstance(value, dict):
        raise InvalidFieldError('refs', "expected a mapping of name to target", source)
    return tuple((str(k), str(v).strip()) for k, v in value.items())


def _permalink(pattern: str, slug: str, published: datetime) -> str:
    try:
        return pattern.format(
            year=f"{published.year:04d}",
            month=f"{published.month:02d}",
            day=f"{published.day:02d}",
            slug=slug,
        )
    except (KeyError, IndexError) as e:
        raise ConfigurationError(f"Invalid permalink pattern {pattern!r}: unknown placeholder {e}") from e


def normalize(parsed: ParsedDocument, permalinks: dict[Layout, str] | None = None) -> Document:
    """Validate a ParsedDocument's metadata and build an immutable Document.

    An explicit 'date' overrides a date prefix in the file name, and an
    explicit 'slug' overrides the name-derived one. Unrecognized keys are
    ignored here; see unknown_fields.
    """
    meta, source = parsed.metadata, parsed.source
    permalinks = {**DEFAULT_PERMALINKS, **(permalinks or {})}

    layout_value = _required_text(meta, 'layout', source)
    try:
        layout = Layout(layout_value)
    except ValueError:
        allowed = ', '.join(l.value for l in Layout)
        raise InvalidFieldError('layout', f"{layout_value!r} is not one of {allowed}", source) from None
    title = _required_text(meta, 'title', source)

    stem = PurePosixPath(source).stem
    name_date, name_slug = split_date_prefix(stem)

    if meta.get('date') is not None:
        published = parse_date(meta['date'], source)
    elif name_date is not None:
        published = parse_date(name_date, source)
    else:
        raise MissingFieldError('date', source)

    slug = slugify(str(meta['slug'])) if meta.get('slug') is not None else slugify(name_slug)
    if not slug:
        raise InvalidFieldError('slug', "resolves to an empty identifier", source)

    is_published = meta.get('published', True)
    if not isinstance(is_published, bool):
        raise InvalidFieldError('published', "expected true or false", source)

    if meta.get('permalink') is not None:
        permalink = str(meta['permalink'])
    else:
        permalink = _permalink(permalinks[layout], slug, published)

    series = meta.get('series')
    return Document(
        slug=slug,
        title=title,
        date=published,
        layout=layout,
        source=source,
        permalink=permalink,
        summary=str(meta.get('summary') or '').strip(),
        body=parsed.body,
        series=str(series).strip() if series is not None else None,
        tags=_tags(meta.get('tags'), source),
        refs=_refs(meta.get('refs'), source),
        published=is_published,
        hash=hashlib.sha256(parsed.body.encode('utf-8')).hexdigest(),
    )
