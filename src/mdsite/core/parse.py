"""File discovery and front matter splitting"""

from pathlib import Path
from typing import Any

import yaml

from mdsite.core.models import ParsedDocument
from mdsite.errors import MalformedDocumentError


MARKER = '---'
MD_EXTENSIONS = {'.md', '.markdown', '.mdx'}


def _load_metadata(text: str, source: str) -> dict[str, Any]:
    """Parse the YAML header into a mapping with string keys."""
    try:
        fm = yaml.safe_load(text) if text.strip() else {}
    except yaml.YAMLError as e:
        raise MalformedDocumentError(f"invalid YAML front matter: {e}", source) from e
    if fm is None:
        return {}
    if not isinstance(fm, dict):
        raise MalformedDocumentError(
            f"front matter must be a mapping, got {type(fm).__name__}", source
        )
    return {str(k): v for k, v in fm.items()}


def parse_text(text: str, source: str = "<string>") -> ParsedDocument:
    """Split raw text into front matter and body.

    The first line must be the '---' marker and a second '---' line must close
    the block; otherwise MalformedDocumentError is raised.
    """
    lines = text.lstrip('\ufeff').splitlines(keepends=True)
    if not lines or lines[0].strip() != MARKER:
        raise MalformedDocumentError("missing front matter start marker '---'", source)

    end = next((i for i in range(1, len(lines)) if lines[i].strip() == MARKER), None)
    if end is None:
        raise MalformedDocumentError("unterminated front matter block", source)

    metadata = _load_metadata(''.join(lines[1:end]), source)
    body = ''.join(lines[end + 1:]).lstrip('\n')
    return ParsedDocument(source=source, metadata=metadata, body=body)


def discover_files(path: Path) -> list[Path]:
    """Return sorted markdown files under path, or [path] if a single markdown file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix in MD_EXTENSIONS)


def parse_file(path: Path, root: Path | None = None) -> ParsedDocument:
    """Read a UTF-8 file and parse it; source is the path relative to root when given."""
    source = path.relative_to(root).as_posix() if root and path != root else path.name
    try:
        raw = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise MalformedDocumentError(f"not valid UTF-8: {e}", source) from e
    return parse_text(raw, source)
