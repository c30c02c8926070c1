"""Data models for parsed documents, normalized documents, references and build issues"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, field_validator

from mdsite.errors import MdsiteError


class Layout(str, Enum):
    """Recognized layout kinds; anything else is rejected at normalization"""
    post = "post"
    page = "page"


@dataclass(frozen=True)
class ParsedDocument:
    """Raw parse result: front matter mapping plus opaque body text."""
    source:   str                   # file name (or label) the text came from
    metadata: dict[str, Any] = field(default_factory=dict)
    body:     str = ""


class Document(BaseModel):
    """A validated, immutable content document."""

    model_config = {"frozen": True}

    slug:      str
    title:     str
    date:      datetime             # naive, UTC when the source carried an offset
    layout:    Layout
    source:    str
    permalink: str
    summary:   str = ""
    body:      str = ""
    series:    Optional[str] = None
    tags:      tuple[str, ...] = ()
    refs:      tuple[tuple[str, str], ...] = ()   # (name, target) pairs in front matter order
    published: bool = True
    hash:      str = ""             # sha256 of body

    @field_validator("refs", mode="before")
    @classmethod
    def _refs_pairs(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return tuple(value.items())
        return value

    def as_parsed(self) -> ParsedDocument:
        """Return the explicit metadata form of this document; normalizing it yields an equal Document."""
        metadata: dict[str, Any] = {
            "layout": self.layout.value,
            "title": self.title,
            "date": self.date,
            "slug": self.slug,
            "permalink": self.permalink,
            "summary": self.summary,
            "published": self.published,
        }
        if self.series is not None:
            metadata["series"] = self.series
        if self.tags:
            metadata["tags"] = list(self.tags)
        if self.refs:
            metadata["refs"] = dict(self.refs)
        return ParsedDocument(source=self.source, metadata=metadata, body=self.body)


class Reference(BaseModel):
    """A resolved directed edge between two documents."""

    model_config = {"frozen": True}

    source:   str                   # slug of the referring document
    name:     str                   # symbolic key, e.g. 'previous-in-series'
    target:   str                   # expression as written
    resolved: str                   # concrete slug


class BuildIssue(BaseModel):
    """One entry in the aggregated build report."""

    model_config = {"frozen": True}

    source:   Optional[str]
    kind:     str
    message:  str
    severity: Literal["error", "warning"] = "error"
    fatal:    bool = False

    @classmethod
    def from_error(cls, error: MdsiteError) -> "BuildIssue":
        return cls(source=error.source, kind=error.kind, message=error.message, fatal=error.fatal)

    @classmethod
    def warning(cls, source: str, kind: str, message: str) -> "BuildIssue":
        return cls(source=source, kind=kind, message=message, severity="warning")
