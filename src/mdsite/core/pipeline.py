"""Build pipeline: parse -> normalize -> assemble -> resolve, with one aggregated report"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from mdsite.config import Settings
from mdsite.core.collection import Collection, assemble
from mdsite.core.models import BuildIssue, Document, Layout
from mdsite.core.normalize import normalize, unknown_fields
from mdsite.core.parse import discover_files, parse_file
from mdsite.core.references import ReferenceResolver
from mdsite.errors import BuildFailedError, ContentError
from mdsite.logger import get_logger


log = get_logger(__name__)


class BuildReport(BaseModel):
    """Every issue found during one build, in pipeline stage order."""

    model_config = {"frozen": True}

    issues: tuple[BuildIssue, ...] = ()

    @property
    def errors(self) -> list[BuildIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[BuildIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def failed(self) -> bool:
        """True when any fatal issue (e.g. a duplicate slug) was found."""
        return any(i.fatal for i in self.issues)

    def for_source(self, source: str) -> list[BuildIssue]:
        return [i for i in self.issues if i.source == source]

    def raise_for_errors(self, strict: bool = False) -> None:
        """Raise BuildFailedError if the build failed, or in strict mode on any error."""
        if self.failed or (strict and self.errors):
            raise BuildFailedError(self)


@dataclass(frozen=True)
class BuildResult:
    collection: Collection
    report:     BuildReport


def _load(path: Path, root: Path, permalinks: dict[Layout, str]) -> tuple[Optional[Document], list[BuildIssue]]:
    """Parse and normalize one file; content errors are returned as issues."""
    try:
        parsed = parse_file(path, root)
        doc = normalize(parsed, permalinks)
    except ContentError as e:
        log.info("document_rejected", source=e.source, error=e.kind, message=e.message)
        return None, [BuildIssue.from_error(e)]

    issues = []
    for key in unknown_fields(parsed.metadata):
        log.warning("unknown_field", source=doc.source, field=key)
        issues.append(BuildIssue.warning(doc.source, "UnknownFieldWarning", f"unrecognized field '{key}' ignored"))
    return doc, issues


def build_collection(path: Path | str, settings: Settings | None = None) -> BuildResult:
    """Build a Collection from a file or directory.

    A document that fails to parse or normalize is left out and reported;
    the remaining documents still build. Duplicate slugs and unresolved
    references are reported alongside, never raised.
    """
    settings = settings or Settings()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Source path does not exist: {path}")
    root = path if path.is_dir() else path.parent
    permalinks = {Layout.post: settings.post_permalink, Layout.page: settings.page_permalink}

    files = discover_files(path)
    log.info("build_started", path=str(path), files=len(files), workers=settings.workers)

    def load(p: Path):
        return _load(p, root, permalinks)

    if settings.workers > 1:
        with ThreadPoolExecutor(max_workers=settings.workers) as pool:
            loaded = list(pool.map(load, files))
    else:
        loaded = [load(p) for p in files]

    documents: list[Document] = []
    issues: list[BuildIssue] = []
    for doc, doc_issues in loaded:
        issues.extend(doc_issues)
        if doc is not None:
            documents.append(doc)

    # Duplicates are checked across drafts too; drafts are dropped afterwards
    collection, duplicates = assemble(documents)
    issues.extend(BuildIssue.from_error(e) for e in duplicates)
    if not settings.include_drafts:
        drafts = [d.source for d in collection if not d.published]
        if drafts:
            log.debug("drafts_skipped", sources=drafts)
            collection = Collection(d for d in collection if d.published)

    resolver = ReferenceResolver(collection, settings.max_reference_depth, settings.parser_config)
    references, unresolved = resolver.resolve_all(collection)
    issues.extend(BuildIssue.from_error(e) for e in unresolved)
    collection = collection.with_references(references)

    report = BuildReport(issues=tuple(issues))
    log.info(
        "build_finished",
        documents=len(collection),
        errors=len(report.errors),
        warnings=len(report.warnings),
        failed=report.failed,
    )
    return BuildResult(collection=collection, report=report)
