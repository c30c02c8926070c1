"""Exception hierarchy for content and build errors"""


class MdsiteError(Exception):
    """Base exception for all mdsite errors."""

    fatal: bool = False

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(f"{source}: {message}" if source else message)
        self.message = message
        self.source = source

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigurationError(MdsiteError, ValueError):
    """Invalid config file or setting value."""


class ContentError(MdsiteError):
    """A problem with one or more content documents; reported, not raised, during a build."""


class MalformedDocumentError(ContentError):
    """Front matter start marker missing, block unterminated, or header not a YAML mapping."""


class MissingFieldError(ContentError):
    """A required metadata field is absent."""

    def __init__(self, field: str, source: str | None = None) -> None:
        super().__init__(f"missing required field '{field}'", source)
        self.field = field


class InvalidFieldError(ContentError):
    """A metadata field is present but holds an unusable value."""

    def __init__(self, field: str, message: str, source: str | None = None) -> None:
        super().__init__(f"invalid field '{field}': {message}", source)
        self.field = field


class InvalidDateError(InvalidFieldError):
    """A date value cannot be parsed against the accepted formats."""

    def __init__(self, value, source: str | None = None, field: str = "date") -> None:
        super().__init__(field, f"cannot parse date {value!r}", source)
        self.value = value


class DuplicateIdentifierError(ContentError):
    """Two documents resolve to the same slug."""

    fatal = True

    def __init__(self, slug: str, first: str, second: str) -> None:
        super().__init__(f"duplicate slug '{slug}' (also defined by {first})", second)
        self.slug = slug
        self.sources = (first, second)


class DanglingReferenceError(ContentError):
    """A reference target does not resolve to any document."""

    def __init__(self, name: str, target: str, source: str | None = None) -> None:
        super().__init__(f"reference '{name}' -> '{target}' does not resolve", source)
        self.name = name
        self.target = target


class UnsupportedReferenceDepthError(ContentError):
    """A reference chain is longer than the configured hop limit."""

    def __init__(self, target: str, depth: int, limit: int, source: str | None = None) -> None:
        super().__init__(f"reference '{target}' needs {depth} hops, limit is {limit}", source)
        self.target = target
        self.depth = depth
        self.limit = limit


class NotFoundError(MdsiteError, KeyError):
    """Query for a slug that is not in the collection."""

    def __init__(self, slug: str, message: str | None = None) -> None:
        super().__init__(message or f"no document with slug '{slug}'")
        self.slug = slug

    def __str__(self) -> str:
        return self.message


class BuildFailedError(MdsiteError):
    """Raised on demand when a build report contains blocking issues."""

    fatal = True

    def __init__(self, report) -> None:
        count = len(report.errors)
        super().__init__(f"build failed with {count} error(s)")
        self.report = report
