"""
Error taxonomy for scholar_notes.

Every error the core raises derives from ScholarError so a host can report
any failure with a single except clause. A file that already exists is not
an error: writers treat it as a skip.
"""

from __future__ import annotations

from typing import Optional


class ScholarError(Exception):
    """Base class for all scholar_notes errors."""


class FetchError(ScholarError):
    """
    A remote source could not deliver a paper.

    Raised on transport failures, non-2xx responses and bodies that cannot be
    parsed into paper metadata.

    Attributes:
        source: Name of the failing source (e.g. 'arxiv', 'semantic_scholar').
        cause: The underlying exception, if any.
    """

    def __init__(self, source: str, cause: Optional[BaseException] = None, message: str = ""):
        self.source = source
        self.cause = cause
        detail = message or (str(cause) if cause is not None else "unknown error")
        super().__init__(f"Failed to fetch from {source}: {detail}")


class NoteParseError(ScholarError):
    """A local note could not be turned into paper data."""


class MalformedLinkError(NoteParseError):
    """The ``pdf`` front-matter field is set but has no ``[[...]]`` wrapper."""

    def __init__(self, value: str, note: str = ""):
        self.value = value
        self.note = note
        where = f" in {note}" if note else ""
        super().__init__(f"Malformed pdf link{where}: {value!r}")


class MalformedFrontMatterError(NoteParseError):
    """Front matter is not valid YAML, or a field has an unusable type."""


class MissingConfigurationError(ScholarError):
    """A required location setting is unset."""

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(f"Required setting '{setting}' is not set")
