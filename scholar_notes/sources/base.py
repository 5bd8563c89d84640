"""
Base interface for paper sources.

This module defines the abstract interface that all source adapters must
implement. An adapter turns a paper URL into StructuredPaperData,
issuing one network request per call.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Optional

from scholar_notes.models import StructuredPaperData

_CITEKEY_PATTERN = re.compile(r"@\w+\s*[{(]\s*([^,\s]+)\s*,")


def collapse_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace (including newlines) into single spaces."""
    if not text:
        return ""
    return " ".join(text.split())


def extract_citekey(bibtex: Optional[str]) -> str:
    """
    Extract the citation key from a BibTeX entry header.

    Examples:
        >>> extract_citekey("@article{vaswani2017attention,\\n title={...}}")
        'vaswani2017attention'
    """
    if not bibtex:
        return ""
    match = _CITEKEY_PATTERN.search(bibtex)
    return match.group(1) if match else ""


class BasePaperSource(ABC):
    """
    Abstract base class for paper source adapters.

    Implementations map their source's native schema onto
    StructuredPaperData. Missing fields become empty strings or empty lists.
    Failures raise FetchError carrying the source name.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """
        Return the name of this paper source.

        Returns:
            String identifier for the source (e.g., 'arxiv', 'semantic_scholar').
        """
        pass

    @abstractmethod
    def fetch_by_url(self, url: str) -> StructuredPaperData:
        """
        Fetch a single paper from its page URL.

        Args:
            url: URL of the paper page.

        Returns:
            The paper's metadata.

        Raises:
            FetchError: If the request fails or the response cannot be parsed.
        """
        pass
