"""
Paper source adapters.

Each adapter implements BasePaperSource. ``fetch_paper_by_url`` routes a URL
to the right adapter: anything on arxiv.org goes to arXiv, everything else to
Semantic Scholar.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from scholar_notes.models import StructuredPaperData
from scholar_notes.sources.arxiv_source import ARXIV_DOMAIN, ArxivSource
from scholar_notes.sources.base import BasePaperSource
from scholar_notes.sources.semantic_scholar import SemanticScholarSource


def is_valid_url(url: str) -> bool:
    """Return True for http(s) URLs with a host."""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_arxiv_url(url: str) -> bool:
    """Return True if the URL should be served by the arXiv adapter."""
    return ARXIV_DOMAIN in url.lower()


def select_source(
    url: str,
    arxiv: Optional[ArxivSource] = None,
    semantic_scholar: Optional[SemanticScholarSource] = None,
) -> BasePaperSource:
    """
    Pick the adapter responsible for a URL.

    Args:
        url: Paper page URL.
        arxiv: arXiv adapter to use; a default one is created if None.
        semantic_scholar: Semantic Scholar adapter; created if None.

    Returns:
        The adapter instance.
    """
    if is_arxiv_url(url):
        return arxiv or ArxivSource()
    return semantic_scholar or SemanticScholarSource()


def fetch_paper_by_url(
    url: str,
    arxiv: Optional[ArxivSource] = None,
    semantic_scholar: Optional[SemanticScholarSource] = None,
) -> StructuredPaperData:
    """
    Fetch paper metadata from whichever source serves the URL.

    Raises:
        FetchError: If the selected source fails.
    """
    return select_source(url, arxiv, semantic_scholar).fetch_by_url(url)


__all__ = [
    "BasePaperSource",
    "ArxivSource",
    "SemanticScholarSource",
    "fetch_paper_by_url",
    "is_arxiv_url",
    "is_valid_url",
    "select_source",
]
