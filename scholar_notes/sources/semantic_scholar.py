"""
Semantic Scholar source adapter.

Uses the Semantic Scholar Graph API (https://api.semanticscholar.org/graph/v1)
for single-paper lookups and keyword search. Any URL that is not a
semanticscholar.org paper page is looked up with the API's ``URL:``
identifier, so DOIs, ACL Anthology and publisher pages resolve as well.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import requests

from scholar_notes.config import SemanticScholarConfig
from scholar_notes.exceptions import FetchError
from scholar_notes.models import StructuredPaperData
from scholar_notes.sources.base import (
    BasePaperSource,
    collapse_whitespace,
    extract_citekey,
)

logger = logging.getLogger(__name__)

PAPER_FIELDS = ",".join([
    "title",
    "authors",
    "abstract",
    "url",
    "venue",
    "year",
    "externalIds",
    "openAccessPdf",
    "citationStyles",
])

_PAPER_ID_PATTERN = re.compile(
    r"semanticscholar\.org/paper/(?:[^/?#]+/)?([0-9a-f]{40})", re.IGNORECASE
)
_CORPUS_ID_PATTERN = re.compile(r"CorpusI[Dd]:(\d+)")


def paper_identifier_from_url(url: str) -> str:
    """
    Build the Graph API paper identifier for a URL.

    Examples:
        >>> paper_identifier_from_url(
        ...     'https://www.semanticscholar.org/paper/Attention-Vaswani/204e3073870fae3d05bcbc2f6a8e263d9b72e776')
        '204e3073870fae3d05bcbc2f6a8e263d9b72e776'
        >>> paper_identifier_from_url('https://aclanthology.org/2020.acl-main.1')
        'URL:https://aclanthology.org/2020.acl-main.1'
    """
    match = _PAPER_ID_PATTERN.search(url)
    if match:
        return match.group(1).lower()
    match = _CORPUS_ID_PATTERN.search(url)
    if match:
        return f"CorpusId:{match.group(1)}"
    return f"URL:{url.strip()}"


class SemanticScholarSource(BasePaperSource):
    """
    Source adapter for the Semantic Scholar Graph API.

    Typical usage:
        >>> source = SemanticScholarSource()
        >>> papers = source.search('attention is all you need')
        >>> paper = source.fetch_by_url('https://www.semanticscholar.org/paper/...')

    Attributes:
        config: API base URL, key, timeout and search limit.
    """

    def __init__(
        self,
        config: Optional[SemanticScholarConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Semantic Scholar source.

        Args:
            config: API configuration. Defaults are used if None.
            session: HTTP session to reuse. A new one is created if None.
        """
        self.config = config or SemanticScholarConfig()
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if self.config.api_key:
            self._session.headers["x-api-key"] = self.config.api_key.strip()

    @property
    def source_name(self) -> str:
        """Return 'semantic_scholar' as the source identifier."""
        return "semantic_scholar"

    def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        """
        Issue one GET request against the Graph API and decode the body.

        Raises:
            FetchError: On transport errors, non-2xx status or invalid JSON.
        """
        url = f"{self.config.api_base.rstrip('/')}/{path.lstrip('/')}"
        logger.debug(f"Semantic Scholar request: {url} params={params}")
        try:
            response = self._session.get(url, params=params, timeout=self.config.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"Semantic Scholar request failed: {e}")
            raise FetchError(self.source_name, e) from e
        except ValueError as e:
            logger.error(f"Semantic Scholar returned invalid JSON: {e}")
            raise FetchError(self.source_name, e) from e

    def fetch_by_url(self, url: str) -> StructuredPaperData:
        """
        Fetch a single paper by its page URL.

        Args:
            url: A semanticscholar.org paper URL, or any URL the API can resolve.

        Returns:
            The paper's metadata.

        Raises:
            FetchError: If the lookup fails or the body is not a paper.
        """
        identifier = paper_identifier_from_url(url)
        logger.info(f"Fetching Semantic Scholar paper {identifier}")
        data = self._get_json(f"paper/{identifier}", {"fields": PAPER_FIELDS})
        if not isinstance(data, dict):
            raise FetchError(self.source_name, message="unexpected response body")
        return self._to_paper_data(data)

    def search(self, query: str, limit: Optional[int] = None) -> List[StructuredPaperData]:
        """
        Search Semantic Scholar by keyword.

        Args:
            query: Free-text search string.
            limit: Maximum number of results; config.search_limit if None.

        Returns:
            Papers in ranking order. Entries without a title are dropped.

        Raises:
            FetchError: If the request fails or the body is malformed.
        """
        if not query or not query.strip():
            return []

        params = {
            "query": query.strip(),
            "limit": limit or self.config.search_limit,
            "fields": PAPER_FIELDS,
        }
        logger.info(f"Searching Semantic Scholar for '{query}' (limit={params['limit']})")
        data = self._get_json("paper/search", params)
        if not isinstance(data, dict):
            raise FetchError(self.source_name, message="unexpected response body")

        papers: List[StructuredPaperData] = []
        for item in data.get("data") or []:
            if not isinstance(item, dict) or not collapse_whitespace(item.get("title")):
                continue
            papers.append(self._to_paper_data(item))

        logger.info(f"Found {len(papers)} Semantic Scholar results for '{query}'")
        return papers

    def _to_paper_data(self, item: Dict[str, Any]) -> StructuredPaperData:
        """Normalize a Graph API paper object."""
        title = collapse_whitespace(item.get("title"))
        if not title:
            raise FetchError(self.source_name, message="paper has no title")

        authors = [
            author.get("name", "")
            for author in (item.get("authors") or [])
            if isinstance(author, dict) and author.get("name")
        ]

        external_ids = item.get("externalIds") or {}
        pdf_url = None
        open_access_pdf = item.get("openAccessPdf")
        if isinstance(open_access_pdf, dict) and (open_access_pdf.get("url") or "").strip():
            pdf_url = open_access_pdf["url"].strip()
        elif external_ids.get("ArXiv"):
            pdf_url = f"https://arxiv.org/pdf/{external_ids['ArXiv']}"

        citation_styles = item.get("citationStyles") or {}
        bibtex = (citation_styles.get("bibtex") or "").strip()

        year = item.get("year")
        return StructuredPaperData(
            title=title,
            authors=authors,
            abstract=collapse_whitespace(item.get("abstract")),
            url=item.get("url") or "",
            pdf_url=pdf_url,
            venue=collapse_whitespace(item.get("venue")),
            publication_date=str(year) if year else "",
            citekey=extract_citekey(bibtex),
            bibtex=bibtex,
        )

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()
