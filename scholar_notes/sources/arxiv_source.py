"""
arXiv source adapter.

Looks papers up by the identifier embedded in an arxiv.org URL using the
arxiv library, and builds a BibTeX entry in the format arXiv itself exports.

Supported URL shapes:
- https://arxiv.org/abs/2301.12345v2
- https://arxiv.org/pdf/2301.12345.pdf
- https://arxiv.org/html/2301.12345
- https://arxiv.org/abs/cs.AI/0101001 (old-style identifiers)
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

import arxiv as arxiv_lib

from scholar_notes.exceptions import FetchError
from scholar_notes.models import StructuredPaperData
from scholar_notes.sources.base import BasePaperSource, collapse_whitespace

logger = logging.getLogger(__name__)

ARXIV_DOMAIN = "arxiv.org"

_ARXIV_ID_PATTERN = re.compile(
    r"arxiv\.org/(?:abs|pdf|html)/"
    r"((?:\d{4}\.\d{4,5}|[a-z\-]+(?:\.[a-z\-]+)?/\d{7})(?:v\d+)?)",
    re.IGNORECASE,
)
_VERSION_SUFFIX = re.compile(r"v\d+$")

# Words skipped when picking the title word of a citekey
_CITEKEY_STOPWORDS = {
    "a", "an", "the", "on", "of", "in", "for", "to", "and", "with", "is", "are", "via",
}


def extract_arxiv_id(url: str) -> Optional[str]:
    """
    Extract an arXiv identifier from a URL.

    Args:
        url: arXiv paper URL (abs, pdf or html page).

    Returns:
        The identifier including any version suffix, or None.

    Examples:
        >>> extract_arxiv_id('https://arxiv.org/abs/2301.12345v1')
        '2301.12345v1'
        >>> extract_arxiv_id('https://arxiv.org/pdf/2301.12345.pdf')
        '2301.12345'
        >>> extract_arxiv_id('https://arxiv.org/abs/cs.AI/0101001')
        'cs.AI/0101001'
    """
    match = _ARXIV_ID_PATTERN.search(url)
    return match.group(1) if match else None


def build_citekey(authors: List[str], year: str, title: str) -> str:
    """
    Build a citekey of the form <first author last name><year><first title word>.

    Examples:
        >>> build_citekey(['Ashish Vaswani', 'Noam Shazeer'], '2017', 'Attention Is All You Need')
        'vaswani2017attention'
    """
    last_name = ""
    if authors:
        parts = authors[0].split()
        if parts:
            last_name = re.sub(r"[^a-z]", "", parts[-1].lower())

    title_word = ""
    for word in title.split():
        cleaned = re.sub(r"[^a-z0-9]", "", word.lower())
        if cleaned and cleaned not in _CITEKEY_STOPWORDS:
            title_word = cleaned
            break

    return f"{last_name}{year}{title_word}" or "paper"


def build_bibtex(
    citekey: str,
    title: str,
    authors: List[str],
    year: str,
    arxiv_id: str,
    primary_category: str,
    url: str,
) -> str:
    """Build an arXiv-style ``@misc`` BibTeX entry."""
    lines = [
        f"@misc{{{citekey},",
        f"  title={{{title}}},",
        f"  author={{{' and '.join(authors)}}},",
        f"  year={{{year}}},",
        f"  eprint={{{arxiv_id}}},",
        "  archivePrefix={arXiv},",
    ]
    if primary_category:
        lines.append(f"  primaryClass={{{primary_category}}},")
    lines.append(f"  url={{{url}}},")
    lines.append("}")
    return "\n".join(lines)


class ArxivSource(BasePaperSource):
    """
    Source adapter for arxiv.org.

    Typical usage:
        >>> source = ArxivSource()
        >>> paper = source.fetch_by_url('https://arxiv.org/abs/1706.03762')
        >>> paper.citekey
        'vaswani2017attention'

    Attributes:
        delay_seconds: Minimum delay between API requests.
    """

    def __init__(self, delay_seconds: float = 3.0):
        """
        Initialize the arXiv source.

        Args:
            delay_seconds: Minimum delay between arXiv API requests.
        """
        self.delay_seconds = delay_seconds
        # No retries: a failed lookup is reported and the user re-invokes.
        self._client = arxiv_lib.Client(
            page_size=1, delay_seconds=delay_seconds, num_retries=0
        )

    @property
    def source_name(self) -> str:
        """Return 'arxiv' as the source identifier."""
        return "arxiv"

    def fetch_by_url(self, url: str) -> StructuredPaperData:
        """
        Fetch paper metadata for an arxiv.org URL.

        Args:
            url: arXiv abs/pdf/html URL.

        Returns:
            StructuredPaperData with BibTeX and citekey filled in.

        Raises:
            FetchError: If no identifier is in the URL, the request fails,
                or arXiv does not know the paper.
        """
        arxiv_id = extract_arxiv_id(url)
        if arxiv_id is None:
            raise FetchError(self.source_name, message=f"no arXiv identifier in {url}")

        logger.info(f"Fetching arXiv metadata for {arxiv_id}")
        search = arxiv_lib.Search(id_list=[arxiv_id])
        try:
            result = next(self._client.results(search))
        except StopIteration:
            logger.error(f"Paper not found on arXiv: {arxiv_id}")
            raise FetchError(self.source_name, message=f"paper not found: {arxiv_id}")
        except Exception as e:
            logger.error(f"arXiv request failed for {arxiv_id}: {e}")
            raise FetchError(self.source_name, e) from e

        return self._to_paper_data(result, arxiv_id)

    def _to_paper_data(self, result, arxiv_id: str) -> StructuredPaperData:
        """Map an arxiv.Result onto StructuredPaperData."""
        title = collapse_whitespace(result.title)
        if not title:
            raise FetchError(self.source_name, message=f"no title for {arxiv_id}")
        authors = [author.name for author in (result.authors or [])]
        year = str(result.published.year) if result.published else ""
        base_id = _VERSION_SUFFIX.sub("", arxiv_id)
        abs_url = f"https://arxiv.org/abs/{base_id}"

        citekey = build_citekey(authors, year, title)
        bibtex = build_bibtex(
            citekey=citekey,
            title=title,
            authors=authors,
            year=year,
            arxiv_id=base_id,
            primary_category=result.primary_category or "",
            url=abs_url,
        )

        logger.debug(f"Retrieved metadata for {arxiv_id}: {title[:50]}...")
        return StructuredPaperData(
            title=title,
            authors=authors,
            abstract=collapse_whitespace(result.summary),
            url=result.entry_id or abs_url,
            pdf_url=result.pdf_url or f"https://arxiv.org/pdf/{arxiv_id}",
            venue=collapse_whitespace(result.journal_ref) or "arXiv",
            publication_date=year,
            citekey=citekey,
            bibtex=bibtex,
        )
