"""
The canonical paper record.

Every source adapter produces a StructuredPaperData and every renderer and
writer consumes one. Instances are frozen; the artifact writer derives a
copy with ``pdf_path`` set once a PDF is on disk.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Iterable, List, Optional


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


@dataclass(frozen=True)
class StructuredPaperData:
    """
    Metadata about one paper, normalized across sources.

    Attributes:
        title: Paper title. Never empty; used to derive file names.
        authors: Author names in source order.
        abstract: Paper abstract.
        url: Source page URL.
        pdf_url: Direct PDF link, if the source knows one.
        pdf_path: PDF path relative to the vault root, once downloaded.
        venue: Journal or conference.
        publication_date: Free-form year or date.
        tags: Tags, duplicates removed in first-seen order.
        citekey: BibTeX citation key.
        bibtex: Raw BibTeX entry.
    """

    title: str
    authors: List[str] = field(default_factory=list)
    abstract: str = ""
    url: str = ""
    pdf_url: Optional[str] = None
    pdf_path: Optional[str] = None
    venue: Optional[str] = None
    publication_date: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    citekey: Optional[str] = None
    bibtex: Optional[str] = None

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("StructuredPaperData.title must not be empty")
        # Copy sequences so callers cannot mutate the record through them.
        object.__setattr__(self, "authors", [a for a in self.authors])
        object.__setattr__(self, "tags", _unique(self.tags))

    def with_pdf_path(self, pdf_path: str) -> "StructuredPaperData":
        """Return a copy of this record pointing at a downloaded PDF."""
        return dataclasses.replace(self, pdf_path=pdf_path)

    def to_dict(self) -> dict:
        """
        Convert the record to a dictionary.

        Returns:
            Dictionary representation with snake_case keys.
        """
        return {
            "title": self.title,
            "authors": list(self.authors),
            "abstract": self.abstract,
            "url": self.url,
            "pdf_url": self.pdf_url,
            "pdf_path": self.pdf_path,
            "venue": self.venue,
            "publication_date": self.publication_date,
            "tags": list(self.tags),
            "citekey": self.citekey,
            "bibtex": self.bibtex,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StructuredPaperData":
        """
        Create a record from a dictionary.

        Accepts both snake_case keys and the camelCase names used by
        note templates (``pdfUrl``, ``pdfPath``, ``publicationDate``).

        Args:
            data: Dictionary containing record fields.

        Returns:
            A StructuredPaperData instance.
        """

        def pick(snake: str, camel: str):
            return data.get(snake, data.get(camel))

        return cls(
            title=data["title"],
            authors=list(data.get("authors") or []),
            abstract=data.get("abstract") or "",
            url=data.get("url") or "",
            pdf_url=pick("pdf_url", "pdfUrl"),
            pdf_path=pick("pdf_path", "pdfPath"),
            venue=data.get("venue"),
            publication_date=pick("publication_date", "publicationDate"),
            tags=list(data.get("tags") or []),
            citekey=data.get("citekey"),
            bibtex=data.get("bibtex"),
        )
