"""
End-to-end pipeline for host applications.

ScholarManager wires configuration, source adapters and the artifact writer
together and converts every core error into a user notification, so a host
UI can call it without its own error handling.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Optional

from scholar_notes.config import Config
from scholar_notes.constants import (
    NOTICE_INVALID_URL,
    NOTICE_PAPER_NOTE_DOWNLOAD_ERROR,
    NOTICE_PDF_DOWNLOAD_ERROR,
    NOTICE_RETRIEVING_ARXIV,
    NOTICE_RETRIEVING_S2,
)
from scholar_notes.exceptions import FetchError, ScholarError
from scholar_notes.models import StructuredPaperData
from scholar_notes.notes.reader import LocalPaper, get_all_local_paper_data
from scholar_notes.sources import ArxivSource, SemanticScholarSource, is_valid_url, select_source
from scholar_notes.writer import ArtifactReport, ArtifactWriter, PipelineStage

logger = logging.getLogger(__name__)


class ScholarManager:
    """
    Fetch a paper and materialize its note, PDF and BibTeX entry.

    Typical usage:
        >>> config = Config.from_env()
        >>> manager = ScholarManager(config, notify=print)
        >>> report = manager.create_note_from_url('https://arxiv.org/abs/1706.03762')
        >>> report.note_path
        'Papers/Attention Is All You Need.md'

    Attributes:
        config: Application configuration.
        arxiv: arXiv adapter.
        semantic_scholar: Semantic Scholar adapter.
        writer: Artifact writer.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        writer: Optional[ArtifactWriter] = None,
        arxiv: Optional[ArxivSource] = None,
        semantic_scholar: Optional[SemanticScholarSource] = None,
        notify: Optional[Callable[[str], None]] = None,
        open_file: Optional[Callable[[str], None]] = None,
        path_sep: str = os.sep,
    ):
        """
        Initialize the manager.

        Args:
            config: Application configuration. If None, loads from environment.
            writer: Artifact writer; built from config if None.
            arxiv: arXiv adapter; built from config if None.
            semantic_scholar: Semantic Scholar adapter; built from config if None.
            notify: Callable showing a transient message to the user.
            open_file: Callable opening a vault-relative path in the host.
            path_sep: Separator for vault-relative paths.
        """
        self.config = config or Config.from_env()
        self._notify = notify
        self._open_file = open_file
        self.arxiv = arxiv or ArxivSource(delay_seconds=self.config.arxiv.delay_seconds)
        self.semantic_scholar = semantic_scholar or SemanticScholarSource(self.config.semantic_scholar)
        self.writer = writer or ArtifactWriter(
            self.config.notes,
            path_sep=path_sep,
            notify=self.notify,
            open_file=self.open_file,
        )

    def notify(self, message: str) -> None:
        """Show a transient message to the user (logged if no host callback)."""
        logger.info(f"Notice: {message}")
        if self._notify is not None:
            self._notify(message)

    def open_file(self, path: str) -> None:
        """Ask the host to open a vault-relative file."""
        if self._open_file is not None:
            self._open_file(path)

    def fetch_paper(self, url: str) -> StructuredPaperData:
        """
        Fetch metadata for a URL, routing arxiv.org URLs to arXiv.

        Raises:
            FetchError: If the source fails.
        """
        source = select_source(url, self.arxiv, self.semantic_scholar)
        self.notify(NOTICE_RETRIEVING_ARXIV if source is self.arxiv else NOTICE_RETRIEVING_S2)
        return source.fetch_by_url(url)

    def save_paper(self, paper: StructuredPaperData) -> Optional[ArtifactReport]:
        """
        Run the artifact pipeline for an already-fetched paper.

        Returns:
            The report, or None if the pipeline failed (the user is notified).
        """
        try:
            return self.writer.download_and_save_paper_note_pdf(paper)
        except FetchError as e:
            logger.error(f"Failed to download the PDF for '{paper.title}': {e}")
            self.notify(NOTICE_PDF_DOWNLOAD_ERROR)
            return None
        except (ScholarError, OSError) as e:
            logger.error(f"Failed to save '{paper.title}': {e}")
            self.notify(f"Error: {e}")
            return None

    def create_note_from_url(self, url: str) -> Optional[ArtifactReport]:
        """
        Fetch a paper by URL and write its note, PDF and BibTeX entry.

        Errors never propagate: they are reported through notify() and None
        is returned. Nothing is retried.

        Args:
            url: Paper page URL.

        Returns:
            The pipeline report, or None on failure.
        """
        url = url.strip()
        if not is_valid_url(url):
            self.notify(NOTICE_INVALID_URL)
            return None

        try:
            paper = self.fetch_paper(url)
        except FetchError as e:
            logger.error(f"Fetching {url} failed: {e}")
            self.notify(NOTICE_PAPER_NOTE_DOWNLOAD_ERROR)
            return None

        report = self.save_paper(paper)
        if report is not None:
            report.stages.insert(0, PipelineStage.FETCHING)
        return report

    def load_local_papers(self) -> List[LocalPaper]:
        """
        Read all paper notes below the note location.

        Returns:
            Parsed local papers; an empty list if the note location is unset.
        """
        note_location = self.config.notes.note_location.strip()
        if not note_location:
            logger.warning("Note location is not set; no local papers to load")
            return []
        return get_all_local_paper_data(self.config.notes.vault_root, note_location)

    def close(self) -> None:
        """Close the HTTP sessions held by the writer and Semantic Scholar."""
        self.writer.close()
        self.semantic_scholar.close()

    def __enter__(self) -> "ScholarManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
