"""
Artifact writer: PDF download, note creation and BibTeX bookkeeping.

For one paper the writer runs, in order:

1. derive a file name from the title
2. download the PDF (skipped when the file already exists)
3. render the note template and create the note (never overwrites)
4. prepend the BibTeX entry to the bibliography (skipped when present)

Every writing step checks for existing output first, so running the
pipeline twice for the same paper changes nothing the second time.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple

import requests

from scholar_notes.config import NoteConfig
from scholar_notes.constants import (
    BIBTEX_ALREADY_EXISTS,
    BIBTEX_SAVED,
    FILE_ALREADY_EXISTS,
    NOTICE_NO_PDF_URL,
)
from scholar_notes.exceptions import FetchError
from scholar_notes.models import StructuredPaperData
from scholar_notes.notes.template import load_template, render

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]
FileOpener = Callable[[str], None]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9 ]")


class PipelineStage(str, Enum):
    """Stages of a paper download request."""

    FETCHING = "fetching"
    DOWNLOADING = "downloading"
    RENDERING = "rendering"
    WRITING = "writing"
    APPENDING_BIB = "appending_bib"
    DONE = "done"


@dataclass
class ArtifactReport:
    """
    What the pipeline did for one paper.

    Attributes:
        paper: The paper, with pdf_path set if a PDF is on disk.
        note_path: Vault-relative path of the note.
        note_created: False if an existing note was kept instead.
        pdf_downloaded: True only if the PDF was fetched over the network.
        bibtex_saved: True if a new BibTeX entry was written.
        stages: Stages entered, in order.
        skipped: Stages that ended in a skip branch.
    """

    paper: StructuredPaperData
    note_path: str = ""
    note_created: bool = False
    pdf_downloaded: bool = False
    bibtex_saved: bool = False
    stages: List[PipelineStage] = field(default_factory=list)
    skipped: List[PipelineStage] = field(default_factory=list)

    @property
    def pdf_path(self) -> Optional[str]:
        return self.paper.pdf_path

    def to_dict(self) -> dict:
        return {
            "paper": self.paper.to_dict(),
            "note_path": self.note_path,
            "note_created": self.note_created,
            "pdf_path": self.pdf_path,
            "pdf_downloaded": self.pdf_downloaded,
            "bibtex_saved": self.bibtex_saved,
            "stages": [stage.value for stage in self.stages],
            "skipped": [stage.value for stage in self.skipped],
        }


def construct_file_name(paper: StructuredPaperData) -> str:
    """
    Derive a filesystem-safe file name from a paper title.

    Every character outside [A-Za-z0-9 ] is removed. Titles with no such
    characters fall back to a stable digest of the title.

    Examples:
        >>> construct_file_name(StructuredPaperData(title='GPT-4: Technical Report!'))
        'GPT4 Technical Report'
    """
    name = _UNSAFE_FILENAME_CHARS.sub("", paper.title).strip()
    if not name:
        digest = hashlib.sha1(paper.title.encode("utf-8")).hexdigest()[:10]
        name = f"Paper {digest}"
    return name


def _log_notice(message: str) -> None:
    logger.info(f"Notice: {message}")


def _no_open(path: str) -> None:
    logger.debug(f"No file opener configured, not opening {path}")


class ArtifactWriter:
    """
    Persists the note, PDF and BibTeX entry for a paper.

    Host feedback goes through two injected callables: ``notify`` for
    transient messages and ``open_file`` for "show this file". Paths handed to
    them are relative to the vault root and joined with ``path_sep``.

    Typical usage:
        >>> writer = ArtifactWriter(config.notes, notify=print)
        >>> report = writer.download_and_save_paper_note_pdf(paper)
        >>> report.note_path
        'Papers/Attention Is All You Need.md'

    Attributes:
        config: Artifact locations and toggles.
        path_sep: Separator used to build vault-relative paths.
        request_timeout: Timeout for PDF downloads in seconds.
    """

    def __init__(
        self,
        config: NoteConfig,
        path_sep: str = os.sep,
        session: Optional[requests.Session] = None,
        notify: Optional[Notifier] = None,
        open_file: Optional[FileOpener] = None,
        request_timeout: int = 60,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.path_sep = path_sep
        self.request_timeout = request_timeout
        self.notify = notify or _log_notice
        self.open_file = open_file or _no_open
        self._clock = clock
        self._session = session or requests.Session()

    def construct_file_name(self, paper: StructuredPaperData) -> str:
        return construct_file_name(paper)

    def _join(self, folder: str, name: str) -> str:
        return f"{folder}{self.path_sep}{name}"

    def note_path_for(self, paper: StructuredPaperData) -> str:
        """Vault-relative path of the note for a paper."""
        folder = self.config.require("note_location")
        return self._join(folder, self.construct_file_name(paper) + ".md")

    def _fetch_pdf(self, pdf_url: str, filename: str) -> Tuple[str, bool]:
        """Download unless present; returns (path, downloaded_over_network)."""
        folder = self.config.require("pdf_download_location")
        pdf_save_path = self._join(folder, filename + ".pdf")
        dest = self.config.resolve(pdf_save_path)

        if dest.exists():
            logger.info(f"PDF already exists: {pdf_save_path}")
            return pdf_save_path, False

        logger.info(f"Downloading PDF {pdf_url} -> {pdf_save_path}")
        try:
            response = self._session.get(pdf_url, timeout=self.request_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to download PDF {pdf_url}: {e}")
            raise FetchError("pdf", e) from e

        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(dest, "xb") as f:
                f.write(response.content)
        except FileExistsError:
            logger.info(f"PDF appeared during download, keeping existing: {pdf_save_path}")
            return pdf_save_path, False

        file_size = dest.stat().st_size / (1024 * 1024)
        logger.info(f"Saved PDF {dest.name} ({file_size:.2f} MB)")
        return pdf_save_path, True

    def download_pdf(self, pdf_url: Optional[str], filename: str) -> str:
        """
        Download a PDF into the PDF folder.

        Args:
            pdf_url: Direct link to the PDF.
            filename: File name without extension.

        Returns:
            Vault-relative path of the PDF. If a file already exists there it
            is returned without any network request.

        Raises:
            ValueError: If pdf_url is empty.
            MissingConfigurationError: If the PDF folder is not configured.
            FetchError: If the download fails.
        """
        if not pdf_url:
            raise ValueError("pdf_url is empty")
        path, _ = self._fetch_pdf(pdf_url, filename)
        return path

    def render_note(self, paper: StructuredPaperData) -> str:
        """Render the configured note template for a paper."""
        template = load_template(self.config.vault_root, self.config.template_file_location)
        return render(template, paper, self._clock())

    def create_file_from_paper_data(self, paper: StructuredPaperData, path_to_file: str) -> bool:
        """
        Create the note for a paper unless one already exists.

        An existing note is never overwritten: the user is notified and the
        existing note is opened instead. With ``open_pdf_after_download`` the
        PDF is opened as well.

        Args:
            paper: Paper to render.
            path_to_file: Vault-relative note path.

        Returns:
            True if a new note was written.
        """
        content = self.render_note(paper)
        dest = self.config.resolve(path_to_file)
        dest.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(dest, "x", encoding="utf-8") as f:
                f.write(content)
            created = True
            logger.info(f"Created note {path_to_file}")
        except FileExistsError:
            created = False
            logger.info(f"Note already exists, not overwriting: {path_to_file}")
            self.notify(FILE_ALREADY_EXISTS)

        self.open_file(path_to_file)
        if self.config.open_pdf_after_download and paper.pdf_path:
            self.open_file(paper.pdf_path)
        return created

    def save_bibtex(self, bibtex: str) -> bool:
        """
        Prepend a BibTeX entry to the bibliography file.

        The entry is skipped when BibTeX saving is disabled or when the exact
        entry text is already contained in the file. A missing file is created.

        Returns:
            True if the entry was written.

        Raises:
            MissingConfigurationError: If the BibTeX location is not set.
        """
        if not self.config.save_bibtex:
            logger.debug("BibTeX saving disabled")
            return False

        entry = (bibtex or "").strip()
        if not entry:
            return False

        bib_path = self.config.require("bibtex_file_location")
        dest = self.config.resolve(bib_path)
        existing = dest.read_text(encoding="utf-8") if dest.exists() else ""

        if entry in existing:
            logger.info(f"BibTeX entry already in {bib_path}")
            self.notify(BIBTEX_ALREADY_EXISTS)
            return False

        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(entry + "\n\n" + existing, encoding="utf-8")
        logger.info(f"Saved BibTeX entry to {bib_path}")
        self.notify(BIBTEX_SAVED)
        return True

    def _check_locations(self, paper: StructuredPaperData) -> None:
        """Fail before any write if a location this paper needs is unset."""
        self.config.require("note_location")
        if paper.pdf_url and not paper.pdf_path:
            self.config.require("pdf_download_location")
        if paper.bibtex and self.config.save_bibtex:
            self.config.require("bibtex_file_location")

    def download_and_save_paper_note_pdf(self, paper: StructuredPaperData) -> ArtifactReport:
        """
        Run the full pipeline for one paper.

        Stages: DOWNLOADING (optional), RENDERING, WRITING, APPENDING_BIB
        (optional), DONE. A skip branch still reaches DONE.

        Args:
            paper: Paper fetched from a source or read from a note.

        Returns:
            An ArtifactReport describing what was written and skipped.

        Raises:
            MissingConfigurationError: Before any write, if a needed location is unset.
            FetchError: If the PDF download fails; nothing else is written then.
        """
        self._check_locations(paper)
        filename = self.construct_file_name(paper)
        report = ArtifactReport(paper=paper)

        if paper.pdf_path:
            logger.debug(f"Paper already has a PDF: {paper.pdf_path}")
        elif not paper.pdf_url:
            self.notify(NOTICE_NO_PDF_URL)
        else:
            report.stages.append(PipelineStage.DOWNLOADING)
            pdf_path, downloaded = self._fetch_pdf(paper.pdf_url, filename)
            report.pdf_downloaded = downloaded
            if not downloaded:
                report.skipped.append(PipelineStage.DOWNLOADING)
            paper = paper.with_pdf_path(pdf_path)
            report.paper = paper

        report.note_path = self._join(self.config.require("note_location"), filename + ".md")
        report.stages.append(PipelineStage.RENDERING)
        report.stages.append(PipelineStage.WRITING)
        report.note_created = self.create_file_from_paper_data(paper, report.note_path)
        if not report.note_created:
            report.skipped.append(PipelineStage.WRITING)

        if paper.bibtex:
            report.stages.append(PipelineStage.APPENDING_BIB)
            report.bibtex_saved = self.save_bibtex(paper.bibtex)
            if not report.bibtex_saved:
                report.skipped.append(PipelineStage.APPENDING_BIB)

        report.stages.append(PipelineStage.DONE)
        return report

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()
