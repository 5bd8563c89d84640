"""
Unit tests for the artifact writer.

Covers file-name derivation, PDF download with exists-check, note creation
without overwrite, BibTeX deduplication and the full ordered pipeline.
"""

from datetime import datetime

import pytest
import requests

from scholar_notes.config import NoteConfig
from scholar_notes.constants import (
    BIBTEX_ALREADY_EXISTS,
    FILE_ALREADY_EXISTS,
    NOTICE_NO_PDF_URL,
)
from scholar_notes.exceptions import FetchError, MissingConfigurationError
from scholar_notes.models import StructuredPaperData
from scholar_notes.notes.reader import read_paper_from_file
from scholar_notes.writer import ArtifactWriter, PipelineStage, construct_file_name

from tests.test_utils import make_response

PDF_PATH = "Papers/PDFs/Attention Is All You Need.pdf"
NOTE_PATH = "Papers/Attention Is All You Need.md"


class TestConstructFileName:
    """Tests for construct_file_name()."""

    def test_punctuation_stripped(self):
        paper = StructuredPaperData(title="GPT-4: Technical Report!")
        assert construct_file_name(paper) == "GPT4 Technical Report"

    def test_spaces_kept(self, paper):
        assert construct_file_name(paper) == "Attention Is All You Need"

    def test_non_ascii_removed(self):
        paper = StructuredPaperData(title="Über Modelle/Netze (2024)")
        assert construct_file_name(paper) == "ber ModelleNetze 2024"

    def test_no_safe_characters(self):
        """Titles without safe characters get a stable fallback name."""
        paper = StructuredPaperData(title="深度学习")
        name = construct_file_name(paper)

        assert name.startswith("Paper ")
        assert name == construct_file_name(StructuredPaperData(title="深度学习"))
        assert name != construct_file_name(StructuredPaperData(title="机器学习"))


class TestDownloadPdf:
    """Tests for ArtifactWriter.download_pdf()."""

    def test_download(self, writer, pdf_session, temp_dir):
        path = writer.download_pdf("https://arxiv.org/pdf/1706.03762", "Attention Is All You Need")

        assert path == PDF_PATH
        assert (temp_dir / PDF_PATH).read_bytes() == b"%PDF-1.4 test"
        pdf_session.get.assert_called_once()
        assert pdf_session.get.call_args[0][0] == "https://arxiv.org/pdf/1706.03762"

    def test_existing_pdf_skips_network(self, writer, pdf_session, temp_dir):
        """An existing file is returned with zero requests."""
        existing = temp_dir / PDF_PATH
        existing.parent.mkdir(parents=True)
        existing.write_bytes(b"old")

        path = writer.download_pdf("https://arxiv.org/pdf/1706.03762", "Attention Is All You Need")

        assert path == PDF_PATH
        assert existing.read_bytes() == b"old"
        pdf_session.get.assert_not_called()

    def test_missing_url(self, writer):
        with pytest.raises(ValueError):
            writer.download_pdf(None, "x")
        with pytest.raises(ValueError):
            writer.download_pdf("", "x")

    def test_http_error(self, writer, pdf_session, temp_dir):
        pdf_session.get.return_value = make_response(status_code=403)

        with pytest.raises(FetchError) as exc_info:
            writer.download_pdf("https://example.org/paper.pdf", "Paper")
        assert exc_info.value.source == "pdf"
        assert not (temp_dir / "Papers/PDFs/Paper.pdf").exists()

    def test_connection_error(self, writer, pdf_session):
        pdf_session.get.side_effect = requests.ConnectionError("offline")

        with pytest.raises(FetchError):
            writer.download_pdf("https://example.org/paper.pdf", "Paper")

    def test_missing_location(self, note_config, pdf_session):
        note_config.pdf_download_location = ""
        writer = ArtifactWriter(note_config, path_sep="/", session=pdf_session)

        with pytest.raises(MissingConfigurationError) as exc_info:
            writer.download_pdf("https://example.org/paper.pdf", "Paper")
        assert exc_info.value.setting == "pdf_download_location"
        pdf_session.get.assert_not_called()

    def test_injected_separator(self, note_config, pdf_session):
        writer = ArtifactWriter(note_config, path_sep="\\", session=pdf_session)

        path = writer.download_pdf("https://example.org/paper.pdf", "Paper")
        assert path == "Papers/PDFs\\Paper.pdf"


class TestCreateFile:
    """Tests for ArtifactWriter.create_file_from_paper_data()."""

    def test_creates_and_opens(self, writer, paper, temp_dir, opened):
        created = writer.create_file_from_paper_data(paper, NOTE_PATH)

        assert created is True
        content = (temp_dir / NOTE_PATH).read_text(encoding="utf-8")
        assert "# Attention Is All You Need" in content
        assert opened == [NOTE_PATH]

    def test_existing_note_not_overwritten(self, writer, paper, temp_dir, notices, opened):
        """An existing note is kept, the user is told and the note is opened."""
        note = temp_dir / NOTE_PATH
        note.parent.mkdir(parents=True)
        note.write_text("my own notes", encoding="utf-8")

        created = writer.create_file_from_paper_data(paper, NOTE_PATH)

        assert created is False
        assert note.read_text(encoding="utf-8") == "my own notes"
        assert FILE_ALREADY_EXISTS in notices
        assert opened == [NOTE_PATH]

    def test_custom_template(self, note_config, paper, temp_dir, pdf_session):
        template = temp_dir / "Templates" / "paper.md"
        template.parent.mkdir()
        template.write_text("{{title}} ({{date:YYYY}}) {{citekey}}", encoding="utf-8")
        note_config.template_file_location = "Templates/paper.md"
        writer = ArtifactWriter(
            note_config, path_sep="/", session=pdf_session, clock=lambda: datetime(2024, 1, 2)
        )

        writer.create_file_from_paper_data(paper, NOTE_PATH)

        assert (temp_dir / NOTE_PATH).read_text(encoding="utf-8") == (
            "Attention Is All You Need (2024) vaswani2017attention"
        )

    def test_open_pdf_after_download(self, note_config, paper, pdf_session, opened):
        note_config.open_pdf_after_download = True
        writer = ArtifactWriter(note_config, path_sep="/", session=pdf_session, open_file=opened.append)

        writer.create_file_from_paper_data(paper.with_pdf_path(PDF_PATH), NOTE_PATH)

        assert opened == [NOTE_PATH, PDF_PATH]


class TestSaveBibtex:
    """Tests for ArtifactWriter.save_bibtex()."""

    ENTRY = "@misc{a2020,\n  title={A},\n}"
    OTHER = "@misc{b2021,\n  title={B},\n}"

    def test_creates_file(self, writer, temp_dir):
        assert writer.save_bibtex(self.ENTRY) is True
        assert (temp_dir / "references.bib").read_text(encoding="utf-8") == self.ENTRY + "\n\n"

    def test_prepends(self, writer, temp_dir):
        writer.save_bibtex(self.ENTRY)
        writer.save_bibtex(self.OTHER)

        content = (temp_dir / "references.bib").read_text(encoding="utf-8")
        assert content.index(self.OTHER) < content.index(self.ENTRY)

    def test_same_entry_twice(self, writer, temp_dir, notices):
        """Saving the same entry twice leaves one occurrence."""
        assert writer.save_bibtex(self.ENTRY) is True
        assert writer.save_bibtex(self.ENTRY) is False

        content = (temp_dir / "references.bib").read_text(encoding="utf-8")
        assert content.count(self.ENTRY) == 1
        assert BIBTEX_ALREADY_EXISTS in notices

    def test_disabled(self, note_config, temp_dir):
        note_config.save_bibtex = False
        writer = ArtifactWriter(note_config, path_sep="/")

        assert writer.save_bibtex(self.ENTRY) is False
        assert not (temp_dir / "references.bib").exists()

    def test_missing_location(self, note_config):
        note_config.bibtex_file_location = "  "
        writer = ArtifactWriter(note_config, path_sep="/")

        with pytest.raises(MissingConfigurationError):
            writer.save_bibtex(self.ENTRY)


class TestPipeline:
    """Tests for ArtifactWriter.download_and_save_paper_note_pdf()."""

    def test_full_run(self, writer, paper, temp_dir, pdf_session):
        report = writer.download_and_save_paper_note_pdf(paper)

        assert report.stages == [
            PipelineStage.DOWNLOADING,
            PipelineStage.RENDERING,
            PipelineStage.WRITING,
            PipelineStage.APPENDING_BIB,
            PipelineStage.DONE,
        ]
        assert report.skipped == []
        assert report.pdf_downloaded is True
        assert report.note_created is True
        assert report.bibtex_saved is True
        assert report.note_path == NOTE_PATH
        assert report.pdf_path == PDF_PATH
        assert (temp_dir / PDF_PATH).exists()
        assert (temp_dir / "references.bib").exists()
        assert "[[Papers/PDFs/Attention Is All You Need.pdf]]" in (temp_dir / NOTE_PATH).read_text(encoding="utf-8")

    def test_idempotent(self, writer, paper, temp_dir, pdf_session):
        """A second run writes nothing and still finishes."""
        writer.download_and_save_paper_note_pdf(paper)
        note_before = (temp_dir / NOTE_PATH).read_text(encoding="utf-8")
        bib_before = (temp_dir / "references.bib").read_text(encoding="utf-8")

        report = writer.download_and_save_paper_note_pdf(paper)

        assert pdf_session.get.call_count == 1
        assert report.skipped == [PipelineStage.DOWNLOADING, PipelineStage.WRITING, PipelineStage.APPENDING_BIB]
        assert report.stages[-1] == PipelineStage.DONE
        assert (temp_dir / NOTE_PATH).read_text(encoding="utf-8") == note_before
        assert (temp_dir / "references.bib").read_text(encoding="utf-8") == bib_before

    def test_no_pdf_url(self, writer, temp_dir, notices, pdf_session):
        paper = StructuredPaperData(title="No PDF Here", authors=["A"])

        report = writer.download_and_save_paper_note_pdf(paper)

        assert NOTICE_NO_PDF_URL in notices
        assert PipelineStage.DOWNLOADING not in report.stages
        assert PipelineStage.APPENDING_BIB not in report.stages
        assert report.pdf_path is None
        assert (temp_dir / "Papers/No PDF Here.md").exists()
        pdf_session.get.assert_not_called()

    def test_download_failure_writes_nothing(self, writer, paper, temp_dir, pdf_session):
        pdf_session.get.return_value = make_response(status_code=500)

        with pytest.raises(FetchError):
            writer.download_and_save_paper_note_pdf(paper)

        assert not (temp_dir / NOTE_PATH).exists()
        assert not (temp_dir / "references.bib").exists()

    def test_missing_configuration_before_any_write(self, note_config, paper, temp_dir, pdf_session):
        note_config.bibtex_file_location = ""
        writer = ArtifactWriter(note_config, path_sep="/", session=pdf_session)

        with pytest.raises(MissingConfigurationError):
            writer.download_and_save_paper_note_pdf(paper)

        pdf_session.get.assert_not_called()
        assert not (temp_dir / "Papers").exists()

    def test_round_trip_through_reader(self, writer, paper, temp_dir):
        """A written note reads back with the same title, authors and pdf path."""
        report = writer.download_and_save_paper_note_pdf(paper)

        read_back = read_paper_from_file(temp_dir / report.note_path)

        assert read_back.title == paper.title
        assert read_back.authors == paper.authors
        assert read_back.pdf_path == report.pdf_path
        assert read_back.citekey == paper.citekey
        assert read_back.publication_date == paper.publication_date
        assert read_back.tags == paper.tags
        assert read_back.abstract == "The dominant sequence transduction models are based on recurrent networks."

    def test_round_trip_awkward_title(self, note_config, temp_dir):
        """Titles with YAML-significant characters survive the default template."""
        paper = StructuredPaperData(
            title='GPT-4: "Technical" Report #1 \\ [draft]',
            authors=["O'Brien, Jr."],
        )
        writer = ArtifactWriter(note_config, path_sep="/")

        report = writer.download_and_save_paper_note_pdf(paper)
        read_back = read_paper_from_file(temp_dir / report.note_path)

        assert report.note_path == "Papers/GPT4 Technical Report 1  draft.md"
        assert read_back.title == paper.title

    def test_report_to_dict(self, writer, paper):
        data = writer.download_and_save_paper_note_pdf(paper).to_dict()

        assert data["stages"] == ["downloading", "rendering", "writing", "appending_bib", "done"]
        assert data["pdf_path"] == PDF_PATH
        assert data["paper"]["title"] == paper.title

    def test_round_trip_quotes_and_backslashes(self, note_config, temp_dir):
        """Quotes and backslashes in metadata survive the default template."""
        paper = StructuredPaperData(
            title="Typesetting Notes",
            authors=['Nicholas "Nick" Jones', "B"],
            venue="Proc. \\LaTeX Users Group",
            url='https://example.org/paper?q="x"',
            tags=["type: setting", "[draft]"],
        )
        writer = ArtifactWriter(note_config, path_sep="/")

        report = writer.download_and_save_paper_note_pdf(paper)
        read_back = read_paper_from_file(temp_dir / report.note_path)

        assert read_back.title == paper.title
        assert read_back.authors == ['Nicholas "Nick" Jones', "B"]
        assert read_back.venue == "Proc. \\LaTeX Users Group"
        assert read_back.url == 'https://example.org/paper?q="x"'
        assert read_back.tags == ["type: setting", "[draft]"]

    def test_round_trip_windows_separator(self, note_config, paper, temp_dir, pdf_session):
        writer = ArtifactWriter(note_config, path_sep="\\", session=pdf_session)

        report = writer.download_and_save_paper_note_pdf(paper)
        read_back = read_paper_from_file(temp_dir / report.note_path)

        assert read_back.pdf_path == "Papers/PDFs\\Attention Is All You Need.pdf"
