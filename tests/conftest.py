"""
pytest configuration and fixtures for scholar_notes tests.

This module provides shared fixtures for all test modules. Nothing here
touches the network: HTTP sessions and the arXiv client are mocked.
"""

import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scholar_notes.config import NoteConfig
from scholar_notes.models import StructuredPaperData
from scholar_notes.writer import ArtifactWriter

from tests.test_utils import make_response


@pytest.fixture(scope="function")
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def note_config(temp_dir):
    """Note configuration rooted in a temporary vault."""
    return NoteConfig(
        vault_root=temp_dir,
        note_location="Papers",
        pdf_download_location="Papers/PDFs",
        bibtex_file_location="references.bib",
        template_file_location="",
        save_bibtex=True,
        open_pdf_after_download=False,
    )


@pytest.fixture(scope="function")
def paper():
    """A fully populated paper."""
    return StructuredPaperData(
        title="Attention Is All You Need",
        authors=["Ashish Vaswani", "Noam Shazeer", "Niki Parmar"],
        abstract="The dominant sequence transduction models\nare based on recurrent networks.",
        url="https://arxiv.org/abs/1706.03762",
        pdf_url="https://arxiv.org/pdf/1706.03762",
        venue="NeurIPS",
        publication_date="2017",
        tags=["transformers", "attention"],
        citekey="vaswani2017attention",
        bibtex="@misc{vaswani2017attention,\n  title={Attention Is All You Need},\n  year={2017},\n}",
    )


@pytest.fixture(scope="function")
def pdf_session():
    """An HTTP session whose GET returns a small PDF."""
    session = Mock()
    session.headers = {}
    session.get.return_value = make_response()
    return session


@pytest.fixture(scope="function")
def notices():
    """Collects messages passed to notify()."""
    return []


@pytest.fixture(scope="function")
def opened():
    """Collects paths passed to open_file()."""
    return []


@pytest.fixture(scope="function")
def writer(note_config, pdf_session, notices, opened):
    """An ArtifactWriter with '/' as separator and a mocked session."""
    return ArtifactWriter(
        note_config,
        path_sep="/",
        session=pdf_session,
        notify=notices.append,
        open_file=opened.append,
    )
