"""
scholar_notes - Paper metadata to notes, PDFs and BibTeX.

This package provides a host-agnostic core for:
- Fetching paper metadata from arXiv and Semantic Scholar
- Rendering paper notes from user templates
- Downloading PDFs and maintaining a BibTeX bibliography
- Reading existing paper notes back for search
"""

__version__ = "0.1.0"
