"""
Paper notes: template rendering and front-matter parsing.
"""

from scholar_notes.notes.reader import (
    LocalPaper,
    get_all_local_paper_data,
    read_paper_from_file,
    read_paper_from_note,
)
from scholar_notes.notes.template import format_datetime, load_template, render

__all__ = [
    "LocalPaper",
    "format_datetime",
    "get_all_local_paper_data",
    "load_template",
    "read_paper_from_file",
    "read_paper_from_note",
    "render",
]
