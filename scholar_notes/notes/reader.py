"""
Local note reader.

Parses the YAML front matter of paper notes back into StructuredPaperData so
already-downloaded papers can be searched. Each field is read by one typed
rule with an explicit default; see read_paper_from_note().
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from scholar_notes.exceptions import (
    MalformedFrontMatterError,
    MalformedLinkError,
    NoteParseError,
)
from scholar_notes.models import StructuredPaperData

logger = logging.getLogger(__name__)

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*\r?$", re.DOTALL | re.MULTILINE)
_LINK = re.compile(r"\[\[(.*?)\]\]")
_PLACEHOLDER = re.compile(r"\A\{\{[^{}]*\}\}\Z")


@dataclass
class LocalPaper:
    """
    A paper read from a note on disk.

    Attributes:
        paper: The parsed paper data.
        file_path: Path of the note relative to the vault root.
    """

    paper: StructuredPaperData
    file_path: str


def parse_front_matter(note_content: str) -> Dict[str, Any]:
    """
    Extract the front-matter mapping of a note.

    Returns:
        The parsed mapping, or an empty dict if the note has no front matter.

    Raises:
        MalformedFrontMatterError: If the block is not valid YAML or not a mapping.
    """
    match = _FRONT_MATTER.match(note_content)
    if not match:
        return {}
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise MalformedFrontMatterError(f"Invalid YAML front matter: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedFrontMatterError("Front matter is not a mapping")
    return data


def _text(value: Any) -> str:
    """Scalar field rule: missing or unexpanded placeholders become ''."""
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        raise MalformedFrontMatterError(f"Expected a scalar, got {value!r}")
    text = str(value).strip()
    if _PLACEHOLDER.match(text):
        return ""
    return text


def _string_list(value: Any, field_name: str) -> List[str]:
    """List field rule: comma-joined string or list of scalars; missing is []."""
    if value is None:
        return []
    if isinstance(value, str):
        if _PLACEHOLDER.match(value.strip()):
            return []
        items = value.split(",")
    elif isinstance(value, list):
        if any(isinstance(item, (list, dict)) for item in value):
            raise MalformedFrontMatterError(f"Malformed '{field_name}' field: {value!r}")
        items = [str(item) for item in value if item is not None]
    else:
        raise MalformedFrontMatterError(f"Malformed '{field_name}' field: {value!r}")
    return [item.strip() for item in items if item.strip()]


def _pdf_path(value: Any, note: str) -> Optional[str]:
    """
    Strip the ``[[path]]`` wrapper from the pdf field.

    An unquoted ``[[path]]`` is parsed by YAML as a nested list; that shape
    is accepted as the same link.
    """
    if value is None:
        return None
    if (
        isinstance(value, list)
        and len(value) == 1
        and isinstance(value[0], list)
        and len(value[0]) == 1
        and isinstance(value[0][0], str)
    ):
        return value[0][0].strip() or None
    if not isinstance(value, str):
        raise MalformedLinkError(repr(value), note)
    if not value.strip():
        return None
    match = _LINK.search(value)
    if not match:
        raise MalformedLinkError(value, note)
    return match.group(1).strip() or None


def read_paper_from_note(note_content: str, note_filename: str) -> StructuredPaperData:
    """
    Parse a note's front matter into StructuredPaperData.

    Field rules:
        title      front matter, else the filename without extension
        authors    comma-joined string or list; [] when missing
        abstract, url, venue, citekey   '' when missing
        year       becomes publication_date; '' when missing
        tags       list or comma-joined string; [] when missing
        pdf        '[[path]]' wrapper stripped; None when missing or empty

    Args:
        note_content: Full text of the note.
        note_filename: File name (or path) of the note.

    Returns:
        The paper described by the note.

    Raises:
        MalformedLinkError: If ``pdf`` is set but not wrapped in ``[[...]]``.
        MalformedFrontMatterError: If the front matter or a field is malformed.
    """
    front_matter = parse_front_matter(note_content)

    title = _text(front_matter.get("title")) or Path(note_filename).stem
    if not title:
        raise NoteParseError(f"Cannot derive a title for note {note_filename!r}")

    return StructuredPaperData(
        title=title,
        authors=_string_list(front_matter.get("authors"), "authors"),
        abstract=_text(front_matter.get("abstract")),
        url=_text(front_matter.get("url")),
        venue=_text(front_matter.get("venue")),
        publication_date=_text(front_matter.get("year")),
        tags=_string_list(front_matter.get("tags"), "tags"),
        pdf_path=_pdf_path(front_matter.get("pdf"), note_filename),
        citekey=_text(front_matter.get("citekey")),
    )


def read_paper_from_file(path: Path) -> StructuredPaperData:
    """
    Read and parse a note file.

    Raises:
        NoteParseError: If the file cannot be read as UTF-8 or does not parse.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as e:
        raise NoteParseError(f"Cannot read note {path}: {e}") from e
    return read_paper_from_note(content, path.name)


def get_all_local_paper_data(vault_root: Path, note_location: str) -> List[LocalPaper]:
    """
    Read every markdown note below the note location.

    Notes that fail to parse are logged and skipped.

    Args:
        vault_root: Directory the note location is relative to.
        note_location: Notes folder, relative to vault_root.

    Returns:
        Parsed papers with their vault-relative note paths, sorted by path.
    """
    vault_root = Path(vault_root)
    notes_dir = vault_root / note_location
    if not notes_dir.is_dir():
        logger.warning(f"Notes directory does not exist: {notes_dir}")
        return []

    papers: List[LocalPaper] = []
    for note_path in sorted(notes_dir.rglob("*.md")):
        try:
            paper = read_paper_from_file(note_path)
        except NoteParseError as e:
            logger.warning(f"Skipping note {note_path}: {e}")
            continue
        papers.append(LocalPaper(paper=paper, file_path=note_path.relative_to(vault_root).as_posix()))

    logger.info(f"Loaded {len(papers)} local papers from {notes_dir}")
    return papers
