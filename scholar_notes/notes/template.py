"""
Note template rendering.

Templates are plain text with ``{{field}}`` placeholders. Rendering is a
single left-to-right pass: each placeholder is resolved once and substituted
values are never scanned again, so a title containing ``{{date}}`` stays
literal.

Supported placeholders:
    {{date}}, {{time}}            default formats YYYY-MM-DD and HH:mm
    {{date:FMT}}, {{time:FMT}}    caller-supplied format (moment-style tokens)
    {{title}} {{authors}} {{abstract}} {{url}} {{venue}}
    {{publicationDate}} {{tags}}  metadata, newlines collapsed to spaces
    {{pdf}}                       [[pdf_path]] or empty
    {{citekey}}                   left untouched while the citekey is empty

Unknown placeholders are left verbatim.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Optional

from scholar_notes.constants import NOTE_TEMPLATE_DEFAULT
from scholar_notes.models import StructuredPaperData

logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "YYYY-MM-DD"
DEFAULT_TIME_FORMAT = "HH:mm"

_PLACEHOLDER = re.compile(r"\{\{([^{}]*)\}\}")
_NEWLINES = re.compile(r"\s*[\r\n]+\s*")
_FORMAT_TOKENS = re.compile(
    r"\[[^\]]*\]|YYYY|YY|MMMM|MMM|MM|M|Do|DD|D|dddd|ddd|d|HH|H|hh|h|mm|m|ss|s|A|a"
)


def wrap_link(path: str) -> str:
    """Wrap a vault path in an internal-link wrapper: ``[[path]]``."""
    return f"[[{path}]]"


def _ordinal(day: int) -> str:
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def _hour12(now: datetime) -> int:
    return now.hour % 12 or 12


_TOKEN_RENDERERS: Dict[str, Callable[[datetime], str]] = {
    "YYYY": lambda now: f"{now.year:04d}",
    "YY": lambda now: f"{now.year % 100:02d}",
    "MMMM": lambda now: now.strftime("%B"),
    "MMM": lambda now: now.strftime("%b"),
    "MM": lambda now: f"{now.month:02d}",
    "M": lambda now: str(now.month),
    "Do": lambda now: _ordinal(now.day),
    "DD": lambda now: f"{now.day:02d}",
    "D": lambda now: str(now.day),
    "dddd": lambda now: now.strftime("%A"),
    "ddd": lambda now: now.strftime("%a"),
    "d": lambda now: str(now.isoweekday() % 7),
    "HH": lambda now: f"{now.hour:02d}",
    "H": lambda now: str(now.hour),
    "hh": lambda now: f"{_hour12(now):02d}",
    "h": lambda now: str(_hour12(now)),
    "mm": lambda now: f"{now.minute:02d}",
    "m": lambda now: str(now.minute),
    "ss": lambda now: f"{now.second:02d}",
    "s": lambda now: str(now.second),
    "A": lambda now: "AM" if now.hour < 12 else "PM",
    "a": lambda now: "am" if now.hour < 12 else "pm",
}


def format_datetime(now: datetime, fmt: str) -> str:
    """
    Format a timestamp with moment-style tokens.

    Text in square brackets is emitted literally; characters that are not
    tokens pass through unchanged.

    Examples:
        >>> format_datetime(datetime(2024, 1, 5, 14, 3), 'YYYY-MM-DD HH:mm')
        '2024-01-05 14:03'
        >>> format_datetime(datetime(2024, 1, 5, 14, 3), 'MMMM Do [at] h:mm A')
        'January 5th at 2:03 PM'
    """

    def replace(match: re.Match) -> str:
        token = match.group(0)
        if token.startswith("["):
            return token[1:-1]
        return _TOKEN_RENDERERS[token](now)

    return _FORMAT_TOKENS.sub(replace, fmt)


def _clean(value: Optional[str]) -> str:
    if not value:
        return ""
    return _NEWLINES.sub(" ", value)


def _metadata_values(paper: StructuredPaperData) -> Dict[str, str]:
    return {
        "title": _clean(paper.title),
        "authors": _clean(", ".join(paper.authors)),
        "abstract": _clean(paper.abstract),
        "url": _clean(paper.url),
        "venue": _clean(paper.venue),
        "publicationDate": _clean(paper.publication_date),
        "tags": _clean(", ".join(paper.tags)),
        "pdf": wrap_link(paper.pdf_path) if paper.pdf_path else "",
    }


def render(template: str, paper: StructuredPaperData, now: Optional[datetime] = None) -> str:
    """
    Render a note template for a paper.

    Args:
        template: Template text.
        paper: Paper whose metadata fills the placeholders.
        now: Timestamp for date/time placeholders; the current time if None.

    Returns:
        The rendered note text.

    Examples:
        >>> paper = StructuredPaperData(title='Attention Is All You Need', authors=['A', 'B'])
        >>> render('{{title}} by {{authors}}', paper)
        'Attention Is All You Need by A, B'
    """
    now = now or datetime.now()
    values = _metadata_values(paper)

    def substitute(match: re.Match) -> str:
        token = match.group(1)
        if token == "date":
            return format_datetime(now, DEFAULT_DATE_FORMAT)
        if token == "time":
            return format_datetime(now, DEFAULT_TIME_FORMAT)
        if token.startswith("date:"):
            return format_datetime(now, token[len("date:"):] or DEFAULT_DATE_FORMAT)
        if token.startswith("time:"):
            return format_datetime(now, token[len("time:"):] or DEFAULT_TIME_FORMAT)
        if token == "citekey":
            # Keep the placeholder until a bibliographic key exists.
            return paper.citekey if paper.citekey else match.group(0)
        if token in values:
            return values[token]
        return match.group(0)

    return _PLACEHOLDER.sub(substitute, template)


def load_template(vault_root: Path, template_location: str = "") -> str:
    """
    Load the note template, falling back to the built-in default.

    Args:
        vault_root: Directory the template location is relative to.
        template_location: Template file path; blank means the default.

    Returns:
        Template text.
    """
    if template_location and template_location.strip():
        template_path = Path(vault_root) / template_location.strip()
        if template_path.is_file():
            logger.debug(f"Using note template {template_path}")
            return template_path.read_text(encoding="utf-8")
        logger.warning(f"Template file not found: {template_path}, using default template")
    return NOTE_TEMPLATE_DEFAULT
