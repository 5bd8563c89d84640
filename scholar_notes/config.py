"""
Configuration management for scholar_notes.

This module provides centralized configuration management using environment
variables and python-dotenv. The host application owns the storage and UI of
these settings; the core only consumes the resolved values.

Environment variables are loaded from .env file or system environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from scholar_notes.exceptions import MissingConfigurationError

# Load environment variables from .env file if present
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class NoteConfig:
    """
    Locations and toggles for the note/PDF/BibTeX artifacts.

    All locations are relative to ``vault_root``. An empty string means the
    setting is unset.

    Attributes:
        vault_root: Directory every other location is relative to.
        note_location: Folder where paper notes are created.
        pdf_download_location: Folder where PDFs are saved.
        bibtex_file_location: BibTeX file new entries are prepended to.
        template_file_location: Note template file (default template if unset).
        save_bibtex: Whether to save BibTeX entries at all.
        open_pdf_after_download: Whether to open the PDF next to the new note.
    """

    vault_root: Path = field(default_factory=lambda: Path("."))
    note_location: str = ""
    pdf_download_location: str = ""
    bibtex_file_location: str = ""
    template_file_location: str = ""
    save_bibtex: bool = True
    open_pdf_after_download: bool = False

    @classmethod
    def from_env(cls) -> "NoteConfig":
        """
        Create NoteConfig from environment variables.

        Returns:
            A configured NoteConfig instance.
        """
        return cls(
            vault_root=Path(os.getenv("SCHOLAR_VAULT_ROOT", ".")),
            note_location=os.getenv("SCHOLAR_NOTE_LOCATION", ""),
            pdf_download_location=os.getenv("SCHOLAR_PDF_DOWNLOAD_LOCATION", ""),
            bibtex_file_location=os.getenv("SCHOLAR_BIBTEX_FILE_LOCATION", ""),
            template_file_location=os.getenv("SCHOLAR_TEMPLATE_FILE_LOCATION", ""),
            save_bibtex=_env_flag("SCHOLAR_SAVE_BIBTEX", "true"),
            open_pdf_after_download=_env_flag("SCHOLAR_OPEN_PDF_AFTER_DOWNLOAD", "false"),
        )

    def require(self, name: str) -> str:
        """
        Return a location setting, failing if it is blank.

        Args:
            name: Attribute name, e.g. 'note_location'.

        Returns:
            The configured location with trailing separators removed.

        Raises:
            MissingConfigurationError: If the setting is empty.
        """
        value = (getattr(self, name) or "").strip()
        if not value:
            raise MissingConfigurationError(name)
        return value.rstrip("/\\")

    def resolve(self, relative_path: str) -> Path:
        """Map a vault-relative path onto the filesystem."""
        return Path(self.vault_root) / relative_path


@dataclass
class SemanticScholarConfig:
    """
    Configuration for the Semantic Scholar Graph API.

    Attributes:
        api_base: Base URL of the Graph API.
        api_key: Optional API key, sent as ``x-api-key``.
        timeout: Request timeout in seconds.
        search_limit: Number of results requested per search.
    """

    api_base: str = "https://api.semanticscholar.org/graph/v1"
    api_key: str = ""
    timeout: int = 30
    search_limit: int = 10

    @classmethod
    def from_env(cls) -> "SemanticScholarConfig":
        """
        Create SemanticScholarConfig from environment variables.

        Returns:
            A configured SemanticScholarConfig instance.
        """
        return cls(
            api_base=os.getenv("S2_API_BASE", "https://api.semanticscholar.org/graph/v1"),
            api_key=os.getenv("S2_API_KEY", ""),
            timeout=int(os.getenv("S2_TIMEOUT", "30")),
            search_limit=int(os.getenv("S2_SEARCH_LIMIT", "10")),
        )


@dataclass
class ArxivConfig:
    """
    Configuration for arXiv metadata lookups.

    Attributes:
        delay_seconds: Minimum delay between arXiv API requests.
    """

    delay_seconds: float = 3.0

    @classmethod
    def from_env(cls) -> "ArxivConfig":
        """
        Create ArxivConfig from environment variables.

        Returns:
            A configured ArxivConfig instance.
        """
        return cls(delay_seconds=float(os.getenv("ARXIV_DELAY_SECONDS", "3.0")))


@dataclass
class SearchConfig:
    """
    Configuration for search-as-you-type.

    Attributes:
        debounce_ms: Delay before a typed query is sent to Semantic Scholar.
        min_query_length: Queries shorter than this are never sent.
    """

    debounce_ms: int = 250
    min_query_length: int = 3

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """
        Create SearchConfig from environment variables.

        Returns:
            A configured SearchConfig instance.
        """
        return cls(
            debounce_ms=int(os.getenv("SEARCH_DEBOUNCE_MS", "250")),
            min_query_length=int(os.getenv("SEARCH_MIN_QUERY_LENGTH", "3")),
        )


@dataclass
class LogConfig:
    """
    Configuration for application logging.

    Controls logging behavior including log level, output format,
    and file rotation settings.

    Attributes:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Directory for log files.
        log_file: Name of the log file.
        max_bytes: Maximum size of a single log file before rotation.
        backup_count: Number of backup log files to keep.
        format_string: Log message format string.
        date_format: Date format for log timestamps.
        console_output: Whether to also output logs to console.
    """

    level: str = "INFO"
    log_dir: Path = field(default_factory=lambda: Path("data/logs"))
    log_file: str = "scholar_notes.log"
    max_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    console_output: bool = True

    @classmethod
    def from_env(cls) -> "LogConfig":
        """
        Create LogConfig from environment variables.

        The log directory is created by setup_logging(), not here.

        Returns:
            A configured LogConfig instance.
        """
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_dir=Path(os.getenv("LOG_DIR", "data/logs")),
            log_file=os.getenv("LOG_FILE", "scholar_notes.log"),
            max_bytes=int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024))),  # 10 MB
            backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            format_string=os.getenv(
                "LOG_FORMAT",
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            date_format=os.getenv("LOG_DATE_FORMAT", "%Y-%m-%d %H:%M:%S"),
            console_output=_env_flag("LOG_CONSOLE_OUTPUT", "true"),
        )


@dataclass
class Config:
    """
    Main configuration container for scholar_notes.

    Aggregates all sub-configurations into a single interface. It's
    typically created once at application startup using from_env().

    Attributes:
        notes: Artifact locations and toggles.
        semantic_scholar: Semantic Scholar API configuration.
        arxiv: arXiv lookup configuration.
        search: Search-as-you-type configuration.
        log: Logging configuration.
    """

    notes: NoteConfig = field(default_factory=NoteConfig)
    semantic_scholar: SemanticScholarConfig = field(default_factory=SemanticScholarConfig)
    arxiv: ArxivConfig = field(default_factory=ArxivConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create Config from environment variables.

        Returns:
            A fully configured Config instance.

        Examples:
            >>> config = Config.from_env()
            >>> config.search.debounce_ms
            250
        """
        return cls(
            notes=NoteConfig.from_env(),
            semantic_scholar=SemanticScholarConfig.from_env(),
            arxiv=ArxivConfig.from_env(),
            search=SearchConfig.from_env(),
            log=LogConfig.from_env(),
        )
