#!/usr/bin/env python3
"""
scholar_notes - Workflow Demo

This script runs the whole pipeline once, from the command line:
1. Fetch paper metadata from a URL (arXiv or Semantic Scholar)
2. Download the PDF
3. Render and create the note
4. Save the BibTeX entry
5. Search the local notes for the new paper

Usage:
    python demo_simple.py https://arxiv.org/abs/1706.03762
"""

import logging
import sys
import time

from scholar_notes.config import Config
from scholar_notes.logging_config import setup_logging

# Configure logging first
config = Config.from_env()
setup_logging(config.log)
logger = logging.getLogger(__name__)

from scholar_notes.manager import ScholarManager
from scholar_notes.search import search_local_papers


def print_section(title: str, icon: str = "⚡"):
    """Print a section header."""
    print(f"\n{'=' * 80}")
    print(f"{icon}  {title}")
    print(f"{'=' * 80}\n")


def main():
    url = sys.argv[1] if len(sys.argv) > 1 else "https://arxiv.org/abs/1706.03762"

    if not config.notes.note_location:
        config.notes.note_location = "Papers"
    if not config.notes.pdf_download_location:
        config.notes.pdf_download_location = "Papers/PDFs"
    if not config.notes.bibtex_file_location:
        config.notes.bibtex_file_location = "references.bib"

    with ScholarManager(
        config,
        notify=lambda message: print(f"  [notice] {message}"),
        open_file=lambda path: print(f"  [open] {path}"),
    ) as manager:
        return run_demo(manager, url)


def run_demo(manager: ScholarManager, url: str) -> int:
    print_section("STEP 1-4: Fetch, Download, Write Note, Save BibTeX", icon="📥")
    print(f"URL: {url}")
    print(f"Vault: {config.notes.vault_root.resolve()}\n")

    start_time = time.time()
    report = manager.create_note_from_url(url)
    elapsed = time.time() - start_time

    if report is None:
        print("\n❌ Pipeline failed, see notices above.")
        return 1

    print(f"\nTitle:    {report.paper.title}")
    print(f"Authors:  {', '.join(report.paper.authors[:5])}")
    print(f"Note:     {report.note_path} ({'created' if report.note_created else 'kept existing'})")
    print(f"PDF:      {report.pdf_path or '-'} ({'downloaded' if report.pdf_downloaded else 'not downloaded'})")
    print(f"BibTeX:   {'saved' if report.bibtex_saved else 'not saved'}")
    print(f"Stages:   {' -> '.join(stage.value for stage in report.stages)}")
    print(f"Time:     {elapsed:.2f}s")

    print_section("STEP 5: Search Local Notes", icon="🔎")
    query = report.paper.title.split()[0]
    matches = search_local_papers(manager.load_local_papers(), query)
    print(f"Query '{query}' matched {len(matches)} local note(s):")
    for match in matches:
        print(f"  - {match.local_file_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
