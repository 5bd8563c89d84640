"""User-facing notification texts and the default note template."""

NOTICE_RETRIEVING_ARXIV = "Retrieving paper information from arXiv API."
NOTICE_RETRIEVING_S2 = "Retrieving paper information from Semantic Scholar API."
NOTICE_PAPER_NOTE_DOWNLOAD_ERROR = (
    "Error: could not fetch the paper. Check the URL and try again."
)
NOTICE_INVALID_URL = "Invalid URL"
NOTICE_NO_PDF_URL = "No pdf url found. You might need to find the PDF manually."
NOTICE_PDF_DOWNLOAD_ERROR = "Error: could not download the PDF."
NOTICE_DOWNLOAD_FROM_S2 = "Download Paper From S2"
NOTICE_LOCAL_FILE_NOT_FOUND = "Local file path not found"
NOTICE_S2_URL_NOT_FOUND = "S2 URL not found"

FILE_ALREADY_EXISTS = "Note already exists. Opening the existing note."

BIBTEX_ALREADY_EXISTS = "BibTex entry already exists."
BIBTEX_SAVED = "BibTex entry saved."

# Metadata values sit in folded block scalars, which need no escaping.
NOTE_TEMPLATE_DEFAULT = """---
title: >-
  {{title}}
authors: >-
  {{authors}}
year: >-
  {{publicationDate}}
venue: >-
  {{venue}}
url: >-
  {{url}}
pdf: >-
  {{pdf}}
citekey: >-
  {{citekey}}
tags: >-
  {{tags}}
abstract: >-
  {{abstract}}
created: "{{date}} {{time}}"
---

# {{title}}

**Authors:** {{authors}}
**PDF:** {{pdf}}

## Abstract

{{abstract}}

## Notes

"""
