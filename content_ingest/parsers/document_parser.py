"""Parse uploaded, already-decoded text into a ParsedDocument.

Plain-text uploads use a markdown-like layout:

  Title line
  # Section heading        (level 1)
  ## Subsection heading    (level 2)
  body lines...

Anything that is not a text mime type is returned unsegmented.
"""
from __future__ import annotations

import logging

from content_ingest.analysis import detect_language, extract_key_terms
from content_ingest.models import DocumentMetadata, ParsedDocument, Section

_log = logging.getLogger("content_ingest.parser")


def is_text_mime_type(mime_type: str) -> bool:
    return mime_type == "text/plain" or "text" in mime_type


def parse_document(raw_content: str, mime_type: str) -> ParsedDocument:
    if is_text_mime_type(mime_type):
        return parse_text_document(raw_content)

    _log.debug("No structural parser for %s, keeping full text", mime_type)
    return ParsedDocument(
        text=raw_content,
        metadata=DocumentMetadata(
            word_count=len(raw_content.split()),
            language=detect_language(raw_content),
        ),
    )


def parse_text_document(raw_content: str) -> ParsedDocument:
    lines = raw_content.splitlines() or [""]
    title = lines[0].strip()
    body_lines = lines[1:]
    text = "\n".join(body_lines).strip()

    sections = _split_sections(body_lines)
    _log.debug("Parsed '%s': %d sections", title, len(sections))

    return ParsedDocument(
        text=text,
        metadata=DocumentMetadata(
            title=title,
            word_count=len(text.split()),
            language=detect_language(text),
            key_terms=extract_key_terms(text),
        ),
        sections=sections or None,
    )


def _split_sections(lines: list[str]) -> list[Section]:
    sections: list[Section] = []
    current: Section | None = None
    buffer: list[str] = []

    for line in lines:
        if line.startswith("## "):
            heading = (line[3:].strip(), 2)
        elif line.startswith("# "):
            heading = (line[2:].strip(), 1)
        else:
            # Lines before the first heading carry over into the first section
            buffer.append(line)
            continue

        if current is not None:
            current.content = "\n".join(buffer)
            sections.append(current)
            buffer = []
        current = Section(title=heading[0], content="", level=heading[1])

    if current is not None:
        current.content = "\n".join(buffer)
        sections.append(current)

    return sections
