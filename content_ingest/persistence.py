"""Translate between in-memory models and the storage record shape.

Question records use the column names of the ``questions`` table; document
records those of the ``content`` table.  Gateways only ever see these dicts.
"""
from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime, timezone

from content_ingest.gateways.base import PersistenceError, PersistenceGateway
from content_ingest.models import DocumentMeta, GeneratedQuestion, ParsedDocument

_log = logging.getLogger("content_ingest.persistence")


def question_to_record(question: GeneratedQuestion, created_by: str, now: str) -> dict:
    return {
        "id": question.id,
        "content_id": question.source_content_id,
        "question": question.question,
        "question_type": question.question_type,
        "options": question.options or None,
        "correct_answer": question.correct_answer,
        "explanation": question.explanation or None,
        "difficulty": question.difficulty,
        "tags": question.tags or [],
        "language": question.language,
        "created_by": created_by,
        "created_at": now,
        "updated_at": now,
    }


_FRACTION_RE = re.compile(r"\.(\d+)")


def _parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    # PostgREST may emit a trailing "Z" and trims zeros off the fraction;
    # fromisoformat before 3.11 wants exactly 6 fractional digits
    value = value.replace("Z", "+00:00")
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.fromisoformat(value)


def record_to_question(record: dict) -> GeneratedQuestion:
    return GeneratedQuestion(
        id=record["id"],
        question=record["question"],
        options=record.get("options"),
        correct_answer=record["correct_answer"],
        explanation=record.get("explanation"),
        difficulty=record["difficulty"],
        question_type=record["question_type"],
        tags=record.get("tags") or [],
        language=record["language"],
        source_content_id=record["content_id"],
        created_at=_parse_timestamp(record["created_at"]),
        updated_at=_parse_timestamp(record["updated_at"]),
    )


async def save_questions(
    gateway: PersistenceGateway,
    questions: list[GeneratedQuestion],
    created_by: str,
) -> list[GeneratedQuestion]:
    """Write *questions* in one batch and return them as the gateway stored them."""
    now = datetime.now(timezone.utc).isoformat()
    records = [question_to_record(q, created_by, now) for q in questions]
    stored = await gateway.insert_questions(records)
    _log.info("Stored %d questions via %s", len(stored), gateway.name())
    try:
        return [record_to_question(r) for r in stored]
    except (KeyError, ValueError) as e:
        raise PersistenceError(f"Unreadable question row from {gateway.name()}: {e}") from e


def document_to_record(meta: DocumentMeta, parsed: ParsedDocument, now: str) -> dict:
    return {
        "id": meta.id,
        "title": meta.title,
        "description": f"Uploaded {meta.type} document",
        "content_type": meta.content_type,
        "difficulty": meta.difficulty or "intermediate",
        "language": meta.language,
        "tags": meta.tags or [],
        "size": meta.size,
        "created_by": meta.uploaded_by,
        "created_at": now,
        "updated_at": now,
        "is_published": True,
        "raw_content": json.dumps(parsed.to_dict()),
    }


async def save_document(
    gateway: PersistenceGateway,
    title: str,
    mime_type: str,
    size: int,
    uploaded_by: str,
    content_type: str,
    language: str,
    parsed: ParsedDocument,
    difficulty: str | None = None,
    tags: list[str] | None = None,
) -> DocumentMeta:
    """Store an uploaded document with its parsed form; returns its metadata."""
    now = datetime.now(timezone.utc).isoformat()
    meta = DocumentMeta(
        id=str(uuid.uuid4()),
        title=title,
        type=mime_type,
        size=size,
        uploaded_by=uploaded_by,
        content_type=content_type,
        language=language,
        created_at=now,
        parsed_content=parsed,
        difficulty=difficulty,
        tags=tags,
    )
    await gateway.insert_document(document_to_record(meta, parsed, now))
    _log.info("Stored document %s (%s)", meta.id, title)
    return meta
