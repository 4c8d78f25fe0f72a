"""FastAPI application: upload, parse and question-generation routes."""
from __future__ import annotations

import logging
import os
import random

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from content_ingest.config import Settings, load_settings, save_settings
from content_ingest.db import Database
from content_ingest.gateways.base import PersistenceError, PersistenceGateway
from content_ingest.models import DIFFICULTIES, QUESTION_TYPES
from content_ingest.parsers.document_parser import parse_document
from content_ingest.persistence import record_to_question, save_document
from content_ingest.question_generator import generate_questions_from_document

app = FastAPI(title="Content Ingest")

_log = logging.getLogger("content_ingest.app")

# Global state (initialized in startup)
_db: Database | None = None
_settings: Settings | None = None


def get_db() -> Database:
    assert _db is not None
    return _db


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def _get_gateway() -> PersistenceGateway:
    s = get_settings()
    if s.gateway == "sqlite":
        from content_ingest.gateways.sqlite import SQLiteGateway
        return SQLiteGateway(get_db())
    elif s.gateway == "rest":
        from content_ingest.gateways.rest import RestGateway
        return RestGateway(
            s.rest_url,
            api_key=os.environ.get(s.rest_api_key_env, ""),
            timeout=s.rest_timeout,
        )
    raise ValueError(f"Unknown gateway: {s.gateway}")


def _get_rng() -> random.Random:
    seed = get_settings().random_seed
    return random.Random(seed) if seed is not None else random.Random()


@app.on_event("startup")
async def startup():
    global _db, _settings
    if _db is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    _db = Database(_settings.db_full_path)


@app.on_event("shutdown")
async def shutdown():
    if _db:
        _db.close()


def _require_content(body: dict) -> str:
    content = body.get("content")
    if not isinstance(content, str) or not content.strip():
        raise HTTPException(400, "No content provided")
    limit = get_settings().max_upload_bytes
    if len(content.encode()) > limit:
        raise HTTPException(413, f"Content exceeds the {limit // (1024 * 1024)}MB limit")
    return content


# ── API: Parse (upload preview) ───────────────────────────────────────────

@app.post("/api/parse")
async def api_parse(request: Request):
    body = await request.json()
    content = _require_content(body)
    parsed = parse_document(content, body.get("mime_type", "text/plain"))
    return {
        "title": parsed.metadata.title,
        "language": parsed.metadata.language,
        "suggested_tags": parsed.metadata.key_terms,
        "parsed": parsed.to_dict(),
    }


# ── API: Upload (parse, store, generate) ──────────────────────────────────

@app.post("/api/upload")
async def api_upload(request: Request):
    body = await request.json()
    s = get_settings()
    content = _require_content(body)
    mime_type = body.get("mime_type", "text/plain")
    content_type = body.get("content_type", "multipleChoice")
    difficulty = body.get("difficulty") or s.default_difficulty
    count = body.get("count", s.default_question_count)
    uploaded_by = body.get("uploaded_by")

    # Reject bad requests before anything is written
    if content_type not in QUESTION_TYPES:
        raise HTTPException(400, f"Unknown content type: {content_type}")
    if difficulty not in DIFFICULTIES:
        raise HTTPException(400, f"Unknown difficulty: {difficulty}")
    if not isinstance(count, int) or isinstance(count, bool) or count < 0:
        raise HTTPException(400, "count must be a non-negative integer")
    if not uploaded_by:
        raise HTTPException(400, "No uploader provided")

    parsed = parse_document(content, mime_type)
    gateway = _get_gateway()
    try:
        meta = await save_document(
            gateway,
            title=body.get("title") or parsed.metadata.title or "Untitled",
            mime_type=mime_type,
            size=len(content.encode()),
            uploaded_by=uploaded_by,
            content_type=content_type,
            language=body.get("language") or parsed.metadata.language,
            parsed=parsed,
            difficulty=difficulty,
            tags=body.get("tags") or parsed.metadata.key_terms,
        )
        questions = await generate_questions_from_document(
            gateway, meta.id, parsed, content_type,
            count=count,
            difficulty=difficulty,
            created_by=uploaded_by,
            rng=_get_rng(),
        )
    except PersistenceError as e:
        _log.warning("Upload failed: %s", e)
        raise HTTPException(502, f"Storage error: {e}")

    return {
        "document_id": meta.id,
        "parsed": parsed.to_dict(),
        "questions": [q.to_dict() for q in questions],
    }


# ── API: Stored questions ─────────────────────────────────────────────────

@app.get("/api/documents/{document_id}/questions")
async def api_document_questions(document_id: str):
    db = get_db()
    if db.get_document(document_id) is None:
        raise HTTPException(404, "Document not found")
    records = db.get_questions_for_content(document_id)
    return {"questions": [record_to_question(r).to_dict() for r in records]}


# ── API: Stats ────────────────────────────────────────────────────────────

@app.get("/api/stats")
async def api_stats():
    return get_db().get_stats()


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await request.json()
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    for k, v in body.items():
        if k in known:
            setattr(s, k, v)
    save_settings(s)
    return s.to_dict()
