"""Shared test fixtures."""
from __future__ import annotations

import random

import pytest

from content_ingest.db import Database
from content_ingest.gateways.base import PersistenceGateway
from content_ingest.gateways.sqlite import SQLiteGateway
from content_ingest.parsers.document_parser import parse_document


class FakeGateway(PersistenceGateway):
    """In-memory gateway that records every batch it receives."""

    def __init__(self, fail_questions=None, fail_documents=None, server_time=None):
        self._fail_questions = fail_questions
        self._fail_documents = fail_documents
        self._server_time = server_time
        self.question_batches: list[list[dict]] = []
        self.documents: list[dict] = []

    async def insert_questions(self, records: list[dict]) -> list[dict]:
        if self._fail_questions:
            raise self._fail_questions
        self.question_batches.append(records)
        stored = [dict(r) for r in records]
        if self._server_time:
            for r in stored:
                r["created_at"] = r["updated_at"] = self._server_time
        return stored

    async def insert_document(self, record: dict) -> dict:
        if self._fail_documents:
            raise self._fail_documents
        self.documents.append(record)
        return dict(record)

    def name(self) -> str:
        return "fake-gateway"


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def sqlite_gateway(tmp_db):
    return SQLiteGateway(tmp_db)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def lesson_text():
    """A plain-text upload with level-1 and level-2 sections."""
    return """\
Learning Strategies
# Reading
Active readers summarise every paragraph in their own words. Summaries expose gaps in understanding quickly.

Spaced review strengthens memory over several weeks. Short sessions beat long cramming marathons.
## Vocabulary
Flashcards help learners remember difficult vocabulary. Learners should review flashcards every single day.
# Listening
Podcasts provide authentic listening practice for learners.
"""


@pytest.fixture
def lesson(lesson_text):
    return parse_document(lesson_text, "text/plain")


@pytest.fixture
def italian_text():
    return """\
La cittadinanza italiana
Questo documento descrive la storia della Repubblica. Sono molte le persone che studiano per l'esame.

Una domanda frequente riguarda la Costituzione con i suoi principi fondamentali.
"""


@pytest.fixture
def document_record():
    """A minimal content row that questions can reference."""
    return {
        "id": "doc-001",
        "title": "Learning Strategies",
        "description": "Uploaded text/plain document",
        "content_type": "multipleChoice",
        "difficulty": "intermediate",
        "language": "english",
        "tags": ["learners"],
        "size": 420,
        "created_by": "user-1",
        "created_at": "2024-05-01T12:00:00+00:00",
        "updated_at": "2024-05-01T12:00:00+00:00",
        "is_published": True,
        "raw_content": "{}",
    }
