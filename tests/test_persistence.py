"""Tests for record mapping and the save helpers."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from conftest import FakeGateway
from content_ingest.gateways.base import PersistenceError
from content_ingest.models import GeneratedQuestion, ParsedDocument
from content_ingest.persistence import (
    question_to_record,
    record_to_question,
    save_document,
    save_questions,
)


def _question(**overrides) -> GeneratedQuestion:
    ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    fields = dict(
        id="q-1",
        question="What word best completes this sentence: Podcasts ________ practice",
        correct_answer="provide",
        difficulty="intermediate",
        question_type="multipleChoice",
        language="english",
        source_content_id="doc-001",
        created_at=ts,
        updated_at=ts,
        options=["provide", "option1", "Podcasts", "practice"],
        explanation='The correct word is "provide" because it fits the context of the sentence.',
        tags=["learners"],
    )
    fields.update(overrides)
    return GeneratedQuestion(**fields)


class TestQuestionMapping:
    def test_record_columns(self):
        record = question_to_record(_question(), "user-1", "2024-06-01T00:00:00+00:00")
        assert record == {
            "id": "q-1",
            "content_id": "doc-001",
            "question": "What word best completes this sentence: Podcasts ________ practice",
            "question_type": "multipleChoice",
            "options": ["provide", "option1", "Podcasts", "practice"],
            "correct_answer": "provide",
            "explanation": 'The correct word is "provide" because it fits the context of the sentence.',
            "difficulty": "intermediate",
            "tags": ["learners"],
            "language": "english",
            "created_by": "user-1",
            "created_at": "2024-06-01T00:00:00+00:00",
            "updated_at": "2024-06-01T00:00:00+00:00",
        }

    def test_missing_optionals_become_null(self):
        record = question_to_record(
            _question(options=None, explanation=None, tags=[]), "u", "2024-06-01T00:00:00+00:00"
        )
        assert record["options"] is None
        assert record["explanation"] is None
        assert record["tags"] == []

    def test_roundtrip_takes_stored_timestamps(self):
        record = question_to_record(_question(), "u", "2024-06-01T00:00:00+00:00")
        q = record_to_question(record)
        assert q.source_content_id == "doc-001"
        assert q.options == ["provide", "option1", "Podcasts", "practice"]
        assert q.created_at == datetime(2024, 6, 1, tzinfo=timezone.utc)

    def test_trailing_z_timestamp(self):
        record = question_to_record(_question(), "u", "2024-06-01T00:00:00Z")
        assert record_to_question(record).updated_at == datetime(2024, 6, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("stamp,micros", [
        ("2024-05-01T12:00:00.12+00:00", 120000),
        ("2024-05-01T12:00:00.1Z", 100000),
        ("2024-05-01T12:00:00.12345+00:00", 123450),
        ("2024-05-01T12:00:00.123456+00:00", 123456),
        ("2024-05-01T12:00:00.1234567+00:00", 123456),
    ])
    def test_trimmed_fractional_seconds(self, stamp, micros):
        record = question_to_record(_question(), "u", stamp)
        expected = datetime(2024, 5, 1, 12, 0, 0, micros, tzinfo=timezone.utc)
        assert record_to_question(record).created_at == expected


class TestSaveQuestions:
    @pytest.mark.asyncio
    async def test_one_batch_shared_timestamp(self):
        gateway = FakeGateway()
        questions = [_question(id=f"q-{i}") for i in range(3)]
        stored = await save_questions(gateway, questions, "user-1")

        assert len(gateway.question_batches) == 1
        batch = gateway.question_batches[0]
        assert [r["id"] for r in batch] == ["q-0", "q-1", "q-2"]
        assert len({r["created_at"] for r in batch}) == 1
        assert [q.id for q in stored] == ["q-0", "q-1", "q-2"]

    @pytest.mark.asyncio
    async def test_returns_server_values(self):
        gateway = FakeGateway(server_time="2030-01-01T00:00:00Z")
        stored = await save_questions(gateway, [_question()], "u")
        assert stored[0].created_at == datetime(2030, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_postgrest_timestamps_map_back(self):
        gateway = FakeGateway(server_time="2024-05-01T12:00:00.12+00:00")
        stored = await save_questions(gateway, [_question()], "u")
        assert stored[0].created_at == datetime(2024, 5, 1, 12, 0, 0, 120000, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_unreadable_row_is_persistence_error(self):
        gateway = FakeGateway(server_time="yesterday")
        with pytest.raises(PersistenceError, match="Unreadable"):
            await save_questions(gateway, [_question()], "u")

    @pytest.mark.asyncio
    async def test_empty_list(self):
        gateway = FakeGateway()
        assert await save_questions(gateway, [], "u") == []
        assert gateway.question_batches == [[]]

    @pytest.mark.asyncio
    async def test_failure_propagates(self):
        gateway = FakeGateway(fail_questions=PersistenceError("constraint violated"))
        with pytest.raises(PersistenceError):
            await save_questions(gateway, [_question()], "u")


class TestSaveDocument:
    @pytest.mark.asyncio
    async def test_record_shape(self, lesson):
        gateway = FakeGateway()
        meta = await save_document(
            gateway,
            title="Learning Strategies",
            mime_type="text/plain",
            size=412,
            uploaded_by="user-1",
            content_type="flashcards",
            language="english",
            parsed=lesson,
            tags=["learners"],
        )
        assert len(gateway.documents) == 1
        record = gateway.documents[0]
        assert record["id"] == meta.id
        assert record["description"] == "Uploaded text/plain document"
        assert record["difficulty"] == "intermediate"
        assert record["size"] == 412
        assert record["created_by"] == "user-1"
        assert record["is_published"] is True
        assert record["tags"] == ["learners"]
        assert record["created_at"] == record["updated_at"] == meta.created_at
        assert ParsedDocument.from_dict(json.loads(record["raw_content"])) == lesson

    @pytest.mark.asyncio
    async def test_fresh_ids(self, lesson):
        gateway = FakeGateway()
        a = await save_document(gateway, "A", "text/plain", 1, "u", "writing", "english", lesson)
        b = await save_document(gateway, "B", "text/plain", 1, "u", "writing", "english", lesson)
        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_failure_propagates(self, lesson):
        gateway = FakeGateway(fail_documents=PersistenceError("offline"))
        with pytest.raises(PersistenceError):
            await save_document(gateway, "A", "text/plain", 1, "u", "writing", "english", lesson)
