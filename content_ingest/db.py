from __future__ import annotations

import json
import sqlite3
from pathlib import Path

SCHEMA = """
CREATE TABLE IF NOT EXISTS content (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    content_type TEXT NOT NULL,
    difficulty TEXT NOT NULL DEFAULT 'intermediate',
    language TEXT NOT NULL,
    tags_json TEXT NOT NULL DEFAULT '[]',
    size INTEGER NOT NULL DEFAULT 0,
    created_by TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    is_published INTEGER NOT NULL DEFAULT 1,
    raw_content TEXT
);

CREATE TABLE IF NOT EXISTS questions (
    id TEXT PRIMARY KEY,
    content_id TEXT NOT NULL REFERENCES content(id),
    question TEXT NOT NULL,
    question_type TEXT NOT NULL,
    options_json TEXT,
    correct_answer TEXT NOT NULL,
    explanation TEXT,
    difficulty TEXT NOT NULL,
    tags_json TEXT NOT NULL DEFAULT '[]',
    language TEXT NOT NULL,
    created_by TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_questions_content ON questions(content_id);
"""


def _question_row_to_record(row: sqlite3.Row) -> dict:
    d = dict(row)
    options = d.pop("options_json")
    d["options"] = json.loads(options) if options is not None else None
    d["tags"] = json.loads(d.pop("tags_json"))
    return d


def _content_row_to_record(row: sqlite3.Row) -> dict:
    d = dict(row)
    d["tags"] = json.loads(d.pop("tags_json"))
    d["is_published"] = bool(d["is_published"])
    return d


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ── Documents ─────────────────────────────────────────────────────────

    def insert_document(self, record: dict) -> dict:
        with self.conn:
            self.conn.execute(
                "INSERT INTO content (id, title, description, content_type, difficulty, "
                "language, tags_json, size, created_by, created_at, updated_at, "
                "is_published, raw_content) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record["id"],
                    record["title"],
                    record.get("description"),
                    record["content_type"],
                    record.get("difficulty") or "intermediate",
                    record["language"],
                    json.dumps(record.get("tags") or []),
                    record.get("size", 0),
                    record["created_by"],
                    record["created_at"],
                    record["updated_at"],
                    1 if record.get("is_published", True) else 0,
                    record.get("raw_content"),
                ),
            )
        return self.get_document(record["id"])

    def get_document(self, document_id: str) -> dict | None:
        row = self.conn.execute(
            "SELECT * FROM content WHERE id = ?", (document_id,)
        ).fetchone()
        return _content_row_to_record(row) if row else None

    def get_document_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM content").fetchone()
        return row[0]

    # ── Questions ─────────────────────────────────────────────────────────

    def insert_questions(self, records: list[dict]) -> list[dict]:
        """Insert all records in one transaction and return the stored rows."""
        with self.conn:
            self.conn.executemany(
                "INSERT INTO questions (id, content_id, question, question_type, "
                "options_json, correct_answer, explanation, difficulty, tags_json, "
                "language, created_by, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        r["id"],
                        r["content_id"],
                        r["question"],
                        r["question_type"],
                        json.dumps(r["options"]) if r.get("options") is not None else None,
                        r["correct_answer"],
                        r.get("explanation"),
                        r["difficulty"],
                        json.dumps(r.get("tags") or []),
                        r["language"],
                        r["created_by"],
                        r["created_at"],
                        r["updated_at"],
                    )
                    for r in records
                ],
            )
        return self.get_questions_by_ids([r["id"] for r in records])

    def get_questions_by_ids(self, ids: list[str]) -> list[dict]:
        """Rows for *ids*, in the order given."""
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = self.conn.execute(
            f"SELECT * FROM questions WHERE id IN ({placeholders})", ids
        ).fetchall()
        by_id = {row["id"]: _question_row_to_record(row) for row in rows}
        return [by_id[i] for i in ids if i in by_id]

    def get_questions_for_content(self, content_id: str) -> list[dict]:
        rows = self.conn.execute(
            "SELECT * FROM questions WHERE content_id = ? ORDER BY created_at, rowid",
            (content_id,),
        ).fetchall()
        return [_question_row_to_record(r) for r in rows]

    def get_question_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM questions").fetchone()
        return row[0]

    # ── Stats ─────────────────────────────────────────────────────────────

    def get_stats(self) -> dict:
        by_type = self.conn.execute(
            "SELECT question_type, COUNT(*) AS cnt FROM questions GROUP BY question_type"
        ).fetchall()
        by_language = self.conn.execute(
            "SELECT language, COUNT(*) AS cnt FROM content GROUP BY language"
        ).fetchall()
        return {
            "total_documents": self.get_document_count(),
            "total_questions": self.get_question_count(),
            "questions_by_type": {r["question_type"]: r["cnt"] for r in by_type},
            "documents_by_language": {r["language"]: r["cnt"] for r in by_language},
        }
