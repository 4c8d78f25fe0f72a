from __future__ import annotations

import asyncio
import logging
import sqlite3

from content_ingest.db import Database
from content_ingest.gateways.base import PersistenceError, PersistenceGateway

log = logging.getLogger("content_ingest.db")


class SQLiteGateway(PersistenceGateway):
    """Gateway over the local SQLite Database; writes run in a worker thread."""

    def __init__(self, db: Database):
        self.db = db

    async def insert_questions(self, records: list[dict]) -> list[dict]:
        try:
            return await asyncio.to_thread(self.db.insert_questions, records)
        except sqlite3.Error as e:
            log.warning("Question batch of %d rejected: %s", len(records), e)
            raise PersistenceError(f"Could not store questions: {e}") from e

    async def insert_document(self, record: dict) -> dict:
        try:
            return await asyncio.to_thread(self.db.insert_document, record)
        except sqlite3.Error as e:
            log.warning("Document %s rejected: %s", record.get("id"), e)
            raise PersistenceError(f"Could not store document: {e}") from e

    def name(self) -> str:
        return f"sqlite/{self.db.db_path.name}"
