from __future__ import annotations

from abc import ABC, abstractmethod


class PersistenceError(Exception):
    """A gateway could not store or return records."""


class PersistenceGateway(ABC):
    """Durable storage for document and question records.

    Records are plain dicts in storage shape (see content_ingest.persistence).
    A batch insert is all-or-nothing; implementations raise PersistenceError.
    """

    @abstractmethod
    async def insert_questions(self, records: list[dict]) -> list[dict]:
        """Insert question records and return them as stored."""
        ...

    @abstractmethod
    async def insert_document(self, record: dict) -> dict:
        ...

    @abstractmethod
    def name(self) -> str:
        ...
