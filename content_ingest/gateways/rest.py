from __future__ import annotations

import logging
import os
import time

import httpx

from content_ingest.gateways.base import PersistenceError, PersistenceGateway

log = logging.getLogger("content_ingest.rest")


class RestGateway(PersistenceGateway):
    """PostgREST-style gateway: one POST per batch to ``/rest/v1/<table>``."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key if api_key is not None else os.environ.get(
            "CONTENT_INGEST_API_KEY", ""
        )
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        headers = {"Prefer": "return=representation"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _insert(self, table: str, payload: list[dict] | dict) -> list[dict]:
        t0 = time.monotonic()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    f"{self.base_url}/rest/v1/{table}",
                    json=payload,
                    headers=self._headers(),
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("Insert into %s failed: %s", table, e)
            raise PersistenceError(f"Insert into {table} failed: {e}") from e
        log.info("Inserted into %s (%.2fs)", table, time.monotonic() - t0)
        return data if isinstance(data, list) else [data]

    async def insert_questions(self, records: list[dict]) -> list[dict]:
        return await self._insert("questions", records)

    async def insert_document(self, record: dict) -> dict:
        rows = await self._insert("content", record)
        return rows[0] if rows else record

    def name(self) -> str:
        return f"rest/{self.base_url}"
