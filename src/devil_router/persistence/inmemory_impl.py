"""
In-Memory Credential Repository
================================

Async-compatible credential storage in a plain dict guarded by an
asyncio.Lock. Ideal for development, testing and single-process demos;
records are lost on restart.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime

from .repositories import CredentialRecord, CredentialRepository

logger = logging.getLogger(__name__)


class InMemoryCredentialRepository(CredentialRepository):
    """In-memory credential repository."""

    def __init__(self, records: list[CredentialRecord] | None = None):
        self._records: dict[str, CredentialRecord] = {}
        self._lock = asyncio.Lock()
        for record in records or []:
            self._records[record.name] = replace(record)

        logger.info("InMemoryCredentialRepository initialized (%d records)", len(self._records))

    async def get(self, name: str) -> CredentialRecord | None:
        async with self._lock:
            record = self._records.get(name)
            # Hand out copies so callers cannot mutate stored state
            return replace(record) if record else None

    async def upsert(self, record: CredentialRecord) -> bool:
        async with self._lock:
            now = datetime.now()
            existing = self._records.get(record.name)
            if existing is None:
                self._records[record.name] = replace(
                    record,
                    created_at=record.created_at or now,
                    updated_at=record.updated_at or now,
                )
                logger.info("Created credential %s", record.name)
                return True

            self._records[record.name] = replace(
                existing,
                encrypted_secret=record.encrypted_secret,
                model_id=record.model_id,
                updated_at=now,
            )
            logger.info("Updated credential %s", record.name)
            return False

    async def delete(self, name: str) -> bool:
        async with self._lock:
            if name not in self._records:
                logger.warning("Credential %s not found for deletion", name)
                return False
            del self._records[name]
            logger.info("Deleted credential %s", name)
            return True

    async def list_records(
        self,
        limit: int | None = None,
        offset: int = 0
    ) -> list[CredentialRecord]:
        async with self._lock:
            records = [replace(self._records[n]) for n in sorted(self._records)]
        if limit is not None:
            return records[offset:offset + limit]
        return records[offset:]

    async def count(self) -> int:
        async with self._lock:
            return len(self._records)
