"""PostgresDocumentBackend: durable documents in PG, change fan-out over Redis.

Table is created by Alembic migration: alembic/versions/001_create_sync_documents.py
All queries use raw text() SQL (no ORM). Each save bumps `version` atomically
(last write wins) and publishes {"version", "origin"} on channel sync:{doc_id};
listeners re-read the document on every notification.
"""

import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import redis.asyncio as aioredis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.pf_common.database import get_session_factory
from src.pf_common.redis_client import get_redis
from src.pf_sync.domain.models import SyncDocument

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_LOAD_SQL = text("""
    SELECT doc_id, state, version, origin, updated_at
    FROM sync_documents
    WHERE doc_id = :doc_id
""")

_UPSERT_SQL = text("""
    INSERT INTO sync_documents (doc_id, state, version, origin, updated_at)
    VALUES (:doc_id, CAST(:state AS JSONB), 1, :origin, NOW())
    ON CONFLICT (doc_id) DO UPDATE
    SET state      = EXCLUDED.state,
        version    = sync_documents.version + 1,
        origin     = EXCLUDED.origin,
        updated_at = NOW()
    RETURNING doc_id, state, version, origin, updated_at
""")


def _channel(doc_id: str) -> str:
    return f"sync:{doc_id}"


def _row_to_document(row: object) -> SyncDocument:
    state = row.state  # type: ignore[attr-defined]
    # asyncpg hands JSONB back as text unless a codec is registered
    if isinstance(state, str):
        state = json.loads(state)
    return SyncDocument(
        doc_id=row.doc_id,  # type: ignore[attr-defined]
        state=state,
        version=row.version,  # type: ignore[attr-defined]
        origin=row.origin,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class PostgresDocumentBackend:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
    ) -> None:
        self._session_factory = session_factory
        self._redis_factory = redis_factory

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory or get_session_factory()

    async def load(self, doc_id: str) -> SyncDocument | None:
        async with self._sessions()() as db:
            result = await db.execute(_LOAD_SQL, {"doc_id": doc_id})
            row = result.fetchone()
        return _row_to_document(row) if row else None

    async def save(self, doc_id: str, state: dict[str, Any], origin: str) -> SyncDocument:
        async with self._sessions()() as db:
            async with db.begin():
                result = await db.execute(
                    _UPSERT_SQL,
                    {"doc_id": doc_id, "state": json.dumps(state), "origin": origin},
                )
                doc = _row_to_document(result.fetchone())

        redis = await self._redis_factory()
        await redis.publish(
            _channel(doc_id), json.dumps({"version": doc.version, "origin": origin})
        )
        return doc

    async def listen(self, doc_id: str) -> AsyncIterator[SyncDocument]:
        redis = await self._redis_factory()
        pubsub = redis.pubsub()
        await pubsub.subscribe(_channel(doc_id))
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                note = json.loads(message["data"])
                doc = await self.load(doc_id)
                if doc is None:
                    logger.warning("Change notice for missing document %s", doc_id)
                    continue
                logger.debug(
                    "Change notice %s v%s from %s", doc_id, note.get("version"), note.get("origin")
                )
                # Always deliver the latest row; a newer write may already have landed
                yield doc
        finally:
            await pubsub.unsubscribe(_channel(doc_id))
            await pubsub.aclose()
