"""InMemoryDocumentBackend: process-local document store with change fan-out.

Every save is broadcast to all listeners of the document (including the
writer; SyncedStore filters its own origin). Documents are deep-copied on the
way in and out so no two stores ever share mutable state.
"""

import asyncio
import copy
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import Any

from src.pf_common.datetime_utils import utc_now
from src.pf_sync.domain.models import SyncDocument


class InMemoryDocumentBackend:
    def __init__(self) -> None:
        self._docs: dict[str, SyncDocument] = {}
        self._listeners: dict[str, set[asyncio.Queue[SyncDocument]]] = defaultdict(set)

    async def load(self, doc_id: str) -> SyncDocument | None:
        doc = self._docs.get(doc_id)
        return copy.deepcopy(doc) if doc else None

    async def save(self, doc_id: str, state: dict[str, Any], origin: str) -> SyncDocument:
        prev = self._docs.get(doc_id)
        doc = SyncDocument(
            doc_id=doc_id,
            state=copy.deepcopy(state),
            version=prev.version + 1 if prev else 1,
            origin=origin,
            updated_at=utc_now(),
        )
        self._docs[doc_id] = doc
        for queue in self._listeners[doc_id]:
            queue.put_nowait(copy.deepcopy(doc))
        return copy.deepcopy(doc)

    async def listen(self, doc_id: str) -> AsyncIterator[SyncDocument]:
        queue: asyncio.Queue[SyncDocument] = asyncio.Queue()
        self._listeners[doc_id].add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._listeners[doc_id].discard(queue)

    def listener_count(self, doc_id: str) -> int:
        return len(self._listeners[doc_id])
