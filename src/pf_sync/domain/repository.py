"""Document backend Protocol.

Unit tests inject a mock (or the in-memory backend) that conforms to this
Protocol. Infrastructure layer provides the real implementations.
"""

from collections.abc import AsyncIterator
from typing import Any, Protocol

from src.pf_sync.domain.models import SyncDocument


class DocumentBackendProtocol(Protocol):
    async def load(self, doc_id: str) -> SyncDocument | None: ...

    async def save(
        self, doc_id: str, state: dict[str, Any], origin: str
    ) -> SyncDocument: ...

    def listen(self, doc_id: str) -> AsyncIterator[SyncDocument]: ...
