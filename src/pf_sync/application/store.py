"""SyncedStore: base for in-process stores mirrored to a sync document.

Lifecycle:
  1. initialize(): load the remote document within init_timeout_ms.
     Remote state (if any) replaces local state; otherwise local state seeds
     the document. on_init_complete(store) runs afterwards.
     On timeout or backend failure, on_init_error(SyncInitFailedError) runs and
     the store keeps whatever local state it has (is_initialized stays False).
  2. emit(): after every local mutation, push the full serialized state.
  3. A background listener applies documents written by other clients as
     full-state replacements. Own writes are recognised by origin and skipped.

Subclasses implement to_document() / apply_document().
"""

import asyncio
import contextlib
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any

from src.pf_common.errors import SyncInitFailedError
from src.pf_common.id_generator import generate_id
from src.pf_sync.domain.models import SyncConfig, SyncDocument
from src.pf_sync.domain.repository import DocumentBackendProtocol

logger = logging.getLogger(__name__)


class SyncedStore(ABC):
    def __init__(
        self,
        backend: DocumentBackendProtocol,
        config: SyncConfig,
        client_id: str | None = None,
    ) -> None:
        self._backend = backend
        self._config = config
        self._client_id = client_id or generate_id()
        self._init_started = False
        self._listener: asyncio.Task[None] | None = None
        self._emit_lock = asyncio.Lock()
        self.is_initialized = False
        self.version = 0

    @property
    def doc_id(self) -> str:
        return self._config.doc_id

    @property
    def client_id(self) -> str:
        return self._client_id

    @abstractmethod
    def to_document(self) -> dict[str, Any]:
        """Serialize the synced part of the store state."""

    @abstractmethod
    def apply_document(self, state: dict[str, Any]) -> None:
        """Replace the synced part of the store state."""

    def after_remote_replace(self) -> None:
        """Hook run after a remote document replaced local state."""

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def initialize(self) -> bool:
        """Reconcile with the backend once. Later calls return the first outcome."""
        if self._init_started:
            return self.is_initialized
        self._init_started = True

        timeout_s = self._config.init_timeout_ms / 1000
        try:
            await asyncio.wait_for(self._reconcile(), timeout=timeout_s)
        except asyncio.TimeoutError:
            self._init_failed(f"timed out after {self._config.init_timeout_ms}ms")
            return False
        except Exception as exc:  # noqa: BLE001
            self._init_failed(f"{type(exc).__name__}: {exc}")
            return False

        self.is_initialized = True
        self._listener = asyncio.create_task(
            self._listen(), name=f"sync-listen:{self.doc_id}"
        )
        if self._config.on_init_complete is not None:
            result = self._config.on_init_complete(self)
            if inspect.isawaitable(result):
                await result
        return True

    async def _reconcile(self) -> None:
        doc = await self._backend.load(self.doc_id)
        if doc is None:
            seeded = await self._backend.save(self.doc_id, self.to_document(), self._client_id)
            self.version = seeded.version
            logger.info("Seeded sync document %s (v%d)", self.doc_id, seeded.version)
            return
        self.apply_document(doc.state)
        self.version = doc.version
        logger.info("Loaded sync document %s (v%d)", self.doc_id, doc.version)

    def _init_failed(self, detail: str) -> None:
        error = SyncInitFailedError(self.doc_id, detail)
        if self._config.on_init_error is not None:
            self._config.on_init_error(error)
        else:
            logger.error(error.message)

    # ------------------------------------------------------------------
    # Outbound / inbound changes
    # ------------------------------------------------------------------

    async def emit(self) -> None:
        """Push the full local state. Failures keep the local mutation."""
        if not self.is_initialized:
            logger.debug("Sync %s not initialized; change kept local", self.doc_id)
            return
        state = self.to_document()
        async with self._emit_lock:
            try:
                doc = await self._backend.save(self.doc_id, state, self._client_id)
            except Exception:
                logger.exception("Sync push failed for %s; local state kept", self.doc_id)
                return
        self.version = doc.version

    def receive(self, doc: SyncDocument) -> bool:
        """Apply a remote document as a full-state replacement.

        Returns False for documents this client wrote itself.
        """
        if doc.origin == self._client_id:
            return False
        self.apply_document(doc.state)
        self.version = doc.version
        logger.info("Applied remote %s v%d from %s", self.doc_id, doc.version, doc.origin)
        self.after_remote_replace()
        return True

    async def _listen(self) -> None:
        try:
            async for doc in self._backend.listen(self.doc_id):
                self.receive(doc)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Sync listener for %s stopped", self.doc_id)

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener
            self._listener = None
