"""Domain models for pf_sync: pure dataclasses, no backend dependency."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.pf_common.errors import SyncInitFailedError


@dataclass
class SyncDocument:
    """Full serialized state of one store, as held by the backend."""

    doc_id: str
    state: dict[str, Any]
    version: int
    origin: str            # client id of the writer; listeners skip their own writes
    updated_at: datetime


@dataclass
class SyncConfig:
    doc_id: str
    init_timeout_ms: int = 30000
    # Called with the store once local and remote state are reconciled
    on_init_complete: Callable[[Any], Awaitable[None] | None] | None = None
    on_init_error: Callable[[SyncInitFailedError], None] | None = None
