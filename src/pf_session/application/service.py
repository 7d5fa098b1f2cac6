"""SessionManager: sole owner of the durable `user-session` record.

Injected into both IdentityStore and PlayerProfileStore so neither touches
storage directly. Absence or a malformed record always reads as "no session".
"""

import logging

from src.pf_common.datetime_utils import now_ms
from src.pf_session.domain.models import SESSION_KEY, SessionRecord
from src.pf_session.domain.repository import KeyValueStorageProtocol

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(self, storage: KeyValueStorageProtocol, key: str = SESSION_KEY) -> None:
        self._storage = storage
        self._key = key

    def read(self) -> SessionRecord | None:
        raw = self._storage.get_item(self._key)
        if raw is None:
            return None
        try:
            return SessionRecord.from_json(raw)
        except ValueError as exc:
            logger.warning("Discarding malformed session record: %s", exc)
            return None

    def write(self, user_id: str) -> SessionRecord:
        record = SessionRecord(user_id=user_id, timestamp=now_ms())
        self._storage.set_item(self._key, record.to_json())
        return record

    def clear(self) -> None:
        self._storage.remove_item(self._key)
