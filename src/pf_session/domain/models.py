"""Durable session record: the "who is logged in" pointer."""

import json
from dataclasses import dataclass

SESSION_KEY = "user-session"


@dataclass(frozen=True)
class SessionRecord:
    user_id: str
    timestamp: int  # epoch ms

    def to_json(self) -> str:
        return json.dumps({"userId": self.user_id, "timestamp": self.timestamp})

    @classmethod
    def from_json(cls, raw: str) -> "SessionRecord":
        """Parse the stored value. Raises ValueError on any malformed input."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Session record is not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError("Session record must be a JSON object")
        user_id = data.get("userId")
        if not isinstance(user_id, str) or not user_id:
            raise ValueError("Session record has no userId")
        timestamp = data.get("timestamp", 0)
        if not isinstance(timestamp, int | float):
            raise ValueError("Session record timestamp must be a number")
        return cls(user_id=user_id, timestamp=int(timestamp))
