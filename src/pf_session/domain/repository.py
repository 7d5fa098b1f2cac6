"""Key-value storage Protocol for the durable session record."""

from typing import Protocol


class KeyValueStorageProtocol(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...
