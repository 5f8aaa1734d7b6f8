"""Key-value store abstraction behind the cache gateway."""

from typing import Any, Protocol


class IKeyValueStore(Protocol):
    """Single-key, whole-value store.

    Adapters raise:
    - StoreReadError when the store cannot be read
    - StoreWriteError when a write is not acknowledged
    A missing key is not an error: ``get`` returns None.
    """

    async def get(self, key: str) -> Any | None:
        ...

    async def upsert(self, key: str, value: Any) -> None:
        ...
