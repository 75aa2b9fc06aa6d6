"""Document store boundary.

This module declares the narrow store contract that every migration
component consumes. Adapters (in-memory, Firestore) implement it; the
engine never reaches past it into a driver.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from core.types import StoredDocument


class WriteBatch(Protocol):
    """Group of writes committed as one atomic unit."""

    def set(self, collection: str, key: str, data: Mapping[str, Any]) -> None: ...

    def update(self, collection: str, key: str, data: Mapping[str, Any]) -> None: ...

    def delete(self, collection: str, key: str) -> None: ...

    def commit(self) -> None: ...


class DocumentStore(Protocol):
    """Collection/document key-value store with field queries."""

    def list_keys(self, collection: str) -> list[str]: ...

    def get(self, collection: str, key: str) -> dict[str, Any] | None: ...

    def stream(self, collection: str) -> list[StoredDocument]: ...

    def query(
        self,
        collection: str,
        field: str,
        op: str,
        value: object,
    ) -> list[StoredDocument]: ...

    def update(self, collection: str, key: str, data: Mapping[str, Any]) -> None: ...

    def batch(self) -> WriteBatch: ...
