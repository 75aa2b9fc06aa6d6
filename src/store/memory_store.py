"""In-memory document store adapter.

This module keeps collections in process memory with the same batch
and query semantics as the live store. It backs dry runs and tests.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Mapping

from core.constants import SUPPORTED_QUERY_OPERATORS
from core.errors import FerryStoreError
from core.types import DELETE_FIELD, StoredDocument, WriteOperation


class InMemoryDocumentStore:
    """Dictionary-backed document store."""

    def __init__(
        self,
        collections: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None,
    ) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        for name, documents in (collections or {}).items():
            self._collections[name] = {
                key: copy.deepcopy(dict(data)) for key, data in documents.items()
            }
        self.commit_sizes: list[int] = []

    def list_keys(self, collection: str) -> list[str]:
        """Return document keys in key order."""
        return sorted(self._collections.get(collection, {}))

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return a copy of one document, or None when absent."""
        document = self._collections.get(collection, {}).get(key)
        return copy.deepcopy(document) if document is not None else None

    def stream(self, collection: str) -> list[StoredDocument]:
        """Return every document of a collection in key order."""
        documents = self._collections.get(collection, {})
        return [
            StoredDocument(key=key, data=copy.deepcopy(documents[key]))
            for key in sorted(documents)
        ]

    def query(self, collection: str, field: str, op: str, value: object) -> list[StoredDocument]:
        """Return documents whose field satisfies the operator."""
        predicate = _build_predicate(op, value)
        return [
            document
            for document in self.stream(collection)
            if field in document.data and predicate(document.data[field])
        ]

    def update(self, collection: str, key: str, data: Mapping[str, Any]) -> None:
        """Merge fields into an existing document."""
        batch = self.batch()
        batch.update(collection, key, data)
        batch.commit()

    def batch(self) -> "InMemoryWriteBatch":
        """Start a new atomic write batch."""
        return InMemoryWriteBatch(self)

    def apply(self, operations: list[WriteOperation]) -> None:
        """Apply operations all-or-nothing.

        Raises:
            FerryStoreError: If an update targets a missing document.
        """
        staged = copy.deepcopy(self._collections)
        for operation in operations:
            documents = staged.setdefault(operation.collection, {})
            if operation.kind == "set":
                documents[operation.key] = copy.deepcopy(dict(operation.data or {}))
            elif operation.kind == "update":
                if operation.key not in documents:
                    raise FerryStoreError(
                        f"Cannot update {operation.collection}/{operation.key}: "
                        "document does not exist."
                    )
                _merge_fields(documents[operation.key], operation.data or {})
            else:
                documents.pop(operation.key, None)
        self._collections = {name: docs for name, docs in staged.items() if docs}
        self.commit_sizes.append(len(operations))


class InMemoryWriteBatch:
    """Pending operations for one in-memory commit."""

    def __init__(self, store: InMemoryDocumentStore) -> None:
        self._store = store
        self._operations: list[WriteOperation] = []

    def set(self, collection: str, key: str, data: Mapping[str, Any]) -> None:
        """Queue a full document write."""
        self._operations.append(WriteOperation("set", collection, key, data))

    def update(self, collection: str, key: str, data: Mapping[str, Any]) -> None:
        """Queue a field merge into an existing document."""
        self._operations.append(WriteOperation("update", collection, key, data))

    def delete(self, collection: str, key: str) -> None:
        """Queue a document delete."""
        self._operations.append(WriteOperation("delete", collection, key))

    def commit(self) -> None:
        """Apply queued operations atomically."""
        self._store.apply(self._operations)
        self._operations = []


def _merge_fields(document: dict[str, Any], data: Mapping[str, Any]) -> None:
    for name, value in data.items():
        if value is DELETE_FIELD:
            document.pop(name, None)
        else:
            document[name] = copy.deepcopy(value)


def _build_predicate(op: str, value: object) -> Callable[[object], bool]:
    if op == "==":
        return lambda stored: stored == value
    if op == "array-contains":
        return lambda stored: isinstance(stored, list) and value in stored
    if op == "in":
        if not isinstance(value, (list, tuple)):
            raise FerryStoreError("Query operator 'in' requires a list value.")
        return lambda stored: stored in value
    if op in (">=", "<=", "<", ">"):
        return lambda stored: _compare(stored, op, value)
    supported_rows = ", ".join(SUPPORTED_QUERY_OPERATORS)
    raise FerryStoreError(f"Unsupported query operator '{op}'. Use one of: {supported_rows}.")


def _compare(stored: object, op: str, value: Any) -> bool:
    if type(stored) is not type(value):
        return False
    if op == ">=":
        return stored >= value  # type: ignore[operator]
    if op == "<=":
        return stored <= value  # type: ignore[operator]
    if op == "<":
        return stored < value  # type: ignore[operator]
    return stored > value  # type: ignore[operator]
