"""Document store construction from runtime configuration."""

from __future__ import annotations

from core.config import FerryConfig
from store.document_store import DocumentStore
from store.firestore_store import open_firestore_store
from store.memory_store import InMemoryDocumentStore


def open_document_store(config: FerryConfig) -> DocumentStore:
    """Open the configured document store.

    Args:
        config: Runtime configuration naming the backend and credentials.

    Returns:
        Initialized store handle.

    Raises:
        FerryCredentialError: If live-store credentials are missing or invalid.
        FerryDependencyError: If the live-store client library is missing.
    """
    if config.store_backend == "memory":
        return InMemoryDocumentStore()
    return open_firestore_store(config.credentials_path, config.project_id)
