"""Firestore document store adapter.

This module wraps a ``google.cloud.firestore`` client behind the
document store boundary. Canonical timestamps are converted to
nanosecond datetimes on write and back on read, and Google API errors
are re-raised as store errors so callers handle one error family.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from core.errors import FerryCredentialError, FerryDependencyError, FerryStoreError
from core.logging_config import get_logger
from core.types import DELETE_FIELD, StoredDocument, Temporal
from transforms.temporal import decode_temporal

_LOGGER = get_logger(__name__)
_CLOUD_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class FirestoreDocumentStore:
    """Document store backed by Google Cloud Firestore."""

    def __init__(self, client: Any) -> None:
        self._client = client
        self._api_errors = _google_api_errors()

    def list_keys(self, collection: str) -> list[str]:
        """Return every document key of a collection."""
        with self.translate_errors(f"list keys of '{collection}'"):
            references = self._client.collection(collection).list_documents()
            return sorted(reference.id for reference in references)

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return one document, or None when absent."""
        with self.translate_errors(f"read {collection}/{key}"):
            snapshot = self._client.collection(collection).document(key).get()
        if not snapshot.exists:
            return None
        return from_store_value(snapshot.to_dict() or {})

    def stream(self, collection: str) -> list[StoredDocument]:
        """Return every document of a collection."""
        with self.translate_errors(f"stream '{collection}'"):
            snapshots = list(self._client.collection(collection).stream())
        return [_to_stored_document(snapshot) for snapshot in snapshots]

    def query(
        self,
        collection: str,
        field: str,
        op: str,
        value: object,
    ) -> list[StoredDocument]:
        """Return documents matching one field filter."""
        from google.cloud.firestore_v1.base_query import FieldFilter

        field_filter = FieldFilter(field, op, to_store_value(value))
        with self.translate_errors(f"query '{collection}' where {field} {op}"):
            query = self._client.collection(collection).where(filter=field_filter)
            snapshots = list(query.stream())
        return [_to_stored_document(snapshot) for snapshot in snapshots]

    def update(self, collection: str, key: str, data: Mapping[str, Any]) -> None:
        """Merge fields into an existing document."""
        reference = self.reference(collection, key)
        with self.translate_errors(f"update {collection}/{key}"):
            reference.update(to_store_value(dict(data)))

    def batch(self) -> "FirestoreWriteBatch":
        """Start a new atomic write batch."""
        return FirestoreWriteBatch(self, self._client.batch())

    def reference(self, collection: str, key: str) -> Any:
        """Return the driver document reference for one key."""
        return self._client.collection(collection).document(key)

    def translate_errors(self, action: str) -> "_ErrorTranslation":
        """Return a context manager mapping Google API errors to store errors."""
        return _ErrorTranslation(action, self._api_errors)


class FirestoreWriteBatch:
    """Firestore ``WriteBatch`` with canonical value conversion."""

    def __init__(self, store: FirestoreDocumentStore, batch: Any) -> None:
        self._store = store
        self._batch = batch
        self._size = 0

    def set(self, collection: str, key: str, data: Mapping[str, Any]) -> None:
        """Queue a full document write."""
        self._batch.set(self._reference(collection, key), to_store_value(dict(data)))
        self._size += 1

    def update(self, collection: str, key: str, data: Mapping[str, Any]) -> None:
        """Queue a field merge into an existing document."""
        self._batch.update(self._reference(collection, key), to_store_value(dict(data)))
        self._size += 1

    def delete(self, collection: str, key: str) -> None:
        """Queue a document delete."""
        self._batch.delete(self._reference(collection, key))
        self._size += 1

    def commit(self) -> None:
        """Commit queued writes atomically."""
        with self._store.translate_errors(f"commit batch of {self._size} writes"):
            self._batch.commit()

    def _reference(self, collection: str, key: str) -> Any:
        return self._store.reference(collection, key)


class _ErrorTranslation:
    """Context manager re-raising Google API errors as store errors."""

    def __init__(self, action: str, api_errors: tuple[type[BaseException], ...]) -> None:
        self._action = action
        self._api_errors = api_errors

    def __enter__(self) -> None:
        return None

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> bool:
        if exc_value is None or not isinstance(exc_value, self._api_errors):
            return False
        raise FerryStoreError(
            f"Firestore failed to {self._action}: {exc_value}"
        ) from exc_value


def open_firestore_store(
    credentials_path: Path | None,
    project_id: str | None,
) -> FirestoreDocumentStore:
    """Create a Firestore-backed store from a service-account key.

    Args:
        credentials_path: Service-account JSON key; application default
            credentials are used when omitted.
        project_id: Optional project override.

    Returns:
        Initialized store handle.

    Raises:
        FerryDependencyError: If google-cloud-firestore is missing.
        FerryCredentialError: If credentials cannot be loaded.
    """
    try:
        from google.auth import default as google_auth_default
        from google.auth.exceptions import GoogleAuthError
        from google.cloud import firestore
        from google.oauth2 import service_account
    except ImportError as error:
        raise FerryDependencyError(
            "Firestore support requires google-cloud-firestore, but it is not installed. "
            "Install google-cloud-firestore or set FERRY_STORE_BACKEND=memory."
        ) from error
    try:
        if credentials_path is not None:
            if not credentials_path.exists():
                raise FerryCredentialError(
                    f"Credential file not found at {credentials_path}. "
                    "Set FERRY_CREDENTIALS_PATH to a service-account key file."
                )
            credentials = service_account.Credentials.from_service_account_file(
                str(credentials_path), scopes=_CLOUD_SCOPES
            )
            resolved_project = project_id or credentials.project_id
        else:
            credentials, default_project = google_auth_default(scopes=_CLOUD_SCOPES)
            resolved_project = project_id or default_project
        client = firestore.Client(project=resolved_project, credentials=credentials)
    except (GoogleAuthError, ValueError, OSError) as error:
        raise FerryCredentialError(
            f"Failed to initialize Firestore credentials: {error}. "
            "Check FERRY_CREDENTIALS_PATH or GOOGLE_APPLICATION_CREDENTIALS."
        ) from error
    _LOGGER.info("firestore_store_opened", project_id=resolved_project)
    return FirestoreDocumentStore(client)


def to_store_value(value: Any) -> Any:
    """Convert canonical values into Firestore-native values."""
    if value is DELETE_FIELD:
        from google.cloud.firestore import DELETE_FIELD as FIRESTORE_DELETE_FIELD

        return FIRESTORE_DELETE_FIELD
    if isinstance(value, Temporal):
        return _to_native_datetime(value)
    if isinstance(value, Mapping):
        return {key: to_store_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_store_value(item) for item in value]
    return value


def from_store_value(value: Any) -> Any:
    """Convert Firestore-native values into canonical values."""
    if isinstance(value, datetime):
        return decode_temporal(value)
    if isinstance(value, Mapping):
        return {key: from_store_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [from_store_value(item) for item in value]
    return value


def _to_native_datetime(value: Temporal) -> datetime:
    from google.api_core.datetime_helpers import DatetimeWithNanoseconds

    base = datetime.fromtimestamp(value.seconds, tz=timezone.utc)
    return DatetimeWithNanoseconds(
        base.year,
        base.month,
        base.day,
        base.hour,
        base.minute,
        base.second,
        nanosecond=value.nanoseconds,
        tzinfo=timezone.utc,
    )


def _to_stored_document(snapshot: Any) -> StoredDocument:
    return StoredDocument(key=snapshot.id, data=from_store_value(snapshot.to_dict() or {}))


def _google_api_errors() -> tuple[type[BaseException], ...]:
    from google.api_core.exceptions import GoogleAPIError
    from google.auth.exceptions import GoogleAuthError

    return (GoogleAPIError, GoogleAuthError)
