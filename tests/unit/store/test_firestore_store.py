"""Unit tests for the Firestore adapter edges."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

pytest.importorskip("google.cloud.firestore")

from google.api_core.datetime_helpers import DatetimeWithNanoseconds  # noqa: E402
from google.api_core.exceptions import ServiceUnavailable  # noqa: E402
from google.cloud import firestore  # noqa: E402

from core.errors import FerryCredentialError, FerryStoreError  # noqa: E402
from core.types import DELETE_FIELD, StoredDocument, Temporal  # noqa: E402
from store.firestore_store import (  # noqa: E402
    FirestoreDocumentStore,
    from_store_value,
    open_firestore_store,
    to_store_value,
)


class _FakeSnapshot:
    def __init__(self, key: str, data: dict[str, Any]) -> None:
        self.id = key
        self._data = data

    def to_dict(self) -> dict[str, Any]:
        return self._data


class _FakeCollection:
    def __init__(self, snapshots: list[_FakeSnapshot], fail: bool = False) -> None:
        self._snapshots = snapshots
        self._fail = fail

    def stream(self) -> list[_FakeSnapshot]:
        if self._fail:
            raise ServiceUnavailable("store is down")
        return self._snapshots


class _FakeClient:
    def __init__(self, collection: _FakeCollection) -> None:
        self._collection = collection

    def collection(self, name: str) -> _FakeCollection:
        return self._collection


def test_to_store_value_maps_field_deletes() -> None:
    """Field delete markers should become the driver sentinel."""
    payload = to_store_value({"pid": ["P-1"], "projects": DELETE_FIELD})

    assert payload == {"pid": ["P-1"], "projects": firestore.DELETE_FIELD}


def test_to_store_value_keeps_nanoseconds() -> None:
    """Timestamps should become nanosecond-precise driver datetimes."""
    native = to_store_value({"at": [Temporal(1735689600, 123456789)]})["at"][0]

    assert isinstance(native, DatetimeWithNanoseconds)
    assert native.nanosecond == 123456789
    assert from_store_value(native) == Temporal(1735689600, 123456789)


def test_stream_decodes_driver_timestamps() -> None:
    """Documents read from the driver should carry canonical timestamps."""
    native = DatetimeWithNanoseconds(2025, 1, 1, nanosecond=5, tzinfo=None)
    client = _FakeClient(_FakeCollection([_FakeSnapshot("CL-1", {"createdAt": native})]))

    documents = FirestoreDocumentStore(client).stream("clients")

    assert documents == [StoredDocument(key="CL-1", data={"createdAt": Temporal(1735689600, 5)})]


def test_driver_errors_become_store_errors() -> None:
    """Google API errors should surface as store errors."""
    client = _FakeClient(_FakeCollection([], fail=True))

    with pytest.raises(FerryStoreError, match="stream 'clients'"):
        FirestoreDocumentStore(client).stream("clients")


def test_open_firestore_store_requires_existing_key_file(tmp_path: Path) -> None:
    """A missing service-account key should be a credential error."""
    with pytest.raises(FerryCredentialError, match="not found"):
        open_firestore_store(tmp_path / "missing-key.json", "demo")
