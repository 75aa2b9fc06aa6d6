"""Collection export for backups.

This module dumps collections into the import file format and writes
the result to a local path or an ``s3://`` object.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from core.config import FerryConfig
from core.errors import FerryStoreError
from core.logging_config import get_logger
from core.s3_uri import create_s3_client, is_s3_uri, parse_s3_uri
from core.types import ExportRequest, StoredDocument
from store.document_store import DocumentStore
from store.record_payload import dump_export
from store.s3_export import upload_export

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ExportResult:
    """Outcome of one export.

    Attributes:
        output_uri: Destination that was written.
        document_counts: Exported documents per collection.
    """

    output_uri: str
    document_counts: dict[str, int]

    @property
    def document_count(self) -> int:
        """Total exported documents."""
        return sum(self.document_counts.values())


class CollectionExporter:
    """Reads collections from a store and writes one export file."""

    def __init__(self, store: DocumentStore, config: FerryConfig) -> None:
        self._store = store
        self._config = config

    def export(self, request: ExportRequest) -> ExportResult:
        """Export the requested collections.

        Args:
            request: Collections to dump and destination URI.

        Returns:
            Destination and per-collection document counts.

        Raises:
            FerryStoreError: If reading the store or writing the output fails.
        """
        if not request.collections:
            raise FerryStoreError("Export requires at least one collection name.")
        snapshot: dict[str, list[StoredDocument]] = {}
        for collection in request.collections:
            snapshot[collection] = self._store.stream(collection)
        body = dump_export(snapshot)
        if is_s3_uri(request.output_uri):
            location = parse_s3_uri(request.output_uri, domain="store")
            upload_export(create_s3_client(self._config), body, location)
        else:
            _write_local_export(Path(request.output_uri).expanduser(), body)
        result = ExportResult(
            output_uri=request.output_uri,
            document_counts={name: len(documents) for name, documents in snapshot.items()},
        )
        _LOGGER.info(
            "export_completed",
            output_uri=result.output_uri,
            document_counts=result.document_counts,
        )
        return result


def _write_local_export(output_path: Path, body: str) -> None:
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(body, encoding="utf-8")
    except OSError as error:
        raise FerryStoreError(
            f"Failed to write export to {output_path}: {error}. "
            "Check the output directory and permissions."
        ) from error
