"""Shared typed models.

This module defines immutable data models used by ingest, store,
reconciliation, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Literal, Mapping, Sequence

from core.constants import (
    DEFAULT_DATE_FIELDS,
    DEFAULT_ID_FIELDS,
    DEFAULT_LEGACY_LINK_FIELD,
    DEFAULT_LINK_FIELD,
    DEFAULT_TOUCH_FIELD,
    NANOSECONDS_PER_SECOND,
    TIMESTAMP_TYPE_TAG,
)

Record = dict[str, Any]
OperationKind = Literal["set", "update", "delete"]
Projection = Callable[[Sequence["StoredDocument"]], list[Any]]


class FieldSentinel(Enum):
    """Marker values understood by store adapters in ``update`` payloads."""

    DELETE = "delete"


DELETE_FIELD = FieldSentinel.DELETE


@dataclass(frozen=True, order=True)
class Temporal:
    """Canonical in-memory timestamp.

    Attributes:
        seconds: Whole seconds since the Unix epoch (UTC).
        nanoseconds: Sub-second part in ``[0, 1_000_000_000)``.
    """

    seconds: int
    nanoseconds: int = 0

    @classmethod
    def from_parts(cls, seconds: int, nanoseconds: int) -> "Temporal":
        """Build a normalized timestamp from possibly overflowing parts."""
        carry, remainder = divmod(nanoseconds, NANOSECONDS_PER_SECOND)
        return cls(seconds=seconds + carry, nanoseconds=remainder)

    @classmethod
    def from_datetime(cls, value: datetime, nanoseconds: int | None = None) -> "Temporal":
        """Convert a datetime into a timestamp.

        Args:
            value: Aware or naive datetime. Naive values are read as UTC.
            nanoseconds: Optional exact sub-second nanoseconds overriding
                the datetime's microsecond field.

        Returns:
            Normalized timestamp.
        """
        aware = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
        whole = aware.replace(microsecond=0)
        epoch_seconds = int(whole.timestamp())
        sub_second = aware.microsecond * 1000 if nanoseconds is None else nanoseconds
        return cls.from_parts(epoch_seconds, sub_second)

    @classmethod
    def now(cls) -> "Temporal":
        """Return the current UTC instant."""
        return cls.from_datetime(datetime.now(timezone.utc))

    def to_datetime(self) -> datetime:
        """Return an aware UTC datetime truncated to microseconds."""
        base = datetime.fromtimestamp(self.seconds, tz=timezone.utc)
        return base.replace(microsecond=self.nanoseconds // 1000)

    def to_envelope(self) -> dict[str, object]:
        """Return the tagged JSON envelope used by export files."""
        return {
            "type": TIMESTAMP_TYPE_TAG,
            "seconds": self.seconds,
            "nanoseconds": self.nanoseconds,
        }


@dataclass(frozen=True)
class StoredDocument:
    """One document read back from the store.

    Attributes:
        key: Document key within its collection.
        data: Document fields.
    """

    key: str
    data: Mapping[str, Any]


@dataclass(frozen=True)
class WriteOperation:
    """One pending batch write.

    Attributes:
        kind: ``set``, ``update``, or ``delete``.
        collection: Target collection name.
        key: Target document key.
        data: Field payload for set/update, None for delete. In an update,
            a ``DELETE_FIELD`` value removes that field.
    """

    kind: OperationKind
    collection: str
    key: str
    data: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class SkippedRecord:
    """A record rejected before it reached a write batch.

    Attributes:
        collection: Collection the record was destined for.
        index: Zero-based position of the record in its input list.
        reason: Human-readable rejection reason.
        record: Offending record, kept for diagnostics.
    """

    collection: str
    index: int
    reason: str
    record: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChunkFailure:
    """A write batch whose commit failed.

    Attributes:
        chunk_index: Zero-based chunk position in the run.
        keys: Document keys of every operation in the chunk.
        reason: Store error message.
    """

    chunk_index: int
    keys: tuple[str, ...]
    reason: str

    @property
    def operation_count(self) -> int:
        """Number of operations lost with this chunk."""
        return len(self.keys)


@dataclass(frozen=True)
class WriteReport:
    """Outcome of one Batch Writer run.

    Attributes:
        written_count: Operations applied by successful commits.
        commit_count: Number of commit calls issued.
        skipped: Records rejected before batching.
        failures: Chunks whose commit failed.
    """

    written_count: int = 0
    commit_count: int = 0
    skipped: tuple[SkippedRecord, ...] = ()
    failures: tuple[ChunkFailure, ...] = ()

    @property
    def skipped_count(self) -> int:
        """Number of records skipped before batching."""
        return len(self.skipped)

    @property
    def failed_count(self) -> int:
        """Number of operations lost in failed chunks."""
        return sum(failure.operation_count for failure in self.failures)

    @property
    def has_failures(self) -> bool:
        """Whether any chunk commit failed."""
        return bool(self.failures)


@dataclass(frozen=True)
class SequenceScope:
    """Window of existing keys scanned for the next reference number.

    Attributes:
        prefix: Reference prefix, e.g. ``CL`` or ``VMENF-Q``.
        year: Four-digit year segment.
    """

    prefix: str
    year: int

    @property
    def stem(self) -> str:
        """Return ``prefix-year`` shared by every key in scope."""
        return f"{self.prefix}-{self.year}"


@dataclass(frozen=True)
class CollectionPlan:
    """Import settings for one collection.

    Attributes:
        name: Collection name, also the export file key.
        id_fields: Identifier candidates in priority order.
        date_fields: Known date field names for string coercion.
        purge: Whether to purge the collection before import.
    """

    name: str
    id_fields: tuple[str, ...] = DEFAULT_ID_FIELDS
    date_fields: tuple[str, ...] = DEFAULT_DATE_FIELDS
    purge: bool = False


@dataclass(frozen=True)
class ImportOptions:
    """Import command options.

    Attributes:
        source_uri: Export file path or ``s3://`` URI.
        default_collection: Collection for bare-array exports.
        collections: Per-collection plans; unlisted collections use defaults.
        purge: Purge every imported collection first.
        dry_run: Run against an in-memory store instead of the live one.
    """

    source_uri: str
    default_collection: str | None = None
    collections: tuple[CollectionPlan, ...] = ()
    purge: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class ImportReport:
    """Outcome of a full import run.

    Attributes:
        collection_reports: Write report per imported collection, in order.
        purged: Delete report per purged collection. Dry runs record the
            number of live documents a purge would delete.
    """

    collection_reports: Mapping[str, WriteReport]
    purged: Mapping[str, WriteReport] = field(default_factory=dict)

    @property
    def purged_counts(self) -> dict[str, int]:
        """Deleted document count per purged collection."""
        return {name: report.written_count for name, report in self.purged.items()}

    @property
    def written_count(self) -> int:
        """Total documents written across collections."""
        return sum(report.written_count for report in self.collection_reports.values())

    @property
    def skipped_count(self) -> int:
        """Total records skipped across collections."""
        return sum(report.skipped_count for report in self.collection_reports.values())

    @property
    def failed_count(self) -> int:
        """Total operations lost in failed purge and import chunks."""
        return sum(report.failed_count for report in self._all_reports())

    @property
    def has_failures(self) -> bool:
        """Whether any purge or import chunk failed."""
        return any(report.has_failures for report in self._all_reports())

    def _all_reports(self) -> list[WriteReport]:
        return [*self.purged.values(), *self.collection_reports.values()]


@dataclass(frozen=True)
class ReconcileRequest:
    """Derived-field reconciliation request.

    Attributes:
        target_collection: Collection holding the derived field.
        source_collection: Authoritative collection queried per target.
        link_field: Source field holding the target key (scalar or list).
        derived_field: Target field recomputed from matches.
        projection: Computes the derived value from matched source documents.
        target_key_field: Optional target field used instead of the document key.
        touch_field: Last-modified marker set on write-back, or None.
        dry_run: Compute deltas without writing.
    """

    target_collection: str
    source_collection: str
    link_field: str
    derived_field: str
    projection: Projection
    target_key_field: str | None = None
    touch_field: str | None = DEFAULT_TOUCH_FIELD
    dry_run: bool = False


@dataclass(frozen=True)
class ReconciliationDelta:
    """Stored versus recomputed value for one target record."""

    target_key: str
    stored: Any
    computed: list[Any]
    diverges: bool


@dataclass(frozen=True)
class ReconcileFailure:
    """A target record whose reconciliation raised."""

    target_key: str
    reason: str


@dataclass(frozen=True)
class ReconcileReport:
    """Outcome of one reconciliation pass.

    Attributes:
        checked_count: Target records examined.
        updated_keys: Keys whose derived field was written back.
        failures: Records left unchanged because processing failed.
    """

    checked_count: int
    updated_keys: tuple[str, ...] = ()
    failures: tuple[ReconcileFailure, ...] = ()

    @property
    def updated_count(self) -> int:
        """Number of write-backs issued (or planned in a dry run)."""
        return len(self.updated_keys)

    @property
    def unchanged_count(self) -> int:
        """Number of targets whose stored value already matched."""
        return self.checked_count - self.updated_count - len(self.failures)


@dataclass(frozen=True)
class ExportRequest:
    """Collection export request.

    Attributes:
        collections: Collection names to dump.
        output_uri: Local file path or ``s3://bucket/key`` destination.
    """

    collections: tuple[str, ...]
    output_uri: str


@dataclass(frozen=True)
class LinkNormalizationRequest:
    """Scalar-to-array link field migration request.

    Attributes:
        collection: Collection whose link field is migrated.
        link_field: Field holding a scalar link, rewritten as an array.
        legacy_field: Older list of links merged in and then removed.
        dry_run: Report planned rewrites without writing.
    """

    collection: str
    link_field: str = DEFAULT_LINK_FIELD
    legacy_field: str = DEFAULT_LEGACY_LINK_FIELD
    dry_run: bool = False


@dataclass(frozen=True)
class LinkNormalizationReport:
    """Outcome of one link field migration.

    Attributes:
        checked_count: Documents examined.
        migrated_keys: Keys rewritten (or planned in a dry run).
        skipped_keys: Keys whose link field was already an array.
        write_report: Batch Writer outcome; empty for dry runs.
    """

    checked_count: int
    migrated_keys: tuple[str, ...] = ()
    skipped_keys: tuple[str, ...] = ()
    write_report: WriteReport = field(default_factory=WriteReport)

    @property
    def migrated_count(self) -> int:
        """Number of documents rewritten."""
        return len(self.migrated_keys)

    @property
    def skipped_count(self) -> int:
        """Number of documents already migrated."""
        return len(self.skipped_keys)

    @property
    def failed_count(self) -> int:
        """Number of rewrites lost in failed chunks."""
        return self.write_report.failed_count

    @property
    def has_failures(self) -> bool:
        """Whether any chunk commit failed."""
        return self.write_report.has_failures
