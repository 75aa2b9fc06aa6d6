"""Sequential human-readable reference numbers.

References look like ``CL-2025-017`` or ``VMENF-Q-2025-004``: a prefix,
a year, and a numeric suffix padded to three digits. The next suffix is
one more than the highest suffix already present in the same scope.

Allocation reads existing keys and then computes; nothing is locked or
reserved. Two callers allocating concurrently can both read the same
maximum and receive the same reference. Callers must serialize
creation (one user action creating one record at a time).
"""

from __future__ import annotations

import re
from typing import Iterable

from core.constants import SEQUENCE_DELIMITER, SEQUENCE_PAD_WIDTH
from core.logging_config import get_logger
from core.types import SequenceScope
from store.document_store import DocumentStore

_LOGGER = get_logger(__name__)


def next_reference(scope: SequenceScope, existing_keys: Iterable[str]) -> str:
    """Compute the next reference number within a scope.

    Args:
        scope: Prefix and year bounding which keys are considered.
        existing_keys: Keys already in use; keys outside the scope and keys
            with a non-numeric suffix are ignored.

    Returns:
        ``prefix-year-NNN`` with the suffix one past the highest in scope.
    """
    pattern = re.compile(rf"^{re.escape(scope.stem)}{SEQUENCE_DELIMITER}(\S+)$")
    suffixes: list[int] = []
    for key in existing_keys:
        match = pattern.match(key.strip())
        if match is None:
            continue
        suffix = _parse_suffix(match.group(1))
        if suffix is not None:
            suffixes.append(suffix)
    next_number = max(suffixes, default=0) + 1
    return f"{scope.stem}{SEQUENCE_DELIMITER}{str(next_number).zfill(SEQUENCE_PAD_WIDTH)}"


class ReferenceAllocator:
    """Allocates references by scanning keys currently in the store."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def allocate(self, collection: str, scope: SequenceScope, field: str | None = None) -> str:
        """Return the next free reference for ``scope`` in ``collection``.

        Args:
            collection: Collection holding existing references.
            scope: Prefix and year to allocate within.
            field: Field holding the reference; document keys when omitted.

        Returns:
            Next reference number. Not reserved: see module docstring.
        """
        existing_keys = self._existing_keys(collection, field)
        reference = next_reference(scope, existing_keys)
        _LOGGER.info(
            "reference_allocated",
            collection=collection,
            prefix=scope.prefix,
            year=scope.year,
            reference=reference,
            scanned_count=len(existing_keys),
        )
        return reference

    def _existing_keys(self, collection: str, field: str | None) -> list[str]:
        if field is None:
            return self._store.list_keys(collection)
        values: list[str] = []
        for document in self._store.stream(collection):
            value = document.data.get(field)
            if isinstance(value, str):
                values.append(value)
        return values


def _parse_suffix(token: str) -> int | None:
    if not (token.isascii() and token.isdigit()):
        return None
    return int(token)
