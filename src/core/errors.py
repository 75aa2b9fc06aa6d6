"""Ferry exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class FerryError(Exception):
    """Base exception for all Ferry failures."""


class FerryConfigError(FerryError):
    """Raised for invalid runtime configuration."""


class FerryInputError(FerryError):
    """Raised for unreadable or malformed export files."""


class FerryStoreError(FerryError):
    """Raised for document store read and commit failures."""


class FerryCredentialError(FerryStoreError):
    """Raised when store credentials are missing or unusable."""


class FerryDependencyError(FerryError):
    """Raised when an optional runtime dependency is missing."""


class FerryPlanError(FerryError):
    """Raised for invalid or unsupported migration plan files."""


class FerryReconcileError(FerryError):
    """Raised when one target record cannot be reconciled."""
