"""Core constants used across Ferry modules.

This module centralizes store limits, field-name defaults, and formats.
Keeping values here avoids magic literals in migration logic.
"""

from __future__ import annotations

MAX_BATCH_SIZE = 500
DEFAULT_BATCH_SIZE = MAX_BATCH_SIZE
DEFAULT_SOURCE_URI = "finalData.json"
DEFAULT_STORE_BACKEND = "firestore"
SUPPORTED_STORE_BACKENDS = ("firestore", "memory")
TIMESTAMP_TYPE_TAG = "timestamp/1.0"
NANOSECONDS_PER_SECOND = 1_000_000_000
NULL_SENTINEL_STRING = "null"
DEFAULT_DATE_FIELDS = (
    "dateReceived",
    "createdAt",
    "updatedAt",
    "dateIssued",
    "datePaid",
    "dateOfOR",
    "date",
    "startDate",
    "endDate",
)
DEFAULT_ID_FIELDS = (
    "id",
    "clientId",
    "projectId",
    "inquiryId",
    "referenceNumber",
    "chargeSlipNo",
)
EXPORT_ID_FIELD = "id"
DEFAULT_TOUCH_FIELD = "updatedAt"
DEFAULT_LINK_FIELD = "pid"
DEFAULT_LEGACY_LINK_FIELD = "projects"
SEQUENCE_DELIMITER = "-"
SEQUENCE_PAD_WIDTH = 3
SUPPORTED_QUERY_OPERATORS = ("==", "array-contains", ">=", "<=", "<", ">", "in")
