"""S3 URI parsing helpers.

This module centralizes S3 URI parsing for export reads and backup writes.
It keeps URI validation behavior consistent across the codebase.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from core.config import FerryConfig
from core.errors import FerryDependencyError, FerryInputError, FerryStoreError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 object location."""

    bucket: str
    key: str


def is_s3_uri(uri: str) -> bool:
    """Return whether a URI points at S3."""
    return uri.startswith("s3://")


def parse_s3_uri(uri: str, domain: str) -> S3Location:
    """Parse and validate an S3 object URI.

    Args:
        uri: URI in format ``s3://bucket/key``.
        domain: Error domain string ("input" or "store").

    Returns:
        Parsed bucket and key pair.

    Raises:
        FerryInputError: For input-domain parse failures.
        FerryStoreError: For store-domain parse failures.
    """
    stripped_uri = uri.removeprefix("s3://")
    if "/" not in stripped_uri:
        _raise_uri_error(uri, domain)
    bucket, key = stripped_uri.split("/", 1)
    if not bucket or not key:
        _raise_uri_error(uri, domain)
    return S3Location(bucket=bucket, key=key)


def create_s3_client(config: FerryConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config containing optional profile/region.

    Returns:
        Boto3 S3 client.

    Raises:
        FerryDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise FerryDependencyError(
            "S3 support requires boto3, but it is not installed. "
            "Install boto3 to read or write s3:// exports."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


def _raise_uri_error(uri: str, domain: str) -> None:
    """Raise a domain-specific invalid URI error.

    Args:
        uri: Invalid URI value.
        domain: Error domain string.

    Raises:
        FerryInputError: For input domain.
        FerryStoreError: For store domain.
    """
    message = (
        f"Invalid S3 URI '{uri}': expected s3://bucket/key. "
        "Provide both bucket and object key."
    )
    if domain == "input":
        raise FerryInputError(message)
    raise FerryStoreError(message)
