"""S3 upload helper for export files."""

from __future__ import annotations

from typing import Any

from core.errors import FerryStoreError
from core.s3_uri import S3Location


def upload_export(s3_client: Any, body: str, location: S3Location) -> None:
    """Upload an export body to S3.

    Args:
        s3_client: Boto3 S3 client.
        body: Export file contents.
        location: Destination bucket and key.

    Raises:
        FerryStoreError: If upload fails.
    """
    from botocore.exceptions import BotoCoreError, ClientError

    try:
        s3_client.put_object(
            Bucket=location.bucket,
            Key=location.key,
            Body=body.encode("utf-8"),
            ContentType="application/json",
        )
    except (BotoCoreError, ClientError) as error:
        raise FerryStoreError(
            f"Failed to export to s3://{location.bucket}/{location.key}: {error}. "
            "Check AWS credentials and retry export."
        ) from error
