from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import boto3
from botocore.exceptions import ClientError

from lab_etl.config.settings import Settings
from lab_etl.logging.logger import Log
from lab_etl.storage.exceptions import SourceFileNotFoundError, StorageError
from lab_etl.storage.models import StoragePaths

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def storage_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with ':' and '.' made key-safe: 2026-10-18T12-30-00-123Z."""
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"


def build_s3_client(settings: Settings) -> Any:
    """Create the S3 client, preferring explicit keys over the default chain."""
    kwargs: dict[str, Any] = {"region_name": settings.aws_region}
    if settings.s3_endpoint_url:
        kwargs["endpoint_url"] = settings.s3_endpoint_url
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
        Log.info("Using AWS credentials from environment variables")
    else:
        Log.info("Using AWS credentials from default credential chain")
    return boto3.client("s3", **kwargs)


def _is_not_found(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


class S3Gateway:
    """Object-storage operations of the file lifecycle.

    visible (under the source prefix) -> processing -> processed (copied to
    ``<processed>/<timestamp>_<name>``). The original is never deleted, so a
    file stays visible and is picked up again by the next run.
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def bucket(self) -> str:
        return self._bucket

    def list_files(self, paths: StoragePaths) -> list[str]:
        """List visible CSV file names (relative to the source prefix), all pages.

        Raises:
            StorageError: if listing fails.
        """
        names: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=paths.source):
                for obj in page.get("Contents", []):
                    key: str = obj["Key"]
                    if self._is_visible(key, paths):
                        names.append(key[len(paths.source):])
        except ClientError as exc:
            Log.error(f"Error listing files under {paths.source}: {exc}")
            raise StorageError(f"Failed to list {paths.source}: {exc}") from exc
        return names

    def exists(self, file_name: str, paths: StoragePaths) -> bool:
        key = paths.source_key(file_name)
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _is_not_found(exc):
                return False
            raise StorageError(f"Failed to check {key}: {exc}") from exc
        return True

    def fetch(self, file_name: str, paths: StoragePaths) -> bytes:
        """Download a source file.

        Raises:
            SourceFileNotFoundError: if the object no longer exists.
            StorageError: on any other S3 failure.
        """
        key = paths.source_key(file_name)
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            body: bytes = response["Body"].read()
        except ClientError as exc:
            if _is_not_found(exc):
                raise SourceFileNotFoundError(f"File not found: {key}") from exc
            Log.error(f"Error getting file {key} from S3: {exc}")
            raise StorageError(f"Failed to get {key}: {exc}") from exc
        Log.info(f"Retrieved {len(body)} bytes from s3://{self._bucket}/{key}")
        return body

    def move_to_processed(self, file_name: str, paths: StoragePaths) -> str:
        """Copy the file under the processed prefix and return the new key.

        The source delete is a no-op; see ``delete_original``.
        """
        source_key = paths.source_key(file_name)
        dest_key = f"{paths.processed}{storage_timestamp(self._clock())}_{file_name}"
        try:
            self._client.copy_object(
                Bucket=self._bucket,
                CopySource={"Bucket": self._bucket, "Key": source_key},
                Key=dest_key,
            )
        except ClientError as exc:
            Log.error(f"Error copying {source_key} to {dest_key}: {exc}")
            raise StorageError(f"Failed to copy {source_key}: {exc}") from exc
        Log.info(f"File copied to processed folder: {source_key} -> {dest_key}")
        self.delete_original(source_key)
        return dest_key

    def delete_original(self, key: str) -> None:
        """Intentionally keeps the source object; delivery is at-least-once."""
        Log.info(f"Original file retained at {key}")

    def upload_remark(self, content: bytes, file_name: str, paths: StoragePaths) -> str:
        """Upload a remark CSV as ``<logs>/<name>_<timestamp>`` and return its key."""
        key = f"{paths.logs}{file_name}_{storage_timestamp(self._clock())}"
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=content,
                ContentType="text/csv",
            )
        except ClientError as exc:
            Log.error(f"Error uploading remark {key}: {exc}")
            raise StorageError(f"Failed to upload {key}: {exc}") from exc
        Log.info(f"Remark uploaded to s3://{self._bucket}/{key}")
        return key

    @staticmethod
    def _is_visible(key: str, paths: StoragePaths) -> bool:
        return (
            key != paths.source
            and not key.startswith(paths.processed)
            and not key.startswith(paths.logs)
            and key.endswith(".csv")
        )
