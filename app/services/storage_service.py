"""Storage service for S3/MinIO operations."""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from app.config import Settings
from app.core.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

UPLOAD_URL_TTL_SECONDS = 60 * 5
DOWNLOAD_URL_TTL_SECONDS = 60 * 2
# Per-request cap of the S3 DeleteObjects API
DELETE_BATCH_SIZE = 1000


@dataclass
class PresignedUpload:
    """Signed PUT grant plus the headers the client must replay."""

    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    expires_in: int = UPLOAD_URL_TTL_SECONDS


def create_s3_client(settings: Settings):
    """Build the boto3 S3 client used by StorageService."""
    return boto3.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,
        aws_access_key_id=settings.S3_ACCESS_KEY_ID,
        aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
        region_name=settings.AWS_REGION,
        use_ssl=settings.S3_USE_SSL,
        config=Config(
            signature_version="s3v4",
            retries={"max_attempts": 1, "mode": "standard"},
        ),
    )


def chunked(keys: Sequence[str], size: int = DELETE_BATCH_SIZE) -> List[List[str]]:
    """Split keys into consecutive batches of at most `size` items."""
    return [list(keys[i:i + size]) for i in range(0, len(keys), size)]


class StorageService:
    """Presigned access and deletion against one bucket.

    The gateway never retries; every botocore failure surfaces as
    StorageUnavailableError.
    """

    def __init__(self, client, bucket_name: str):
        self.s3_client = client
        self.bucket_name = bucket_name

    def presign_upload(self, key: str, content_type: str, size: int) -> PresignedUpload:
        """Generate presigned URL for uploading a file (PUT)."""
        try:
            url = self.s3_client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": key,
                    "ContentType": content_type,
                    "ContentLength": size,
                },
                ExpiresIn=UPLOAD_URL_TTL_SECONDS,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageUnavailableError(f"Error generating upload URL: {exc}") from exc
        return PresignedUpload(url=url, headers={"Content-Type": content_type})

    def presign_download(self, key: str) -> str:
        """Generate presigned URL for downloading a file (GET)."""
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": key,
                },
                ExpiresIn=DOWNLOAD_URL_TTL_SECONDS,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageUnavailableError(f"Error generating download URL: {exc}") from exc

    async def delete_one(self, key: str) -> None:
        """Delete a single object. Missing keys are not an error."""
        try:
            await run_in_threadpool(
                self.s3_client.delete_object, Bucket=self.bucket_name, Key=key
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 delete failed for key=%s: %s", key, exc)
            raise StorageUnavailableError("Could not delete the file from storage") from exc

    async def delete_many(self, keys: Sequence[str]) -> None:
        """Delete objects in batches; the first batch reporting errors aborts.

        Batches already deleted are not restored.
        """
        batches = chunked(keys)
        for index, batch in enumerate(batches, start=1):
            try:
                response = await run_in_threadpool(
                    self.s3_client.delete_objects,
                    Bucket=self.bucket_name,
                    Delete={"Objects": [{"Key": key} for key in batch]},
                )
            except (ClientError, BotoCoreError) as exc:
                logger.error("S3 bulk delete batch %d/%d failed: %s", index, len(batches), exc)
                raise StorageUnavailableError("Could not delete files from storage") from exc

            errors = response.get("Errors") or []
            if errors:
                sample = errors[0]
                logger.error(
                    "S3 bulk delete batch %d/%d reported %d errors (e.g. %s: %s %s)",
                    index,
                    len(batches),
                    len(errors),
                    sample.get("Key"),
                    sample.get("Code"),
                    sample.get("Message"),
                )
                raise StorageUnavailableError(
                    "Could not delete files from storage",
                    key=sample.get("Key"),
                    code=sample.get("Code"),
                    message=sample.get("Message"),
                )

    def close(self) -> None:
        """Release the underlying HTTP connections."""
        close = getattr(self.s3_client, "close", None)
        if close is not None:
            close()
