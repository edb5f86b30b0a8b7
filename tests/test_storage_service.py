"""Tests for the object storage gateway."""
import pytest

from app.core.exceptions import StorageUnavailableError
from app.services.storage_service import (
    DELETE_BATCH_SIZE,
    DOWNLOAD_URL_TTL_SECONDS,
    UPLOAD_URL_TTL_SECONDS,
    StorageService,
    chunked,
)

from conftest import TEST_BUCKET, FakeS3Client, storage_error


def test_presign_upload_signs_content_type_and_length(storage, s3_client):
    """Upload grant covers type and length and expires after five minutes."""
    grant = storage.presign_upload("projects/1/tasks/2/a.png", "image/png", 2048)

    call = s3_client.presign_calls[-1]
    assert call["operation"] == "put_object"
    assert call["params"] == {
        "Bucket": TEST_BUCKET,
        "Key": "projects/1/tasks/2/a.png",
        "ContentType": "image/png",
        "ContentLength": 2048,
    }
    assert call["expires_in"] == UPLOAD_URL_TTL_SECONDS == 300
    assert grant.headers == {"Content-Type": "image/png"}
    assert grant.url.startswith(f"https://{TEST_BUCKET}.s3.test/")


def test_presign_download_expires_after_two_minutes(storage, s3_client):
    url = storage.presign_download("projects/1/tasks/2/a.png")

    call = s3_client.presign_calls[-1]
    assert call["operation"] == "get_object"
    assert call["expires_in"] == DOWNLOAD_URL_TTL_SECONDS == 120
    assert "op=get_object" in url


def test_presign_failure_maps_to_storage_unavailable():
    class BrokenClient(FakeS3Client):
        def generate_presigned_url(self, operation, Params, ExpiresIn):
            raise storage_error("PutObject")

    service = StorageService(BrokenClient(), TEST_BUCKET)
    with pytest.raises(StorageUnavailableError) as exc_info:
        service.presign_upload("k", "text/plain", 1)
    assert exc_info.value.status_code == 502


def test_chunked_respects_batch_cap():
    keys = [str(i) for i in range(2001)]
    batches = chunked(keys)
    assert [len(b) for b in batches] == [1000, 1000, 1]
    assert sum(batches, []) == keys
    assert chunked([]) == []


@pytest.mark.asyncio
async def test_delete_one(storage, s3_client):
    await storage.delete_one("projects/1/tasks/1/x.txt")
    assert s3_client.deleted == ["projects/1/tasks/1/x.txt"]


@pytest.mark.asyncio
async def test_delete_one_failure(storage, s3_client):
    s3_client.fail_delete_object = True
    with pytest.raises(StorageUnavailableError):
        await storage.delete_one("projects/1/tasks/1/x.txt")
    assert s3_client.deleted == []


@pytest.mark.asyncio
async def test_delete_many_empty_issues_no_call(storage, s3_client):
    await storage.delete_many([])
    assert s3_client.delete_objects_calls == []


@pytest.mark.asyncio
async def test_delete_many_batches(storage, s3_client):
    """2500 keys go out as three bulk calls in order."""
    keys = [f"k{i}" for i in range(2500)]
    await storage.delete_many(keys)

    assert [len(call) for call in s3_client.delete_objects_calls] == [DELETE_BATCH_SIZE, DELETE_BATCH_SIZE, 500]
    assert s3_client.deleted == keys


@pytest.mark.asyncio
async def test_delete_many_stops_at_first_failing_batch(storage, s3_client):
    """Batch 2 reporting errors aborts; batch 1 stays deleted, batch 3 is never sent."""
    s3_client.fail_batches[2] = [
        {"Key": "k1500", "Code": "AccessDenied", "Message": "Access Denied"},
        {"Key": "k1501", "Code": "AccessDenied", "Message": "Access Denied"},
    ]
    keys = [f"k{i}" for i in range(2500)]

    with pytest.raises(StorageUnavailableError) as exc_info:
        await storage.delete_many(keys)

    error = exc_info.value
    assert error.key == "k1500"
    assert error.code == "AccessDenied"
    assert error.message == "Access Denied"
    assert error.detail["key"] == "k1500"
    assert len(s3_client.delete_objects_calls) == 2
    assert s3_client.deleted == keys[:1000]


def test_close_releases_client(storage, s3_client):
    storage.close()
    assert s3_client.closed is True
