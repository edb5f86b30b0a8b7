"""Pytest configuration and fixtures."""
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

TEST_DB_PATH = Path("test_app.db")
if TEST_DB_PATH.exists():
    TEST_DB_PATH.unlink()

TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.pop("SNS_TOPIC_ARN", None)

from app.main import app  # noqa: E402
from app.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from app.dependencies import get_event_notifier, get_storage_service, get_upload_policy  # noqa: E402
from app.models.project import Project  # noqa: E402
from app.models.task import Task  # noqa: E402
from app.services.attachment_service import AttachmentService, UploadPolicy  # noqa: E402
from app.services.event_service import EventNotifier, EventPublisher  # noqa: E402
from app.schemas.event import EventName, PublishOutcome  # noqa: E402
from app.services.storage_service import StorageService  # noqa: E402

TEST_BUCKET = "test-bucket"

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(test_engine)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def storage_error(operation: str, code: str = "InternalError", message: str = "storage down") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeS3Client:
    """In-memory stand-in for the boto3 S3 client."""

    def __init__(self):
        self.presign_calls: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self.delete_objects_calls: List[List[str]] = []
        self.fail_delete_object = False
        self.fail_batches: Dict[int, List[Dict[str, str]]] = {}
        self.closed = False

    def generate_presigned_url(self, operation: str, Params: Dict[str, Any], ExpiresIn: int) -> str:
        self.presign_calls.append({"operation": operation, "params": Params, "expires_in": ExpiresIn})
        return (
            f"https://{Params['Bucket']}.s3.test/{quote(Params['Key'])}"
            f"?op={operation}&X-Amz-Expires={ExpiresIn}"
        )

    def delete_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        if self.fail_delete_object:
            raise storage_error("DeleteObject")
        self.deleted.append(Key)
        return {}

    def delete_objects(self, Bucket: str, Delete: Dict[str, Any]) -> Dict[str, Any]:
        keys = [item["Key"] for item in Delete["Objects"]]
        self.delete_objects_calls.append(keys)
        errors = self.fail_batches.get(len(self.delete_objects_calls))
        if errors:
            return {"Deleted": [], "Errors": errors}
        self.deleted.extend(keys)
        return {"Deleted": [{"Key": key} for key in keys]}

    def close(self) -> None:
        self.closed = True


class RecordingPublisher(EventPublisher):
    """Publisher that keeps every event in memory."""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    async def publish(self, event, payload, cid=None) -> PublishOutcome:
        self.events.append({"event": EventName(event), "payload": payload, "cid": cid})
        return PublishOutcome(published=True, cid=cid)

    def names(self) -> List[EventName]:
        return [entry["event"] for entry in self.events]


class FailingPublisher(EventPublisher):
    """Publisher whose bus is always down."""

    def __init__(self):
        self.calls = 0

    async def publish(self, event, payload, cid=None) -> PublishOutcome:
        self.calls += 1
        raise RuntimeError("notification bus unreachable")


@pytest_asyncio.fixture(scope="function")
async def db_session():
    """Create a test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def storage(s3_client: FakeS3Client) -> StorageService:
    return StorageService(s3_client, TEST_BUCKET)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def notifier(publisher: RecordingPublisher) -> EventNotifier:
    return EventNotifier(publisher)


@pytest.fixture
def upload_policy() -> UploadPolicy:
    return UploadPolicy(max_bytes=5 * 1024 * 1024, allowed_mime_types=[])


@pytest.fixture
def attachment_service(db_session, storage, notifier, upload_policy) -> AttachmentService:
    return AttachmentService(db_session, storage, notifier, upload_policy, cid="test-cid")


@pytest.fixture(scope="function")
def client(db_session: AsyncSession, storage: StorageService, notifier: EventNotifier, upload_policy: UploadPolicy):
    """Create a test client overriding database and client dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_event_notifier] = lambda: notifier
    app.dependency_overrides[get_upload_policy] = lambda: upload_policy
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_project(db_session: AsyncSession) -> Project:
    """Create a test project."""
    project = Project(name="General")
    db_session.add(project)
    await db_session.commit()
    await db_session.refresh(project)
    return project


@pytest_asyncio.fixture
async def test_task(db_session: AsyncSession, test_project: Project) -> Task:
    """Create a test task."""
    task = Task(title="Write endpoints", project_id=test_project.id)
    db_session.add(task)
    await db_session.commit()
    await db_session.refresh(task)
    return task


def make_keys(project_id: int, task_id: int, count: int, offset: int = 0) -> List[str]:
    return [f"projects/{project_id}/tasks/{task_id}/1700000000000_{i:08x}_file{i}.txt" for i in range(offset, offset + count)]


def attachment_fields(task_id: int, key: str, name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "task_id": task_id,
        "key": key,
        "original_name": name or key.rsplit("_", 1)[-1],
        "content_type": "text/plain",
        "size": 128,
    }
