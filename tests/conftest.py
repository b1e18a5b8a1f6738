import os
import tempfile
import uuid
from pathlib import Path

# Settings are cached on first use, so the environment has to be in place
# before anything from the application is imported.
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="quickdrop-tests-"))
os.environ["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{(_TEST_ROOT / 'app.db').as_posix()}"
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["BASE_URL"] = "http://testserver"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("QR_DIR", None)
os.environ.pop("ENV_SECRETS", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, create_engine, SQLModel  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from core.deps import get_db  # noqa: E402
from core.security import generate_access_code, hash_password  # noqa: E402
from api.filerecord.models import FileRecord  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="file_engine")
def file_engine_fixture(tmp_path):
    """
    File backed sqlite engine for tests that need one session per thread.
    """
    engine = create_engine(
        f"sqlite:///{(tmp_path / 'race.db').as_posix()}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_db_override():
        return session

    app.dependency_overrides[get_db] = get_db_override

    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def add_record(
    session: Session,
    blob_dir: Path,
    password: str | None = None,
    access_code: str | None = None,
    download_count: int = 0,
    content: bytes = b"hello world",
    original_name: str = "hello.txt",
) -> FileRecord:
    """Write a blob and persist a record pointing at it"""
    blob = blob_dir / uuid.uuid4().hex
    blob.write_bytes(content)
    record = FileRecord(
        storage_path=str(blob),
        original_name=original_name,
        password_hash=hash_password(password) if password else None,
        access_code=access_code or generate_access_code(),
        download_count=download_count,
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


@pytest.fixture(name="make_record")
def make_record_fixture(session: Session, tmp_path):
    """Factory for records stored in the in-memory session"""
    def _make(**kwargs) -> FileRecord:
        return add_record(session, tmp_path, **kwargs)
    return _make


@pytest.fixture(name="make_file_record")
def make_file_record_fixture(file_engine, tmp_path):
    """Factory for records stored in the file backed engine"""
    def _make(**kwargs) -> FileRecord:
        with Session(file_engine) as session:
            record = add_record(session, tmp_path, **kwargs)
            session.expunge(record)
        return record
    return _make
