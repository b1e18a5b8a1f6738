"""Tests for the FileRecord store."""

import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlmodel import Session, select

from api.filerecord import services
from api.filerecord.models import FileRecord, FileRecordCreate, ById, ByAccessCode
from api.filerecord.services import (
    AccessCodeExhausted,
    DuplicateAccessCode,
    NotFound,
    QuotaExceeded,
)
from core.config import get_settings


class TestCreate:
    """Test record creation."""

    def test_create_starts_with_zero_downloads(self, session):
        record = services.create_file_record(
            session,
            FileRecordCreate(
                storage_path="/tmp/blob",
                original_name="report.pdf",
                access_code="ABCD1234",
            ),
        )
        assert record.id is not None
        assert record.download_count == 0
        assert record.password_hash is None
        assert record.is_protected is False
        assert record.created_at is not None
        assert record.updated_at is not None

    def test_create_duplicate_access_code(self, session, make_record):
        make_record(access_code="TAKEN123")
        with pytest.raises(DuplicateAccessCode):
            services.create_file_record(
                session,
                FileRecordCreate(
                    storage_path="/tmp/other",
                    original_name="other.txt",
                    access_code="TAKEN123",
                ),
            )
        # The session is usable again after the rollback
        records = session.exec(select(FileRecord)).all()
        assert len(records) == 1


class TestResolutionStrategy:
    """Test the ordered identity lookups."""

    def test_uuid_tries_id_then_access_code(self):
        value = str(uuid.uuid4())
        assert services.resolution_strategy(value) == [
            ById(uuid.UUID(value)),
            ByAccessCode(value),
        ]

    def test_access_code_only(self):
        assert services.resolution_strategy("ABCD1234") == [ByAccessCode("ABCD1234")]

    def test_empty_value(self):
        assert services.resolution_strategy("") == []


class TestFindByIdentity:
    """Test record lookup by id or access code."""

    def test_find_by_id(self, session, make_record):
        record = make_record()
        found = services.find_by_identity(session, str(record.id))
        assert found.id == record.id

    def test_find_by_access_code(self, session, make_record):
        record = make_record(access_code="QWER5678")
        found = services.find_by_identity(session, "QWER5678")
        assert found.id == record.id

    def test_access_code_is_case_sensitive(self, session, make_record):
        make_record(access_code="QWER5678")
        with pytest.raises(NotFound):
            services.find_by_identity(session, "qwer5678")

    def test_not_found(self, session):
        with pytest.raises(NotFound):
            services.find_by_identity(session, "NOPE0000")

    def test_id_wins_over_access_code(self, session, make_record):
        """A value matching one record's id and another's code resolves by id."""
        by_id = make_record()
        make_record(access_code=str(by_id.id))

        found = services.find_by_identity(session, str(by_id.id))
        assert found.id == by_id.id

    def test_uuid_shaped_access_code(self, session, make_record):
        """A UUID-shaped value with no id match falls back to the access code."""
        code = str(uuid.uuid4())
        record = make_record(access_code=code)

        found = services.find_by_identity(session, code)
        assert found.id == record.id

    def test_lookups_do_not_create_records(self, session):
        for _ in range(3):
            with pytest.raises(NotFound):
                services.find_by_identity(session, "GHOST000")
        assert session.exec(select(FileRecord)).all() == []


class TestAccessCodeGeneration:
    """Test access code generation."""

    def test_code_shape(self, session):
        code = services.generate_unique_access_code(session)
        settings = get_settings()
        assert len(code) == settings.ACCESS_CODE_LENGTH
        assert all(c in settings.ACCESS_CODE_ALPHABET for c in code)

    def test_regenerates_on_collision(self, session, make_record, monkeypatch):
        make_record(access_code="AAAAAAAA")
        codes = iter(["AAAAAAAA", "AAAAAAAA", "BBBBBBBB"])
        monkeypatch.setattr(services, "generate_access_code", lambda: next(codes))

        assert services.generate_unique_access_code(session) == "BBBBBBBB"

    def test_gives_up_after_max_attempts(self, session, make_record, monkeypatch):
        make_record(access_code="AAAAAAAA")
        calls = []

        def always_taken():
            calls.append(1)
            return "AAAAAAAA"

        monkeypatch.setattr(services, "generate_access_code", always_taken)
        with pytest.raises(AccessCodeExhausted):
            services.generate_unique_access_code(session)
        assert len(calls) == get_settings().ACCESS_CODE_MAX_ATTEMPTS


class TestTryConsumeSlot:
    """Test the guarded download counter."""

    def test_increments(self, session, make_record):
        record = make_record()
        updated = services.try_consume_slot(session, record.id)
        assert updated.download_count == 1

    def test_stops_at_limit(self, session, make_record):
        max_downloads = get_settings().MAX_DOWNLOADS
        record = make_record()
        for expected in range(1, max_downloads + 1):
            assert services.try_consume_slot(session, record.id).download_count == expected

        with pytest.raises(QuotaExceeded):
            services.try_consume_slot(session, record.id)

        session.refresh(record)
        assert record.download_count == max_downloads

    def test_exhausted_record(self, session, make_record):
        record = make_record(download_count=get_settings().MAX_DOWNLOADS)
        with pytest.raises(QuotaExceeded):
            services.try_consume_slot(session, record.id)

    def test_unknown_record(self, session):
        with pytest.raises(QuotaExceeded):
            services.try_consume_slot(session, uuid.uuid4())

    def test_concurrent_consumers(self, file_engine, make_file_record):
        """Ten racing consumers on a fresh record: exactly MAX_DOWNLOADS win."""
        record = make_file_record()

        def consume(_):
            with Session(file_engine) as session:
                try:
                    services.try_consume_slot(session, record.id)
                    return True
                except QuotaExceeded:
                    return False

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(consume, range(10)))

        max_downloads = get_settings().MAX_DOWNLOADS
        assert results.count(True) == max_downloads
        assert results.count(False) == 10 - max_downloads

        with Session(file_engine) as session:
            assert session.get(FileRecord, record.id).download_count == max_downloads
