"""
Services for the FileRecord store
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from api.filerecord.models import (
    FileRecord,
    FileRecordCreate,
    ById,
    ByAccessCode,
    Identity,
)
from core.config import get_settings
from core.logger import logger
from core.security import generate_access_code


class FileRecordError(Exception):
    """Base class for record store errors"""


class NotFound(FileRecordError):
    """No record matches the requested identity"""


class QuotaExceeded(FileRecordError):
    """The record has no download slots left"""


class DuplicateAccessCode(FileRecordError):
    """Another record already holds the access code"""


class AccessCodeExhausted(FileRecordError):
    """No free access code could be generated within the retry bound"""


def create_file_record(session: Session, record_in: FileRecordCreate) -> FileRecord:
    """
    Persist a new file record with download_count = 0.

    Raises:
        DuplicateAccessCode: if the access code is already taken
    """
    record = FileRecord(**record_in.model_dump(), download_count=0)
    try:
        session.add(record)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise DuplicateAccessCode(record_in.access_code) from e
    session.refresh(record)
    return record


def resolution_strategy(value: str) -> list[Identity]:
    """
    Ordered lookups for an identity string.

    A value that parses as a UUID is tried as an internal id before it is
    tried as an access code, so an id match always wins.
    """
    if not value:
        return []
    strategy: list[Identity] = []
    try:
        strategy.append(ById(uuid.UUID(value)))
    except ValueError:
        pass
    strategy.append(ByAccessCode(value))
    return strategy


def _lookup(session: Session, identity: Identity) -> FileRecord | None:
    if isinstance(identity, ById):
        return session.get(FileRecord, identity.record_id)
    return session.exec(
        select(FileRecord).where(FileRecord.access_code == identity.access_code)
    ).first()


def find_by_identity(session: Session, value: str) -> FileRecord:
    """
    Resolve an internal id or access code to its record.

    Raises:
        NotFound: if no strategy matches
    """
    for identity in resolution_strategy(value):
        record = _lookup(session, identity)
        if record is not None:
            return record
    raise NotFound(value)


def access_code_exists(session: Session, access_code: str) -> bool:
    """Check whether any record holds the access code"""
    return _lookup(session, ByAccessCode(access_code)) is not None


def generate_unique_access_code(session: Session) -> str:
    """
    Generate an access code no stored record holds yet.

    The default space is 36^8 (about 2.8e12) codes, so hitting
    ACCESS_CODE_MAX_ATTEMPTS consecutive collisions means the store is
    misconfigured rather than full.

    Raises:
        AccessCodeExhausted: if every attempt collided
    """
    settings = get_settings()
    for attempt in range(settings.ACCESS_CODE_MAX_ATTEMPTS):
        code = generate_access_code()
        if not access_code_exists(session, code):
            return code
        logger.debug("Access code collision on attempt %d", attempt + 1)
    raise AccessCodeExhausted(
        f"No free access code after {settings.ACCESS_CODE_MAX_ATTEMPTS} attempts"
    )


def try_consume_slot(session: Session, record_id: uuid.UUID) -> FileRecord:
    """
    Atomically take one download slot from a record.

    The guard and the increment are a single conditional UPDATE, so
    concurrent callers can never push download_count past MAX_DOWNLOADS.

    Raises:
        QuotaExceeded: if the record is exhausted (or no longer exists)
    """
    max_downloads = get_settings().MAX_DOWNLOADS
    statement = (
        update(FileRecord)
        .where(FileRecord.id == record_id)
        .where(FileRecord.download_count < max_downloads)
        .values(
            download_count=FileRecord.download_count + 1,
            updated_at=datetime.now(timezone.utc),
        )
    )
    result = session.connection().execute(statement)
    session.commit()
    if result.rowcount != 1:
        raise QuotaExceeded(str(record_id))

    record = session.get(FileRecord, record_id)
    session.refresh(record)
    return record
