"""
Services for the Uploads API
"""
import uuid
from pathlib import Path

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from api.filerecord.models import FileRecord, FileRecordCreate
from api.filerecord.services import (
    AccessCodeExhausted,
    DuplicateAccessCode,
    create_file_record,
    generate_unique_access_code,
)
from api.uploads.models import ShareCreated
from api.uploads import qrcodes
from core.config import get_settings
from core.logger import logger
from core.security import BCRYPT_MAX_PASSWORD_BYTES, hash_password

CHUNK_SIZE = 1024 * 1024


class UploadTooLarge(ValueError):
    """The payload exceeds MAX_UPLOAD_BYTES"""


class PasswordTooLong(ValueError):
    """The password is longer than bcrypt accepts"""


def display_name(filename: str | None) -> str:
    """Strip any directory part a client sent along with the filename"""
    name = Path((filename or "").replace("\\", "/")).name
    return name or "upload.bin"


async def save_upload(upload: UploadFile) -> Path:
    """
    Stream an upload to UPLOAD_DIR under a random name.

    Raises:
        UploadTooLarge: if the payload exceeds MAX_UPLOAD_BYTES; the
        partial file is removed
    """
    settings = get_settings()
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    target = upload_dir / uuid.uuid4().hex
    size = 0

    try:
        with target.open("wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > settings.MAX_UPLOAD_BYTES:
                    raise UploadTooLarge(
                        f"File too large. Max {settings.MAX_UPLOAD_BYTES} bytes"
                    )
                out.write(chunk)
    except UploadTooLarge:
        target.unlink(missing_ok=True)
        raise
    finally:
        await upload.close()

    logger.debug("Stored %d bytes at %s", size, target)
    return target


def _create_record(
    session: Session,
    storage_path: Path,
    original_name: str,
    password_hash: str | None,
) -> FileRecord:
    """
    Insert the record, regenerating the access code whenever a concurrent
    upload claimed it between the uniqueness check and the insert.
    """
    attempts = get_settings().ACCESS_CODE_MAX_ATTEMPTS
    for _ in range(attempts):
        code = generate_unique_access_code(session)
        try:
            return create_file_record(
                session,
                FileRecordCreate(
                    storage_path=str(storage_path),
                    original_name=original_name,
                    access_code=code,
                    password_hash=password_hash,
                ),
            )
        except DuplicateAccessCode:
            logger.warning("Access code %s was taken concurrently, retrying", code)
    raise AccessCodeExhausted(f"No free access code after {attempts} attempts")


def _discard_record(session: Session, record: FileRecord) -> None:
    """Remove a record whose share could not be completed"""
    logger.warning("Discarding record %s after a failed upload", record.id)
    session.delete(record)
    session.commit()


def check_password(password: str | None) -> None:
    """
    Reject passwords bcrypt would refuse to hash.

    Raises:
        PasswordTooLong: if bcrypt cannot hash the password
    """
    if password and len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise PasswordTooLong(
            f"Password too long. Max {BCRYPT_MAX_PASSWORD_BYTES} bytes"
        )


async def create_share(
    session: Session,
    upload: UploadFile,
    password: str | None = None,
) -> ShareCreated:
    """
    Store an upload and issue its access code, link and QR code.

    An empty password means the file is not protected. When any step after
    the blob is written fails, the blob and any record created for it are
    removed again before the error propagates.

    Raises:
        PasswordTooLong: before anything is written
        UploadTooLarge: the partial file is removed
    """
    check_password(password)
    original_name = display_name(upload.filename)
    storage_path = await save_upload(upload)

    record = None
    try:
        password_hash = None
        if password:
            password_hash = await run_in_threadpool(hash_password, password)

        record = await run_in_threadpool(
            _create_record, session, storage_path, original_name, password_hash
        )
        link = qrcodes.share_link(record.id)
        await run_in_threadpool(qrcodes.write_qr_code, record.id, link)
    except Exception:
        storage_path.unlink(missing_ok=True)
        if record is not None:
            await run_in_threadpool(_discard_record, session, record)
        raise

    logger.info(
        "Shared %s as %s (protected: %s)",
        original_name, record.id, password_hash is not None,
    )
    return ShareCreated(
        id=record.id,
        access_code=record.access_code,
        link=link,
        qr_code_url=qrcodes.qr_code_url(record.id),
        max_downloads=get_settings().MAX_DOWNLOADS,
    )
