"""
Services for download admission
"""
from pathlib import Path

from fastapi.responses import FileResponse
from sqlmodel import Session

from api.downloads.models import AdmissionDecision, AdmissionOutcome
from api.filerecord import services as store
from api.filerecord.models import FileRecord
from api.filerecord.services import NotFound, QuotaExceeded
from core.config import get_settings
from core.logger import logger
from core.security import verify_password


def admit(session: Session, value: str, password: str | None = None) -> AdmissionDecision:
    """
    Decide whether a retrieval request may download a file.

    Steps, in order:
      1. resolve value (internal id first, then access code)
      2. short-circuit records that are already exhausted
      3. unprotected records go straight to slot consumption
      4. protected records without a password ask for one
      5. otherwise verify the password, then consume a slot

    A slot is only consumed immediately before granting, so a wrong
    password never costs a download. An empty password counts as none.

    Args:
        session: Database session
        value: Access code or internal id from the request
        password: Password submitted with the request, if any

    Returns:
        AdmissionDecision with the outcome and the resolved record
    """
    try:
        record = store.find_by_identity(session, value)
    except NotFound:
        logger.debug("Download request for unknown identity")
        return AdmissionDecision(AdmissionOutcome.NOT_FOUND)

    if record.download_count >= get_settings().MAX_DOWNLOADS:
        logger.info("File %s has reached its download limit", record.id)
        return AdmissionDecision(AdmissionOutcome.QUOTA_EXCEEDED, record)

    if record.is_protected:
        if not password:
            return AdmissionDecision(AdmissionOutcome.NEEDS_PASSWORD, record)
        if not verify_password(password, record.password_hash):
            logger.info("Wrong password for file %s", record.id)
            return AdmissionDecision(AdmissionOutcome.PASSWORD_REJECTED, record)

    try:
        record = store.try_consume_slot(session, record.id)
    except QuotaExceeded:
        logger.info("File %s lost the race for its last download slot", record.id)
        return AdmissionDecision(AdmissionOutcome.QUOTA_EXCEEDED, record)

    logger.info(
        "Granted download %d of file %s", record.download_count, record.id
    )
    return AdmissionDecision(AdmissionOutcome.GRANTED, record)


def file_response(record: FileRecord) -> FileResponse | None:
    """
    Stream a granted record's blob with its original name as the filename.

    Returns None when the blob is gone from disk; the slot stays consumed.
    """
    path = Path(record.storage_path)
    if not path.is_file():
        logger.error("Blob for file %s is missing at %s", record.id, path)
        return None
    return FileResponse(
        path=path,
        filename=record.original_name,
        media_type="application/octet-stream",
    )
