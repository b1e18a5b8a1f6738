"""
FileRecord Models - one row per shared file.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field
from pydantic import ConfigDict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Database Tables
# ============================================================================


class FileRecord(SQLModel, table=True):
    """
    Metadata for an uploaded blob stored on the local filesystem.

    Only download_count (and its updated_at stamp) changes after creation,
    and only through services.try_consume_slot.
    """
    __tablename__ = "filerecord"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    storage_path: str = Field(max_length=1024, nullable=False)
    original_name: str = Field(max_length=255, nullable=False)
    password_hash: str | None = Field(default=None, max_length=255)
    access_code: str = Field(max_length=64, index=True, unique=True, nullable=False)
    download_count: int = Field(default=0, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_protected(self) -> bool:
        """True when a password is required to download"""
        return self.password_hash is not None


# ============================================================================
# Request Models
# ============================================================================


class FileRecordCreate(SQLModel):
    """Data needed to persist a new file record."""
    storage_path: str
    original_name: str
    access_code: str
    password_hash: str | None = None

    model_config = ConfigDict(extra="forbid")


# ============================================================================
# Identity resolution
# ============================================================================


@dataclass(frozen=True)
class ById:
    """Look a record up by its internal UUID."""
    record_id: uuid.UUID


@dataclass(frozen=True)
class ByAccessCode:
    """Look a record up by its public access code."""
    access_code: str


Identity = ById | ByAccessCode
