"""
Models for the Downloads API
"""

from dataclasses import dataclass
from enum import Enum
from sqlmodel import SQLModel

from api.filerecord.models import FileRecord


class AdmissionOutcome(str, Enum):
    """Result of a single retrieval attempt."""
    GRANTED = "GRANTED"
    NOT_FOUND = "NOT_FOUND"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    NEEDS_PASSWORD = "NEEDS_PASSWORD"
    PASSWORD_REJECTED = "PASSWORD_REJECTED"


@dataclass(frozen=True)
class AdmissionDecision:
    """
    Outcome of admit() plus the resolved record, if any.

    For GRANTED the record already reflects the consumed slot.
    """
    outcome: AdmissionOutcome
    record: FileRecord | None = None

    @property
    def granted(self) -> bool:
        return self.outcome is AdmissionOutcome.GRANTED


class DownloadRequest(SQLModel):
    """Optional body for the JSON download endpoint."""
    password: str | None = None
