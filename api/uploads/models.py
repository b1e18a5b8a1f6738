"""
Models for the Uploads API
"""

import uuid
from sqlmodel import SQLModel
from pydantic import ConfigDict


class ShareCreated(SQLModel):
    """
    Everything a sender needs to pass a file on
    """
    id: uuid.UUID
    access_code: str
    link: str
    qr_code_url: str
    max_downloads: int

    model_config = ConfigDict(from_attributes=True)
