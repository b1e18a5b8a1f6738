"""
Routes/endpoints for the Downloads API

HTTP   URI                             Action
----   ---                             ------
POST   /api/v1/downloads/[value]       Download a file by access code or id
"""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse
from core.deps import SessionDep
from api.downloads.models import AdmissionOutcome, DownloadRequest
from api.downloads import services

router = APIRouter(prefix="/downloads", tags=["Download Endpoints"])

# Detail messages never say why an identity did not resolve
_REJECTIONS = {
    AdmissionOutcome.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "File not found"),
    AdmissionOutcome.QUOTA_EXCEEDED: (
        status.HTTP_410_GONE,
        "This file has reached its maximum download limit.",
    ),
    AdmissionOutcome.NEEDS_PASSWORD: (
        status.HTTP_401_UNAUTHORIZED,
        "Password required",
    ),
    AdmissionOutcome.PASSWORD_REJECTED: (
        status.HTTP_403_FORBIDDEN,
        "Incorrect password",
    ),
}


@router.post(
    "/{value}",
    response_class=FileResponse,
    tags=["Download Endpoints"],
    responses={
        401: {"description": "Password required"},
        403: {"description": "Incorrect password"},
        404: {"description": "File not found"},
        410: {"description": "Download limit reached"},
    },
)
def download_file(
    session: SessionDep,
    value: str,
    download_in: DownloadRequest | None = None,
) -> FileResponse:
    """
    Download a shared file, consuming one of its download slots.

    `value` is either the access code or the internal id from the share
    link. Password protected files need `password` in the request body.
    """
    password = download_in.password if download_in else None
    decision = services.admit(session=session, value=value, password=password)

    if not decision.granted:
        status_code, detail = _REJECTIONS[decision.outcome]
        raise HTTPException(status_code=status_code, detail=detail)

    response = services.file_response(decision.record)
    if response is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="File not found"
        )
    return response
