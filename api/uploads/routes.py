"""
Routes/endpoints for the Uploads API

HTTP   URI                  Action
----   ---                  ------
POST   /api/v1/uploads      Upload a file and get its access code, link and QR code
"""

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from core.deps import SessionDep
from api.uploads.models import ShareCreated
from api.uploads import services

router = APIRouter(prefix="/uploads", tags=["Upload Endpoints"])


@router.post(
    "",
    response_model=ShareCreated,
    tags=["Upload Endpoints"],
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    session: SessionDep,
    file: UploadFile | None = File(None),
    password: str | None = Form(None),
) -> ShareCreated:
    """
    Upload a file, optionally protected by a password.
    """
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded",
        )
    try:
        return await services.create_share(
            session=session, upload=file, password=password
        )
    except services.PasswordTooLong as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except services.UploadTooLarge as e:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=str(e),
        ) from e
