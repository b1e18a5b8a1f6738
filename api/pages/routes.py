"""
Server rendered pages

HTTP   URI                  Action
----   ---                  ------
GET    /                    Upload form
POST   /upload              Upload a file, show link, QR code and access code
GET    /download            Access code form
POST   /download            Look up an access code and hand over to /file/[code]
GET    /file/[value]        Download by link, QR code or access code
POST   /file/[value]        Download a password protected file
GET    /privacy             Privacy policy
GET    /terms               Terms of use
"""

from pathlib import Path

from fastapi import APIRouter, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from sqlmodel import Session

from core.deps import SessionDep
from core.logger import logger
from api.downloads.models import AdmissionOutcome
from api.downloads import services as download_services
from api.filerecord.services import access_code_exists
from api.uploads import services as upload_services

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

LIMIT_MESSAGE = "This file has reached its maximum download limit."

router = APIRouter(include_in_schema=False)


def _render_index(request: Request, share=None, status_code: int = status.HTTP_200_OK):
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "file_link": share.link if share else None,
            "qr_code_path": share.qr_code_url if share else None,
            "access_code": share.access_code if share else None,
            "max_downloads": share.max_downloads if share else None,
        },
        status_code=status_code,
    )


def _not_found(request: Request) -> Response:
    return templates.TemplateResponse(
        request, "not_found.html", {}, status_code=status.HTTP_404_NOT_FOUND
    )


@router.get("/", response_class=HTMLResponse)
def index(request: Request):
    return _render_index(request)


@router.post("/upload", response_class=HTMLResponse)
async def upload(
    request: Request,
    session: SessionDep,
    file: UploadFile | None = File(None),
    password: str | None = Form(None),
):
    """Upload form target; renders the share details on success."""
    if file is None or not file.filename:
        return PlainTextResponse("No file uploaded", status_code=status.HTTP_400_BAD_REQUEST)
    try:
        share = await upload_services.create_share(
            session=session, upload=file, password=password
        )
    except upload_services.PasswordTooLong as e:
        return PlainTextResponse(str(e), status_code=status.HTTP_400_BAD_REQUEST)
    except upload_services.UploadTooLarge as e:
        return PlainTextResponse(str(e), status_code=status.HTTP_413_CONTENT_TOO_LARGE)
    return _render_index(request, share)


@router.get("/download", response_class=HTMLResponse)
def download_form(request: Request):
    return templates.TemplateResponse(request, "download.html", {"error": None})


@router.post("/download")
def download_by_code(
    request: Request,
    session: SessionDep,
    accessCode: str = Form(""),  # pylint: disable=invalid-name
):
    """
    Access code form target. Known codes continue at /file/[code] so the
    download goes through the same quota and password checks as links.
    """
    code = accessCode.strip()
    if not code or not access_code_exists(session, code):
        return templates.TemplateResponse(
            request, "download.html", {"error": "Invalid access code"}
        )
    return RedirectResponse(
        url=request.url_for("download_file_page", value=code),
        status_code=status.HTTP_303_SEE_OTHER,
    )


def _admission_response(
    request: Request,
    session: Session,
    value: str,
    password: str | None,
) -> Response:
    decision = download_services.admit(session=session, value=value, password=password)

    if decision.outcome is AdmissionOutcome.NOT_FOUND:
        return _not_found(request)

    if decision.outcome is AdmissionOutcome.QUOTA_EXCEEDED:
        return templates.TemplateResponse(
            request, "download_limit.html", {"message": LIMIT_MESSAGE}
        )

    if decision.outcome in (
        AdmissionOutcome.NEEDS_PASSWORD,
        AdmissionOutcome.PASSWORD_REJECTED,
    ):
        return templates.TemplateResponse(
            request,
            "password.html",
            {
                "file_value": value,
                "error": decision.outcome is AdmissionOutcome.PASSWORD_REJECTED,
            },
        )

    response = download_services.file_response(decision.record)
    if response is None:
        logger.error("Granted download of %s could not be served", decision.record.id)
        return _not_found(request)
    return response


@router.get("/file/{value}", name="download_file_page")
def download_file_page(request: Request, session: SessionDep, value: str):
    return _admission_response(request, session, value, password=None)


@router.post("/file/{value}")
def download_protected_file(
    request: Request,
    session: SessionDep,
    value: str,
    password: str = Form(""),
):
    return _admission_response(request, session, value, password=password)


@router.get("/privacy", response_class=HTMLResponse)
def privacy(request: Request):
    return templates.TemplateResponse(request, "privacy.html", {})


@router.get("/terms", response_class=HTMLResponse)
def terms(request: Request):
    return templates.TemplateResponse(request, "terms.html", {})
