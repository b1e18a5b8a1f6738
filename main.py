"""
Main entrypoint for the FastAPI server
"""

from pathlib import Path
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from core.lifespan import lifespan
from core.config import get_settings
from core.logger import logger

from api.downloads.routes import router as downloads_router
from api.filerecord.services import AccessCodeExhausted
from api.pages.routes import router as pages_router
from api.uploads.routes import router as uploads_router
from api.uploads.qrcodes import QR_URL_PREFIX


# Customize route id's
# Helpful for creating sensible names in the client
def custom_generate_unique_id(route: APIRoute):
    """ Generate unique route IDs based on route name """
    return f"{route.name}"  # these must be unique


# Create schema & router
app = FastAPI(
    title="QuickDrop",
    lifespan=lifespan,
    generate_unique_id_function=custom_generate_unique_id
)

# CORS settings to allow client-server communication
# Set with env variable
origins = [get_settings().client_origin] if get_settings().client_origin else []

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# A failed request leaves no partial state behind, so the client only
# needs to know it can try again.
@app.exception_handler(SQLAlchemyError)
@app.exception_handler(AccessCodeExhausted)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception("Request to %s failed: %s", request.url.path, exc)
    return PlainTextResponse(
        "Server error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


# Generated QR codes only; uploaded files are served through admission
qr_dir = Path(get_settings().QR_CODE_DIR)
qr_dir.mkdir(parents=True, exist_ok=True)
app.mount(QR_URL_PREFIX, StaticFiles(directory=qr_dir), name="qr-codes")

# REST routers
# Add each api/feature folder here
API_PREFIX = "/api/v1"

app.include_router(uploads_router, prefix=API_PREFIX)
app.include_router(downloads_router, prefix=API_PREFIX)


# Health check endpoint for monitoring
@app.get("/api/health", tags=["health"])
def health_check():
    return {"status": "ok", "message": "QuickDrop is running"}


# HTML pages
app.include_router(pages_router)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=get_settings().PORT)
