"""
Define application startup and shutdown procedures
"""

import re
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from core.config import get_settings
from core.db import create_db_and_tables, get_engine
from core.logger import logger


def _log_setting(key: str, value):
    """Log a setting, masking sensitive values like passwords and secrets"""
    if ("PASSWORD" in key or "SECRET" in key) and value is not None:
        logger.info("  %s: %s", key, "*****")
    elif "SQLALCHEMY_DATABASE_URI" in key and value is not None:
        # Mask password in database URI if present
        masked_value = re.sub(r"://(.*?):(.*?)@", r"://\1:*****@", value)
        logger.info("  %s: %s", key, masked_value)
    else:
        logger.info("  %s: %s", key, value)


def check_database():
    """
    Make sure the database answers before serving traffic.

    Raises:
        RuntimeError: if the database cannot be reached
    """
    try:
        logger.debug("Checking database connection")
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.debug("Checking database connection...OK")
    except SQLAlchemyError as e:
        logger.error("Checking database connection...FAILED: %s", e)
        raise RuntimeError(
            f"Cannot start application: database unavailable - {e}"
        ) from e


# Handle startup/shutdown tasks
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("In lifespan...starting up")

    settings = get_settings()

    logger.info("Configuration Settings:")
    # Computed fields first (they don't appear in vars())
    computed_fields = {
        "SQLALCHEMY_DATABASE_URI": settings.SQLALCHEMY_DATABASE_URI,
        "PUBLIC_BASE_URL": settings.PUBLIC_BASE_URL,
        "QR_CODE_DIR": settings.QR_CODE_DIR,
    }
    for key, value in computed_fields.items():
        _log_setting(key, value)
    for key, value in vars(settings).items():
        _log_setting(key, value)

    check_database()

    logger.info("Creating tables...")
    create_db_and_tables()

    for directory in (settings.UPLOAD_DIR, settings.QR_CODE_DIR):
        Path(directory).mkdir(parents=True, exist_ok=True)

    logger.info("In lifespan...yield")
    try:
        yield
    finally:
        # Shutdown
        logger.info("In lifespan...shutting down")
