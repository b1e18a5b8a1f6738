"""
Share links and QR code images
"""
import uuid
from pathlib import Path

import qrcode

from core.config import get_settings

QR_URL_PREFIX = "/qr"


def share_link(record_id: uuid.UUID) -> str:
    """Public download link for a record"""
    return f"{get_settings().PUBLIC_BASE_URL}/file/{record_id}"


def qr_code_filename(record_id: uuid.UUID) -> str:
    return f"qr-{record_id}.png"


def qr_code_url(record_id: uuid.UUID) -> str:
    """Path the QR image is served under"""
    return f"{QR_URL_PREFIX}/{qr_code_filename(record_id)}"


def write_qr_code(record_id: uuid.UUID, link: str) -> Path:
    """
    Render `link` as a PNG QR code into QR_CODE_DIR.

    Returns:
        Path of the written image
    """
    qr_dir = Path(get_settings().QR_CODE_DIR)
    qr_dir.mkdir(parents=True, exist_ok=True)

    qr = qrcode.QRCode(
        version=None,  # Auto-determine version based on data
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(link)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    target = qr_dir / qr_code_filename(record_id)
    img.save(target)
    return target
