"""QR helpers: render the check-in poster code and read a photographed one."""
from __future__ import annotations

import io
from typing import Optional
from urllib.parse import urlparse

import qrcode
from PIL import Image, UnidentifiedImageError
from pyzbar.pyzbar import decode as pyzbar_decode

from ..core.constants import CHECKIN_PATH
from ..core.exceptions import ValidationError

INVALID_QR = "Invalid check-in QR code"


def checkin_url(app_url: str) -> str:
    return f"{app_url.rstrip('/')}{CHECKIN_PATH}"


def render_png(content: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(content)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_image(data: bytes) -> Optional[str]:
    """First QR payload found in the image, or None."""
    try:
        img = Image.open(io.BytesIO(data)).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Could not read the uploaded image")

    decoded = pyzbar_decode(img)
    if not decoded:
        return None
    return decoded[0].data.decode("utf-8", errors="replace").strip()


def validate_checkin_url(scanned: str, app_url: str) -> None:
    """Accept only this portal's own check-in page (absolute or relative)."""
    parsed = urlparse(scanned or "")
    if parsed.scheme or parsed.netloc:
        expected = urlparse(app_url)
        if parsed.scheme not in ("http", "https") or (parsed.scheme, parsed.netloc) != (expected.scheme, expected.netloc):
            raise ValidationError(INVALID_QR)
    if parsed.path.rstrip("/") != CHECKIN_PATH:
        raise ValidationError(INVALID_QR)
