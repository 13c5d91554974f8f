import base64
import binascii
import logging
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from services.errors import ConversionError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/webp"})

IMAGE_MIME_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-jpg": "image/jpeg",
    "image/x-jpeg": "image/jpeg",
    "image/jfif": "image/jpeg",
    "image/x-png": "image/png",
    "image/apng": "image/png",
    "image/x-webp": "image/webp",
}


def normalize_image_mime_type(claimed_mime_type: Optional[str]) -> str:
    mime_type = (claimed_mime_type or "").strip()
    if not mime_type:
        return ""

    # Some clients/proxies send parameters or comma-joined values.
    if "," in mime_type:
        mime_type = mime_type.split(",", 1)[0].strip()
    if ";" in mime_type:
        mime_type = mime_type.split(";", 1)[0].strip()

    mime_type = mime_type.strip("\"'").strip().lower()
    return IMAGE_MIME_ALIASES.get(mime_type, mime_type)


def sniff_image_mime_type(content: bytes) -> Optional[str]:
    """
    Best-effort MIME sniffing by magic bytes.

    Returns normalized mime_type ("image/png", "image/jpeg", "image/webp") or None.
    """
    if not content:
        return None
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if len(content) >= 12 and content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    return None


def encode_image_base64(content: bytes) -> str:
    """Encode raw image bytes without a data-URL prefix."""
    if not isinstance(content, (bytes, bytearray, memoryview)):
        raise ConversionError("Image payload must be bytes")
    if len(content) == 0:
        raise ConversionError("Image payload is empty")
    return base64.b64encode(bytes(content)).decode("ascii")


def decode_image_base64(data: str) -> bytes:
    """Decode base64 image data, tolerating a ``data:image/...;base64,`` prefix."""
    payload = (data or "").strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConversionError(f"Invalid base64 image data: {e}")


def read_image_dimensions(content: bytes) -> Optional[tuple[int, int]]:
    """Return (width, height) from the image header, or None if unreadable."""
    if not content:
        return None
    try:
        with Image.open(BytesIO(content)) as image:
            width, height = image.size
    except (UnidentifiedImageError, OSError, ValueError):
        logger.debug("Could not read image dimensions (%d bytes)", len(content))
        return None
    if width <= 0 or height <= 0:
        return None
    return width, height
