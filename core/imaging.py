"""Image payload handling: data URLs and placeholders."""

from __future__ import annotations

import base64
import io
import logging
from urllib.parse import quote

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Pillow format names that differ from their MIME subtype.
MIME_SUBTYPES: dict[str, str] = {
    "JPEG": "jpeg",
    "PNG": "png",
    "WEBP": "webp",
    "GIF": "gif",
    "BMP": "bmp",
}


def detect_format(image_bytes: bytes) -> str:
    """Return the MIME subtype of ``image_bytes`` (``jpeg``, ``png``, ...).

    Raises ``ValueError`` if the payload is empty or not a recognisable image.
    """
    if not image_bytes:
        raise ValueError("Image payload is empty.")
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            fmt = img.format or ""
    except UnidentifiedImageError as exc:
        raise ValueError(f"Image payload is not a recognised image: {exc}") from exc
    return MIME_SUBTYPES.get(fmt, fmt.lower() or "octet-stream")


def to_data_url(image_bytes: bytes, fallback_subtype: str | None = None) -> str:
    """Wrap raw image bytes as a ``data:image/<fmt>;base64,...`` URL."""
    try:
        subtype = detect_format(image_bytes)
    except ValueError:
        if not image_bytes or fallback_subtype is None:
            raise
        logger.warning("Could not sniff image format; assuming image/%s", fallback_subtype)
        subtype = fallback_subtype
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:image/{subtype};base64,{encoded}"


def placeholder_size(aspect_ratio: str, short_side: int = 512) -> str:
    """Return a ``WxH`` size matching ``aspect_ratio`` (e.g. ``16:9`` -> ``910x512``)."""
    width, _, height = aspect_ratio.partition(":")
    try:
        ratio = float(width) / float(height)
    except (ValueError, ZeroDivisionError):
        return f"{short_side}x{short_side}"
    if ratio <= 0:
        return f"{short_side}x{short_side}"
    if ratio >= 1:
        return f"{round(short_side * ratio)}x{short_side}"
    return f"{short_side}x{round(short_side / ratio)}"


def placeholder_url(template: str, word: str, aspect_ratio: str = "1:1") -> str:
    """Fill ``{word}`` (URL-quoted) and ``{size}`` into a placeholder URL template."""
    return (
        template
        .replace("{size}", placeholder_size(aspect_ratio))
        .replace("{word}", quote(word, safe=""))
    )
