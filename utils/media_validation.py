"""Validation helpers for uploaded crop images."""

import base64
import binascii
import re

from fastapi import HTTPException, UploadFile

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/bmp",
    "image/heic",
}

MAX_IMAGE_BYTES = 10 * 1024 * 1024

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def ensure_base64_image(raw: bytes) -> str:
    """Return base64 text for an upload, encoding binary input when necessary."""
    try:
        text = raw.decode("ascii").strip()
        base64.b64decode(text, validate=True)
        return text
    except (UnicodeDecodeError, binascii.Error, ValueError):
        return base64.b64encode(raw).decode("ascii")


def normalize_image_payload(image: str) -> str:
    """Validate a base64 image or data URI and return it without whitespace.

    Raises:
        ValueError: If the payload is empty or not valid base64.
    """
    if not isinstance(image, str) or not image.strip():
        raise ValueError("No image provided")
    image = image.strip()
    match = _DATA_URI.match(image)
    data = match.group("data") if match else image
    data = "".join(data.split())
    if match and match.group("mime").lower() not in ALLOWED_IMAGE_TYPES:
        raise ValueError(f"Unsupported image type: {match.group('mime')}")
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Image must be base64-encoded.") from exc
    if not decoded:
        raise ValueError("No image provided")
    if len(decoded) > MAX_IMAGE_BYTES:
        raise ValueError("Image is too large; the limit is 10 MB.")
    return f"data:{match.group('mime')};base64,{data}" if match else data


async def read_image_upload(image_file: UploadFile) -> str:
    """Read a multipart image upload and return it as a data URI."""
    content_type = (image_file.content_type or "").lower().split(";", 1)[0].strip()
    if content_type and content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")
    raw = await image_file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    encoded = ensure_base64_image(raw)
    return f"data:{content_type or 'image/jpeg'};base64,{encoded}"
