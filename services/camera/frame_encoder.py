"""Frame encoder service.

Small wrapper around Pillow that turns a live camera frame (an RGB numpy
array) into an encoded still. The frame is drawn onto a surface of the
stream's native size and, for front-facing cameras, mirrored so the still
matches the preview the user saw.

Example:
    encoder = FrameEncoder()
    data, mime = encoder.encode(frame, size=(1280, 720), mirror=True)
"""
from __future__ import annotations

import base64
import io
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageOps

MIME_TYPES = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}


class FrameEncoder:
    """Encode camera frames as JPEG (default), PNG or WEBP.

    Args:
        image_format: Pillow format name.
        quality: Lossy quality for JPEG/WEBP.
    """

    def __init__(self, image_format: str = "JPEG", quality: int = 90):
        image_format = image_format.upper()
        if image_format not in MIME_TYPES:
            raise ValueError(f"Unsupported image format: {image_format}")
        self.image_format = image_format
        self.quality = quality

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self.image_format]

    def render(self, frame: np.ndarray, size: Optional[Tuple[int, int]] = None, mirror: bool = False) -> Image.Image:
        """Draw `frame` on a surface of `size` (width, height)."""
        if frame.dtype != np.uint8:
            frame = np.clip(frame, 0, 255).astype(np.uint8)
        try:
            src = Image.fromarray(frame)
        except Exception as exc:
            raise ValueError("Frame is not a supported pixel array") from exc
        src = src.convert("RGB")

        width, height = size if size and all(size) else src.size
        surface = Image.new("RGB", (width, height))
        if src.size != (width, height):
            src = src.resize((width, height), Image.LANCZOS)
        surface.paste(src, (0, 0))

        if mirror:
            surface = ImageOps.mirror(surface)
        return surface

    def encode(
        self, frame: np.ndarray, size: Optional[Tuple[int, int]] = None, mirror: bool = False
    ) -> Tuple[bytes, str]:
        """Return encoded image bytes and their MIME type."""
        image = self.render(frame, size=size, mirror=mirror)
        out_io = io.BytesIO()
        if self.image_format == "PNG":
            image.save(out_io, format="PNG", optimize=True)
        else:
            image.save(out_io, format=self.image_format, quality=self.quality)
        return out_io.getvalue(), self.mime_type

    def to_data_url(self, data: bytes) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(data).decode('utf-8')}"
