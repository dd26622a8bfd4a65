from __future__ import annotations

import base64
import binascii
import io
import logging
import os
from typing import Tuple, Union

from PIL import Image

from ..errors import InvalidInput
from .raster import RasterBuffer

logger = logging.getLogger(__name__)

ImageSource = Union[RasterBuffer, Image.Image, bytes, bytearray, memoryview, str, "os.PathLike[str]"]

_DATA_URL_PREFIX = "data:image/png;base64,"


def _open(source: ImageSource) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        img = Image.open(io.BytesIO(bytes(source)))
    elif isinstance(source, (str, os.PathLike)):
        img = Image.open(source)
    else:
        raise InvalidInput(f"Unsupported image source: {type(source).__name__}")
    img.load()
    return img


def decode_image(source: ImageSource, target_size: Tuple[int, int] | None = None) -> RasterBuffer:
    """Turn any supported image source into an RGBA raster.

    ``target_size`` scales the image onto a fixed ``(width, height)`` canvas;
    ``None`` keeps the native size.
    """

    if isinstance(source, RasterBuffer) and (target_size is None or source.size == target_size):
        return source

    try:
        img = source.to_image() if isinstance(source, RasterBuffer) else _open(source)
        if target_size is not None and img.size != target_size:
            img = img.convert("RGBA").resize(target_size, Image.BILINEAR)
        raster = RasterBuffer.from_image(img)
    except InvalidInput:
        raise
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("Could not decode input image: %s", exc)
        raise InvalidInput(f"Could not decode image: {exc}") from exc

    if not raster.width or not raster.height:
        raise InvalidInput("Decoded image is empty")
    return raster


def encode_png(raster: RasterBuffer) -> bytes:
    buffer = io.BytesIO()
    raster.to_image().save(buffer, "PNG", optimize=True)
    return buffer.getvalue()


def decode_data_url(text: str) -> bytes:
    """Accept ``data:image/...;base64,...`` strings or bare base64."""

    payload = text.split(",", 1)[1] if text.startswith("data:") else text
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInput(f"Invalid base64 image data: {exc}") from exc


def encode_data_url(png: bytes) -> str:
    return _DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")
