from __future__ import annotations

import math

from .raster import RasterBuffer


def luminance(r: int, g: int, b: int) -> int:
    """Perceptual brightness, rounded half up and clamped to a byte."""

    value = math.floor(r * 0.299 + g * 0.587 + b * 0.114 + 0.5)
    return min(255, max(0, value))


def to_grayscale(buffer: RasterBuffer) -> RasterBuffer:
    src = buffer.pixels
    out = bytearray(src)
    for index in range(0, len(src), 4):
        gray = luminance(src[index], src[index + 1], src[index + 2])
        out[index] = gray
        out[index + 1] = gray
        out[index + 2] = gray
    return RasterBuffer(buffer.width, buffer.height, bytes(out))
