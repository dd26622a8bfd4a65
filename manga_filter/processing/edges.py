from __future__ import annotations

import math

from .raster import CHANNELS, RasterBuffer

SOBEL_X = (
    (-1, 0, 1),
    (-2, 0, 2),
    (-1, 0, 1),
)

SOBEL_Y = (
    (-1, -2, -1),
    (0, 0, 0),
    (1, 2, 1),
)

EDGE = (0, 0, 0, 255)
NON_EDGE = (255, 255, 255, 255)


def gradient_magnitude(gray: RasterBuffer, x: int, y: int) -> float:
    """Sobel gradient magnitude of the R channel around an interior pixel."""

    src = gray.pixels
    width = gray.width
    gx = 0
    gy = 0
    for ky in range(-1, 2):
        row = (y + ky) * width
        for kx in range(-1, 2):
            value = src[(row + x + kx) * CHANNELS]
            gx += value * SOBEL_X[ky + 1][kx + 1]
            gy += value * SOBEL_Y[ky + 1][kx + 1]
    return math.sqrt(gx * gx + gy * gy)


def detect_edges(gray: RasterBuffer, edge_threshold: float) -> RasterBuffer:
    """Binary edge mask of a grayscale buffer.

    Interior pixels whose gradient magnitude is strictly above
    ``edge_threshold`` become opaque black, the rest opaque white. The
    one-pixel frame is never computed and stays transparent black
    ``(0, 0, 0, 0)``, so compositing treats it like an edge.
    """

    width, height = gray.size
    out = bytearray(width * height * CHANNELS)
    for y in range(1, height - 1):
        for x in range(1, width - 1):
            index = (y * width + x) * CHANNELS
            magnitude = gradient_magnitude(gray, x, y)
            out[index : index + CHANNELS] = bytes(EDGE if magnitude > edge_threshold else NON_EDGE)
    return RasterBuffer(width, height, bytes(out))
