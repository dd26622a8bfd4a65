from __future__ import annotations

from typing import List

from .raster import RasterBuffer, apply_gray_lut

SHADOW_CEILING = 128
HIGHLIGHT_FLOOR = 192
HIGHLIGHT_BOOST = 10
SHADOW_SCALE = 0.3


def shade_level(gray: int, shadow_strength: float) -> int:
    # Fractional results round half to even, as a clamped byte store does.
    if gray < SHADOW_CEILING:
        darkened = gray - (SHADOW_CEILING - gray) * shadow_strength * SHADOW_SCALE
        return int(round(min(255.0, max(0.0, darkened))))
    if gray > HIGHLIGHT_FLOOR:
        return min(255, gray + HIGHLIGHT_BOOST)
    return gray


def build_shading_lut(shadow_strength: float) -> List[int]:
    return [shade_level(gray, shadow_strength) for gray in range(256)]


def cell_shade(buffer: RasterBuffer, shadow_strength: float) -> RasterBuffer:
    """Darken shadows and lift highlights of a quantized grayscale buffer."""

    return apply_gray_lut(buffer, build_shading_lut(shadow_strength))
