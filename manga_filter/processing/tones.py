from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..errors import InvalidConfig
from .raster import RasterBuffer, apply_gray_lut


@dataclass(frozen=True)
class ToneLevel:
    """Inclusive gray range ``[min, max]`` collapsed onto ``value``."""

    min: int
    max: int
    value: int

    def __post_init__(self) -> None:
        for name in ("min", "max", "value"):
            field = getattr(self, name)
            if isinstance(field, bool) or not isinstance(field, int) or not 0 <= field <= 255:
                raise InvalidConfig({"toneLevel": f"{name} must be an integer within [0, 255]"})
        if self.min > self.max:
            raise InvalidConfig({"toneLevel": f"min {self.min} is greater than max {self.max}"})

    def matches(self, gray: int) -> bool:
        return self.min <= gray <= self.max


ToneTable = Tuple[ToneLevel, ...]


def build_tone_levels(steps: int) -> ToneTable:
    """Split ``[0, 255]`` evenly into ``steps`` buckets spread from black to white."""

    if steps < 2 or steps > 256:
        raise ValueError(f"tone steps must be between 2 and 256, got {steps}")
    levels: List[ToneLevel] = []
    for index in range(steps):
        low = index * 256 // steps
        high = (index + 1) * 256 // steps - 1
        value = round(index * 255 / (steps - 1))
        levels.append(ToneLevel(low, high, value))
    return tuple(levels)


DEFAULT_TONE_LEVELS: ToneTable = build_tone_levels(4)


def build_tone_lut(tone_levels: Sequence[ToneLevel]) -> List[int]:
    # First matching level wins; grays no level covers pass through.
    lut = []
    for gray in range(256):
        match = next((level for level in tone_levels if level.matches(gray)), None)
        lut.append(match.value if match is not None else gray)
    return lut


def quantize_tones(buffer: RasterBuffer, tone_levels: Sequence[ToneLevel]) -> RasterBuffer:
    return apply_gray_lut(buffer, build_tone_lut(tone_levels))
