from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from PIL import Image

from ..errors import InternalInvariant

CHANNELS = 4

Pixel = Tuple[int, int, int, int]


@dataclass(frozen=True)
class RasterBuffer:
    """Fixed-size RGBA8 pixel container passed between stages.

    ``pixels`` holds ``width * height * 4`` bytes, RGBA interleaved, row-major.
    Buffers are never modified after construction; every stage allocates a
    fresh one for its output.
    """

    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.pixels, bytes):
            object.__setattr__(self, "pixels", bytes(self.pixels))
        if self.width < 0 or self.height < 0:
            raise InternalInvariant(f"negative raster size {self.width}x{self.height}")
        expected = self.width * self.height * CHANNELS
        if len(self.pixels) != expected:
            raise InternalInvariant(
                f"raster {self.width}x{self.height} needs {expected} bytes, got {len(self.pixels)}"
            )

    @classmethod
    def blank(cls, width: int, height: int) -> "RasterBuffer":
        return cls(width, height, bytes(width * height * CHANNELS))

    @classmethod
    def filled(cls, width: int, height: int, rgba: Pixel) -> "RasterBuffer":
        return cls(width, height, bytes(rgba) * (width * height))

    @classmethod
    def from_image(cls, img: Image.Image) -> "RasterBuffer":
        rgba = img if img.mode == "RGBA" else img.convert("RGBA")
        width, height = rgba.size
        return cls(width, height, rgba.tobytes())

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", self.size, self.pixels)

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def pixel(self, x: int, y: int) -> Pixel:
        index = (y * self.width + x) * CHANNELS
        r, g, b, a = self.pixels[index : index + CHANNELS]
        return r, g, b, a


def require_same_size(first: RasterBuffer, second: RasterBuffer) -> None:
    if first.size != second.size:
        raise InternalInvariant(
            f"raster size mismatch: {first.width}x{first.height} vs {second.width}x{second.height}"
        )


def apply_gray_lut(buffer: RasterBuffer, lut: Sequence[int]) -> RasterBuffer:
    """Map the gray level held in R through a 256-entry table into R, G and B.

    Alpha is carried over untouched.
    """

    if len(lut) != 256:
        raise InternalInvariant(f"lookup table needs 256 entries, got {len(lut)}")
    if not buffer.width or not buffer.height:
        return RasterBuffer.blank(buffer.width, buffer.height)
    red, _, _, alpha = buffer.to_image().split()
    mapped = red.point(list(lut))
    return RasterBuffer.from_image(Image.merge("RGBA", (mapped, mapped, mapped, alpha)))
