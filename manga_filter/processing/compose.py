from __future__ import annotations

from PIL import Image

from .raster import RasterBuffer, require_same_size


def edge_ink_mask(edge_mask: RasterBuffer) -> Image.Image:
    """``L`` mask that is 255 where the edge mask's red channel is 0."""

    red = edge_mask.to_image().getchannel("R")
    return red.point([255] + [0] * 255)


def composite_edges(edge_mask: RasterBuffer, shaded: RasterBuffer) -> RasterBuffer:
    """Ink the shaded buffer black wherever the edge mask's red channel is 0.

    Alpha always comes from ``shaded``.
    """

    require_same_size(edge_mask, shaded)
    if not shaded.width or not shaded.height:
        return RasterBuffer.blank(shaded.width, shaded.height)

    red, green, blue, alpha = shaded.to_image().split()
    rgb = Image.merge("RGB", (red, green, blue))
    rgb.paste((0, 0, 0), mask=edge_ink_mask(edge_mask))
    return RasterBuffer.from_image(Image.merge("RGBA", (*rgb.split(), alpha)))
