"""Manga-style raster stylization stages and the pipeline that sequences them."""

from .codec import decode_data_url, decode_image, encode_data_url, encode_png
from .compose import composite_edges
from .edges import detect_edges
from .grayscale import to_grayscale
from .pipeline import PIPELINE, MangaPipeline, PipelineConfig, render
from .raster import RasterBuffer
from .shading import cell_shade
from .tones import DEFAULT_TONE_LEVELS, ToneLevel, build_tone_levels, quantize_tones

__all__ = [
    "decode_data_url",
    "decode_image",
    "encode_data_url",
    "encode_png",
    "composite_edges",
    "detect_edges",
    "to_grayscale",
    "PIPELINE",
    "MangaPipeline",
    "PipelineConfig",
    "render",
    "RasterBuffer",
    "cell_shade",
    "DEFAULT_TONE_LEVELS",
    "ToneLevel",
    "build_tone_levels",
    "quantize_tones",
]
