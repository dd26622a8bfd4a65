"""Manga-style raster filter: stylization pipeline plus its HTTP service."""

from .app import APP_VERSION, app, create_app
from .errors import InternalInvariant, InvalidConfig, InvalidInput, MangaFilterError
from .processing import MangaPipeline, PipelineConfig, RasterBuffer, ToneLevel
from . import infrastructure, processing

__version__ = APP_VERSION

__all__ = [
    "APP_VERSION",
    "__version__",
    "app",
    "create_app",
    "InternalInvariant",
    "InvalidConfig",
    "InvalidInput",
    "MangaFilterError",
    "MangaPipeline",
    "PipelineConfig",
    "RasterBuffer",
    "ToneLevel",
    "infrastructure",
    "processing",
]
