"""Infrastructure helpers for fetching sources and caching rendered output."""

from .cache import CACHE, ResponseCache, last_good_png, remember_last_good, render_key
from .network import FETCHER, SourceFetcher
from .responses import send_png

__all__ = [
    "CACHE",
    "ResponseCache",
    "last_good_png",
    "remember_last_good",
    "render_key",
    "FETCHER",
    "SourceFetcher",
    "send_png",
]
