from __future__ import annotations

from typing import Dict, Optional


class MangaFilterError(Exception):
    """Base class for errors raised by the manga filter."""


class InvalidInput(MangaFilterError, ValueError):
    """The input could not be decoded into a raster buffer."""


class InvalidConfig(MangaFilterError, ValueError):
    def __init__(self, errors: Dict[str, str], message: Optional[str] = None) -> None:
        self.errors = dict(errors)
        if message is None:
            message = "; ".join(f"{key}: {reason}" for key, reason in self.errors.items())
        super().__init__(message or "invalid configuration")


class InternalInvariant(MangaFilterError, AssertionError):
    """A stage produced or received a buffer of the wrong size."""
