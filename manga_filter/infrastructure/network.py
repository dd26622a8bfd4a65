from __future__ import annotations

import logging
import time
from typing import Callable

import requests

from ..config import SETTINGS, ServiceSettings
from ..errors import InvalidInput

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]


class SourceFetcher:
    """Downloads source images for the pipeline, retrying with linear back-off."""

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        settings: ServiceSettings = SETTINGS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session_factory = session_factory or requests.Session
        self._settings = settings
        self._sleep = sleep
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": "manga-filter/1.0"})
        return session

    def fetch_bytes(self) -> bytes:
        target_url = self._settings.source_url
        last_exception: Exception | None = None
        for attempt in range(1, self._settings.retries + 2):
            try:
                response = self._session.get(target_url, timeout=self._settings.timeout)
                response.raise_for_status()
                return response.content
            except requests.RequestException as exc:
                last_exception = exc
                logger.warning("Fetch attempt %d for %s failed: %s", attempt, target_url, exc)
                self._sleep(0.4 * attempt)
        raise InvalidInput(f"Could not fetch {target_url}: {last_exception}") from last_exception


FETCHER = SourceFetcher()
