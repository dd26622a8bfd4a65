from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class ServiceSettings:
    source_url: str
    port: int
    timeout: float
    retries: int
    cache_ttl: float
    cache_size: int
    log_level: str
    edge_threshold: float
    shadow_strength: float
    tone_steps: int
    target_width: int
    target_height: int

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        return cls(
            source_url=os.getenv("SOURCE_URL", "http://127.0.0.1:8000/render.png"),
            port=int(os.getenv("PORT", "5600")),
            timeout=float(os.getenv("SOURCE_TIMEOUT", "10.0")),
            retries=int(os.getenv("SOURCE_RETRIES", "2")),
            cache_ttl=float(os.getenv("CACHE_TTL", "30")),
            cache_size=int(os.getenv("CACHE_SIZE", "16")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            edge_threshold=float(os.getenv("EDGE_THR", "50")),
            shadow_strength=float(os.getenv("SHADOW_STRENGTH", "1.5")),
            tone_steps=int(os.getenv("TONE_STEPS", "4")),
            target_width=int(os.getenv("TARGET_WIDTH", "0")),
            target_height=int(os.getenv("TARGET_HEIGHT", "0")),
        )

    @property
    def target_size(self) -> Tuple[int, int] | None:
        if self.target_width > 0 and self.target_height > 0:
            return self.target_width, self.target_height
        return None


SETTINGS = ServiceSettings.from_env()


# (edge threshold, shadow strength)
STYLE_PRESETS: Dict[str, Tuple[float, float]] = {
    "dramatic": (25.0, 2.5),
    "balanced": (50.0, 1.5),
    "gentle": (80.0, 0.8),
    "high_contrast": (35.0, 3.0),
}


def configure_logging() -> logging.Logger:
    logging.basicConfig(level=SETTINGS.log_level)
    return logging.getLogger("manga-filter")
