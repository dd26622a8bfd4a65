from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Tuple

from ..config import SETTINGS, STYLE_PRESETS, ServiceSettings
from ..errors import InvalidConfig
from .codec import ImageSource, decode_image, encode_png
from .compose import composite_edges
from .edges import detect_edges
from .grayscale import to_grayscale
from .raster import RasterBuffer
from .shading import cell_shade
from .tones import DEFAULT_TONE_LEVELS, ToneLevel, ToneTable, build_tone_levels, quantize_tones

logger = logging.getLogger(__name__)

# Wire (camelCase) and Python spellings of every recognized option.
_OPTION_NAMES = {
    "edgeThreshold": "edge_threshold",
    "edge_threshold": "edge_threshold",
    "shadowStrength": "shadow_strength",
    "shadow_strength": "shadow_strength",
    "toneLevels": "tone_levels",
    "tone_levels": "tone_levels",
    "toneSteps": "tone_steps",
    "tone_steps": "tone_steps",
    "preset": "preset",
}


def _finite_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("Expected a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError("Expected a number") from None
    if not math.isfinite(number):
        raise ValueError("Must be finite")
    return number


def _byte(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{name} must be an integer")
        value = int(value)
    if not 0 <= value <= 255:
        raise ValueError(f"{name} must be within [0, 255]")
    return value


def _tone_level(raw: Any) -> ToneLevel:
    if isinstance(raw, ToneLevel):
        fields = (raw.min, raw.max, raw.value)
    elif isinstance(raw, Mapping):
        missing = [key for key in ("min", "max", "value") if key not in raw]
        if missing:
            raise ValueError(f"missing {', '.join(missing)}")
        fields = (raw["min"], raw["max"], raw["value"])
    elif isinstance(raw, (list, tuple)) and len(raw) == 3:
        fields = tuple(raw)
    else:
        raise ValueError("Expected {min, max, value}")

    low, high, value = (_byte(field, name) for field, name in zip(fields, ("min", "max", "value")))
    if low > high:
        raise ValueError(f"min {low} is greater than max {high}")
    return ToneLevel(low, high, value)


def _tone_table(raw: Any) -> ToneTable:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
        raise ValueError("Expected a list of tone levels")
    levels = []
    for position, item in enumerate(raw):
        try:
            levels.append(_tone_level(item))
        except ValueError as exc:
            raise ValueError(f"level {position}: {exc}") from None
    return tuple(levels)


def _tone_steps(raw: Any) -> ToneTable:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError("Expected an integer")
    return build_tone_levels(raw)


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable parameter set read once per ``process`` call."""

    edge_threshold: float = 50.0
    shadow_strength: float = 1.5
    tone_levels: ToneTable = DEFAULT_TONE_LEVELS

    @classmethod
    def from_settings(cls, settings: ServiceSettings = SETTINGS) -> "PipelineConfig":
        return cls().merged(
            {
                "edgeThreshold": settings.edge_threshold,
                "shadowStrength": settings.shadow_strength,
                "toneSteps": settings.tone_steps,
            }
        )

    def merged(self, options: Mapping[str, Any]) -> "PipelineConfig":
        """Return a copy with ``options`` applied, or raise ``InvalidConfig``.

        Absent keys keep their current value. A ``preset`` sets the edge
        threshold and shadow strength first so explicit keys in the same call
        override it; ``toneLevels`` takes precedence over ``toneSteps``.
        """

        if not isinstance(options, Mapping):
            raise InvalidConfig({"options": "Expected an object"})

        supplied: Dict[str, Tuple[str, Any]] = {}
        for key, value in options.items():
            name = _OPTION_NAMES.get(key)
            if name is None:
                logger.warning("Ignoring unknown pipeline option %r", key)
                continue
            supplied[name] = (key, value)

        errors: Dict[str, str] = {}
        updates: Dict[str, Any] = {}

        if "preset" in supplied:
            key, preset = supplied["preset"]
            if not isinstance(preset, str) or preset not in STYLE_PRESETS:
                errors[key] = f"Unknown preset {preset!r}"
            else:
                updates["edge_threshold"], updates["shadow_strength"] = STYLE_PRESETS[preset]

        if "edge_threshold" in supplied:
            key, raw = supplied["edge_threshold"]
            try:
                threshold = _finite_float(raw)
                if threshold <= 0:
                    raise ValueError("Must be greater than 0")
                updates["edge_threshold"] = threshold
            except ValueError as exc:
                errors[key] = str(exc)

        if "shadow_strength" in supplied:
            key, raw = supplied["shadow_strength"]
            try:
                strength = _finite_float(raw)
                if strength < 0:
                    raise ValueError("Must be 0 or greater")
                updates["shadow_strength"] = strength
            except ValueError as exc:
                errors[key] = str(exc)

        if "tone_levels" in supplied:
            key, raw = supplied["tone_levels"]
            try:
                updates["tone_levels"] = _tone_table(raw)
            except ValueError as exc:
                errors[key] = str(exc)
        elif "tone_steps" in supplied:
            key, raw = supplied["tone_steps"]
            try:
                updates["tone_levels"] = _tone_steps(raw)
            except ValueError as exc:
                errors[key] = str(exc)

        if errors:
            raise InvalidConfig(errors)
        return replace(self, **updates)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "edgeThreshold": self.edge_threshold,
            "shadowStrength": self.shadow_strength,
            "toneLevels": [
                {"min": level.min, "max": level.max, "value": level.value}
                for level in self.tone_levels
            ],
        }


def render(raster: RasterBuffer, config: PipelineConfig) -> RasterBuffer:
    gray = to_grayscale(raster)
    edges = detect_edges(gray, config.edge_threshold)
    shaded = cell_shade(quantize_tones(gray, config.tone_levels), config.shadow_strength)
    return composite_edges(edges, shaded)


class MangaPipeline:
    def __init__(
        self,
        config: PipelineConfig | None = None,
        target_size: Tuple[int, int] | None = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._target_size = target_size

    @classmethod
    def from_settings(cls, settings: ServiceSettings = SETTINGS) -> "MangaPipeline":
        return cls(PipelineConfig.from_settings(settings), target_size=settings.target_size)

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def configure(self, options: Mapping[str, Any]) -> PipelineConfig:
        # The new config is built in full before it replaces the old one.
        updated = self._config.merged(options)
        self._config = updated
        logger.info(
            "Pipeline configured: edge_threshold=%s shadow_strength=%s tone_levels=%d",
            updated.edge_threshold,
            updated.shadow_strength,
            len(updated.tone_levels),
        )
        return updated

    def decode(self, image: ImageSource) -> RasterBuffer:
        return decode_image(image, self._target_size)

    def process(self, image: ImageSource, config: PipelineConfig | None = None) -> RasterBuffer:
        snapshot = config or self._config
        raster = self.decode(image)
        started = time.perf_counter()
        result = render(raster, snapshot)
        logger.debug(
            "Rendered %dx%d in %.1f ms",
            raster.width,
            raster.height,
            (time.perf_counter() - started) * 1000,
        )
        return result

    def render_png(self, image: ImageSource, config: PipelineConfig | None = None) -> bytes:
        return encode_png(self.process(image, config))

    def edge_mask(self, image: ImageSource, config: PipelineConfig | None = None) -> RasterBuffer:
        snapshot = config or self._config
        return detect_edges(to_grayscale(self.decode(image)), snapshot.edge_threshold)


PIPELINE = MangaPipeline.from_settings()
