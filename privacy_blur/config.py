"""Privacy overlay configuration with defaults, loadable from YAML."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

log = logging.getLogger(__name__)

# camelCase spellings accepted alongside the field names
_ALIASES = {
    "blurRadius": "blur_radius",
    "duration": "fade_duration_ms",
    "fadeDurationMs": "fade_duration_ms",
    "downsampleFactor": "downsample_factor",
    "solidColor": "solid_color",
}


@dataclass(frozen=True, slots=True)
class OverlayConfig:
    """Immutable overlay settings; replaced wholesale by ``updated``."""

    enabled: bool = True
    blur_radius: int = 20  # device-independent units
    fade_duration_ms: int = 200
    downsample_factor: int = 4
    solid_color: tuple[int, int, int, int] = (255, 255, 255, 255)

    def __post_init__(self) -> None:
        # Negative values clamp to 0, the downsample factor to 1.
        object.__setattr__(self, "enabled", bool(self.enabled))
        object.__setattr__(self, "blur_radius", max(0, int(self.blur_radius)))
        object.__setattr__(self, "fade_duration_ms", max(0, int(self.fade_duration_ms)))
        object.__setattr__(self, "downsample_factor", max(1, int(self.downsample_factor)))
        object.__setattr__(self, "solid_color", _normalize_color(self.solid_color))

    def updated(self, changes: Mapping[str, Any] | None = None, **kwargs: Any) -> OverlayConfig:
        """Return a copy with the given fields replaced.

        ``None`` values and absent keys leave fields unchanged. Unknown keys
        are logged and ignored.
        """
        merged: dict[str, Any] = {}
        for key, value in {**(changes or {}), **kwargs}.items():
            name = _ALIASES.get(key, key)
            if name not in _OVERLAY_FIELDS:
                log.warning("overlay config: ignoring unknown key %r", key)
                continue
            if value is None:
                continue
            merged[name] = value
        if not merged:
            return self
        return dataclasses.replace(self, **merged)


_OVERLAY_FIELDS = frozenset(f.name for f in dataclasses.fields(OverlayConfig))


def _normalize_color(value: Any) -> tuple[int, int, int, int]:
    channels = [max(0, min(255, int(c))) for c in value]
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4:
        raise ValueError(f"solid_color needs 3 or 4 channels, got {len(channels)}")
    return (channels[0], channels[1], channels[2], channels[3])


@dataclass
class BlurConfig:
    backend: str = "auto"  # "auto" | "native" | "software"
    software_radius_scale: float = 0.5
    native_radius_scale: float = 1.0
    native_saturation: float = 0.92
    offload: bool = True  # run blur on a worker thread when a loop is running


@dataclass
class AnimationConfig:
    tick_hz: int = 60
    easing: str = "ease_in_out"  # "ease_in_out" | "linear"


@dataclass
class PrivacyBlurConfig:
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    blur: BlurConfig = field(default_factory=BlurConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)


def load_config(path: str | Path | None = None) -> PrivacyBlurConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        return PrivacyBlurConfig()

    path = Path(path)
    if not path.exists():
        log.warning("config file not found: %s, using defaults", path)
        return PrivacyBlurConfig()

    try:
        import yaml  # type: ignore[import-untyped]

        with open(path) as f:
            raw = yaml.safe_load(f) or {}

        cfg = PrivacyBlurConfig()
        if "overlay" in raw:
            cfg.overlay = cfg.overlay.updated(raw["overlay"])
        for section_name in ("blur", "animation"):
            if section_name in raw:
                section = getattr(cfg, section_name)
                for k, v in raw[section_name].items():
                    if not hasattr(section, k):
                        log.warning("config: ignoring unknown key %s.%s", section_name, k)
                        continue
                    setattr(section, k, v)

        log.info("config loaded from %s", path)
        return cfg
    except Exception as e:
        log.warning("config load error: %s, using defaults", e)
        return PrivacyBlurConfig()
