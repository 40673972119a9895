"""Overlay lifecycle state types.

HIDDEN  → SHOWING  (show: capture, present, fade in)
SHOWING → SHOWN    (fade-in completed)
SHOWING → HIDING   (hide: fade out from the current opacity)
SHOWN   → HIDING   (hide)
HIDING  → HIDDEN   (fade-out completed)
HIDING  → SHOWING  (show: fade back in)
Any     → HIDDEN   (teardown / disable)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ── Enums ────────────────────────────────────────────────────────


class OverlayPhase(str, Enum):
    HIDDEN = "HIDDEN"
    SHOWING = "SHOWING"
    SHOWN = "SHOWN"
    HIDING = "HIDING"


VISIBLE_PHASES = frozenset({OverlayPhase.SHOWING, OverlayPhase.SHOWN, OverlayPhase.HIDING})


class Presentation(str, Enum):
    NONE = "none"
    BLURRED = "blurred"
    SOLID = "solid"


# ── Value types ──────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class BlurParameters:
    radius: int = 0
    downsample_factor: int = 1

    def __post_init__(self) -> None:
        if self.radius < 0:
            raise ValueError(f"radius must be >= 0, got {self.radius}")
        if self.downsample_factor < 1:
            raise ValueError(
                f"downsample_factor must be >= 1, got {self.downsample_factor}"
            )

    @property
    def solid(self) -> bool:
        """Radius 0 means a solid mask instead of a blur."""
        return self.radius == 0


@dataclass(frozen=True, slots=True)
class OverlayState:
    """Snapshot of the compositor state, safe to hand to observers."""

    phase: OverlayPhase = OverlayPhase.HIDDEN
    target_opacity: float = 0.0
    opacity: float = 0.0
    generation: int = 0
    presentation: Presentation = Presentation.NONE

    @property
    def visible(self) -> bool:
        return self.phase in VISIBLE_PHASES

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "target_opacity": round(self.target_opacity, 3),
            "opacity": round(self.opacity, 3),
            "generation": self.generation,
            "presentation": self.presentation.value,
        }
