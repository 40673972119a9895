"""Blur backends behind one ``blur(buffer, radius)`` contract.

SoftwareStackBlur   pure-numpy stack blur (always available)
NativeGaussianBlur  OpenCV's native Gaussian filter, for hosts that declare
                    the ``native_blur`` capability

The two backends interpret "radius" differently, so each carries a
``radius_scale`` applied by ``effective_radius``. The defaults (0.5 for the
stack blur, 1.0 for the Gaussian) were tuned by eye and are configurable.
"""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

import cv2
import numpy as np

from privacy_blur.core import stack_blur
from privacy_blur.core.pixel_buffer import OPAQUE, PixelBuffer

log = logging.getLogger(__name__)

CAPABILITY_NATIVE_BLUR = "native_blur"

BACKEND_AUTO = "auto"
BACKEND_NATIVE = "native"
BACKEND_SOFTWARE = "software"
BACKENDS = (BACKEND_AUTO, BACKEND_NATIVE, BACKEND_SOFTWARE)


class BlurStrategy(Protocol):
    name: str

    def effective_radius(self, requested_px: int) -> int: ...

    def blur(self, buffer: PixelBuffer, radius: int) -> PixelBuffer: ...


def _scaled_radius(requested_px: int, scale: float) -> int:
    if requested_px < 1:
        return 0
    return max(1, min(stack_blur.MAX_RADIUS, int(requested_px * scale)))


class SoftwareStackBlur:
    name = BACKEND_SOFTWARE

    def __init__(self, radius_scale: float = 0.5) -> None:
        self.radius_scale = radius_scale

    def effective_radius(self, requested_px: int) -> int:
        return _scaled_radius(requested_px, self.radius_scale)

    def blur(self, buffer: PixelBuffer, radius: int) -> PixelBuffer:
        return stack_blur.blur(buffer, radius)


class NativeGaussianBlur:
    """Gaussian blur with clamp-to-edge borders and a mild desaturation."""

    name = BACKEND_NATIVE

    def __init__(self, radius_scale: float = 1.0, saturation: float = 0.92) -> None:
        self.radius_scale = radius_scale
        self.saturation = saturation

    def effective_radius(self, requested_px: int) -> int:
        return _scaled_radius(requested_px, self.radius_scale)

    def blur(self, buffer: PixelBuffer, radius: int) -> PixelBuffer:
        if buffer.is_empty or radius < 1:
            return buffer
        radius = min(radius, stack_blur.MAX_RADIUS)
        rgb = np.ascontiguousarray(buffer.pixels[:, :, :3])
        # Kernel size 0 lets OpenCV derive it from sigma.
        soft = cv2.GaussianBlur(
            rgb, (0, 0), sigmaX=float(radius), borderType=cv2.BORDER_REPLICATE
        )
        if self.saturation != 1.0:
            soft = self._desaturate(soft)

        out = np.empty_like(buffer.pixels)
        out[:, :, :3] = soft
        out[:, :, 3] = OPAQUE
        return PixelBuffer(out)

    def _desaturate(self, rgb: np.ndarray) -> np.ndarray:
        gray = cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY).astype(np.float32)[:, :, None]
        mixed = gray + (rgb.astype(np.float32) - gray) * self.saturation
        return np.clip(np.rint(mixed), 0, 255).astype(np.uint8)


def select_blur_strategy(
    preference: str = BACKEND_AUTO,
    capabilities: Iterable[str] = (),
    *,
    software_radius_scale: float = 0.5,
    native_radius_scale: float = 1.0,
    native_saturation: float = 0.92,
) -> BlurStrategy:
    """Pick a backend. ``auto`` probes the host's declared capabilities."""
    preference = (preference or BACKEND_AUTO).strip().lower()
    if preference not in BACKENDS:
        log.warning("unknown blur backend %r, using %s", preference, BACKEND_AUTO)
        preference = BACKEND_AUTO

    use_native = preference == BACKEND_NATIVE or (
        preference == BACKEND_AUTO and CAPABILITY_NATIVE_BLUR in set(capabilities)
    )
    strategy: BlurStrategy
    if use_native:
        strategy = NativeGaussianBlur(native_radius_scale, native_saturation)
    else:
        strategy = SoftwareStackBlur(software_radius_scale)
    log.info("blur backend: %s (requested %s)", strategy.name, preference)
    return strategy
