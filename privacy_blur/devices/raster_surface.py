"""Headless presentation surface that composites into numpy frames."""

from __future__ import annotations

import logging

import numpy as np

from privacy_blur.core.pixel_buffer import Color, PixelBuffer

log = logging.getLogger(__name__)


class RasterSurface:
    """Overlay layer of a fixed canvas size.

    Blurred snapshots are upscaled to the canvas on ``show_blurred``.
    ``composite`` blends the layer over a frame at the current opacity.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.attached = False
        self.opacity = 0.0
        self.layer: PixelBuffer | None = None
        self.kind = "none"  # "none" | "blurred" | "solid"
        self.opacity_history: list[float] = []

    def attach(self) -> None:
        if not self.attached:
            log.debug("surface: attached %dx%d", self.width, self.height)
        self.attached = True

    def show_blurred(self, buffer: PixelBuffer) -> None:
        self.layer = buffer.resized(self.width, self.height)
        self.kind = "blurred"

    def show_solid(self, color: Color) -> None:
        self.layer = PixelBuffer.solid(self.width, self.height, color)
        self.kind = "solid"

    def set_opacity(self, value: float) -> None:
        self.opacity = max(0.0, min(1.0, float(value)))
        self.opacity_history.append(self.opacity)

    def detach(self) -> None:
        if self.attached:
            log.debug("surface: detached")
        self.attached = False
        self.layer = None
        self.kind = "none"
        self.opacity = 0.0

    def composite(self, frame: PixelBuffer) -> PixelBuffer:
        """Return ``frame`` with the overlay blended on top."""
        if not self.attached or self.layer is None or self.opacity <= 0.0:
            return frame.copy()
        layer = self.layer
        if layer.size != frame.size:
            layer = layer.resized(frame.width, frame.height)

        base = frame.pixels.astype(np.float32)
        top = layer.pixels.astype(np.float32)
        alpha = (top[:, :, 3:4] / 255.0) * self.opacity
        out = base.copy()
        out[:, :, :3] = top[:, :, :3] * alpha + base[:, :, :3] * (1.0 - alpha)
        return PixelBuffer(np.clip(np.rint(out), 0, 255).astype(np.uint8))
