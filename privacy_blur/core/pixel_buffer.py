"""RGBA raster passed between capture, blur and presentation.

Pixels are stored as a C-contiguous ``uint8`` array shaped ``(height, width, 4)``
in R, G, B, A order. A buffer belongs to the stage that produced it; stages
that transform a buffer return a new one instead of writing into their input.
"""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

Color = tuple[int, int, int, int]

OPAQUE = 255


@dataclass(frozen=True, slots=True, eq=False)
class PixelBuffer:
    pixels: np.ndarray

    def __post_init__(self) -> None:
        px = self.pixels
        if not isinstance(px, np.ndarray):
            raise ValueError("pixels must be a numpy array")
        if px.ndim != 3 or px.shape[2] != 4:
            raise ValueError(f"pixels must be shaped (H, W, 4), got {px.shape}")
        if px.dtype != np.uint8:
            raise ValueError(f"pixels must be uint8, got {px.dtype}")

    # ── Construction ─────────────────────────────────────────────

    @classmethod
    def from_array(cls, array: np.ndarray, *, order: str = "RGBA") -> PixelBuffer:
        """Build a buffer from a grayscale, RGB/BGR or RGBA/BGRA array.

        Values outside ``[0, 255]`` are clipped. Missing alpha becomes opaque.
        """
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = arr[:, :, None].repeat(3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"unsupported frame shape: {arr.shape}")
        if arr.dtype != np.uint8:
            arr = np.clip(arr, 0, 255).astype(np.uint8)

        order = order.upper()
        if order.startswith("BGR"):
            arr = arr[:, :, [2, 1, 0] + ([3] if arr.shape[2] == 4 else [])]
        elif not order.startswith("RGB"):
            raise ValueError(f"unsupported channel order: {order}")

        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), OPAQUE, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=2)
        return cls(np.ascontiguousarray(arr))

    @classmethod
    def solid(cls, width: int, height: int, color: Color) -> PixelBuffer:
        px = np.empty((max(0, height), max(0, width), 4), dtype=np.uint8)
        px[:, :] = np.asarray(color, dtype=np.uint8)
        return cls(px)

    # ── Properties ───────────────────────────────────────────────

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    # ── Transforms (always return a new buffer) ──────────────────

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.pixels.copy())

    def resized(self, width: int, height: int) -> PixelBuffer:
        """Scale to ``width`` x ``height``.

        Area averaging when shrinking, bilinear when enlarging.
        """
        if (width, height) == self.size:
            return self.copy()
        if self.is_empty or width <= 0 or height <= 0:
            return PixelBuffer(np.zeros((max(0, height), max(0, width), 4), np.uint8))
        shrinking = width * height < self.width * self.height
        interp = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
        out = cv2.resize(self.pixels, (width, height), interpolation=interp)
        return PixelBuffer(np.ascontiguousarray(out))

    def downsampled(self, factor: int) -> PixelBuffer:
        """Shrink by an integer factor; each side stays at least 1 px."""
        factor = max(1, int(factor))
        if factor == 1 or self.is_empty:
            return self.copy()
        return self.resized(max(1, self.width // factor), max(1, self.height // factor))

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"
