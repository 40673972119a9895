"""Frame source backed by a callable returning numpy frames."""

from __future__ import annotations

import logging
from typing import Callable

import numpy as np

from privacy_blur.core.pixel_buffer import PixelBuffer

log = logging.getLogger(__name__)


class ArrayFrameSource:
    """Captures whatever ``grab()`` returns and shrinks it.

    ``grab`` returns the current full-resolution frame (grayscale, RGB(A) or
    BGR(A) as given by ``order``) or None when nothing is on screen.
    """

    def __init__(
        self,
        grab: Callable[[], np.ndarray | None],
        *,
        order: str = "RGBA",
        density: float = 1.0,
        capabilities: frozenset[str] = frozenset(),
    ) -> None:
        self._grab = grab
        self._order = order
        self.density = density
        self.capabilities = capabilities
        self.last_full_size: tuple[int, int] = (0, 0)
        self.captures = 0

    def capture(self, downsample_factor: int) -> PixelBuffer | None:
        frame = self._grab()
        if frame is None:
            return None
        full = PixelBuffer.from_array(frame, order=self._order)
        self.last_full_size = full.size
        if full.is_empty:
            log.debug("capture: empty frame %dx%d", full.width, full.height)
            return None
        self.captures += 1
        return full.downsampled(downsample_factor)
