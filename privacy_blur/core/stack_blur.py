"""Stack blur: two-pass triangular-weighted moving box blur.

Each output sample is the weighted mean of the ``2r+1`` samples around it,
with weight ``r+1-|offset|``. The window slides along a scanline keeping
three running sums:

    sum      total weighted sum of the window
    in_sum   unweighted sum of the samples right of centre (entering side)
    out_sum  unweighted sum of the centre and the samples left of it

Moving one step subtracts ``out_sum`` from ``sum`` and adds ``in_sum`` to it,
so every sample costs O(1) regardless of the radius. A ring of ``2r+1``
slots (the "stack") remembers which sample leaves ``out_sum`` next.

Indices are clamped to ``[0, dim-1]`` so edge pixels borrow their nearest
neighbour. The horizontal pass writes per-channel intermediates and the
vertical pass reads them back with the same window. Division by the weight
total ``(r+1)²`` goes through a lookup table of ``256 * (r+1)²`` entries.

All scanlines of a pass advance together as numpy vectors: the window walks
``width`` columns (then ``height`` rows) once, each step touching a whole
column (row) of accumulators.

Accumulators are int64. ``MAX_RADIUS`` bounds the lookup table (about 16 MB
at the limit); larger requests are clamped.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import numpy as np

from privacy_blur.core.pixel_buffer import OPAQUE, PixelBuffer

log = logging.getLogger(__name__)

MAX_RADIUS = 254
_CHANNELS = 3  # RGB; alpha is rewritten as opaque


@lru_cache(maxsize=2)
def division_table(radius: int) -> np.ndarray:
    """Map a weighted window sum to its mean: ``table[s] == s // (r+1)**2``."""
    divsum = (radius + 1) * (radius + 1)
    table = np.repeat(np.arange(256, dtype=np.uint8), divsum)
    table.flags.writeable = False
    return table


def _blur_axis(src: np.ndarray, radius: int, table: np.ndarray) -> np.ndarray:
    """Blur along axis 1 of ``src`` shaped ``(lines, length, channels)``.

    Returns a new uint8 array of the same shape.
    """
    lines, length, channels = src.shape
    last = length - 1
    div = radius + radius + 1
    r1 = radius + 1

    out = np.empty_like(src, dtype=np.uint8)
    stack = np.empty((div, lines, channels), dtype=np.int64)
    total = np.zeros((lines, channels), dtype=np.int64)
    in_sum = np.zeros((lines, channels), dtype=np.int64)
    out_sum = np.zeros((lines, channels), dtype=np.int64)

    # Prime the window centred on sample 0.
    for i in range(-radius, radius + 1):
        sample = src[:, min(last, max(i, 0))]
        stack[i + radius] = sample
        total += sample * (r1 - abs(i))
        if i > 0:
            in_sum += sample
        else:
            out_sum += sample

    sp = radius
    for x in range(length):
        out[:, x] = table[total]

        total -= out_sum

        # The slot ``radius`` behind the centre holds the leaving sample;
        # it is reused for the entering one.
        start = (sp - radius + div) % div
        out_sum -= stack[start]

        sample = src[:, min(x + r1, last)]
        stack[start] = sample
        in_sum += sample
        total += in_sum

        sp = (sp + 1) % div
        centre = stack[sp]
        out_sum += centre
        in_sum -= centre

    return out


def blur(buffer: PixelBuffer, radius: int) -> PixelBuffer:
    """Return a blurred copy of ``buffer`` with an opaque alpha channel.

    ``radius < 1`` or an empty buffer returns ``buffer`` unchanged.
    """
    if buffer.is_empty or radius < 1:
        return buffer
    if radius > MAX_RADIUS:
        log.debug("stack blur: radius %d clamped to %d", radius, MAX_RADIUS)
        radius = MAX_RADIUS

    table = division_table(radius)
    rgb = buffer.pixels[:, :, :_CHANNELS].astype(np.int64)

    # Horizontal pass: lines are rows, window walks columns.
    horizontal = _blur_axis(rgb, radius, table)

    # Vertical pass on the intermediate: lines are columns, window walks rows.
    vertical = _blur_axis(
        np.ascontiguousarray(horizontal.transpose(1, 0, 2)).astype(np.int64),
        radius,
        table,
    )

    out = np.empty_like(buffer.pixels)
    out[:, :, :_CHANNELS] = vertical.transpose(1, 0, 2)
    out[:, :, 3] = OPAQUE
    return PixelBuffer(out)
