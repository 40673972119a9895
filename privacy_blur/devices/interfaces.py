"""Host-side collaborators of the overlay compositor.

The compositor never touches a UI toolkit directly. Hosts implement these
three protocols; ``privacy_blur.devices`` ships headless versions.
"""

from __future__ import annotations

from typing import Callable, Protocol

from privacy_blur.core.pixel_buffer import Color, PixelBuffer

CompletionCallback = Callable[[bool], None]
UpdateCallback = Callable[[float], None]


class FrameSource(Protocol):
    """Produces a downsampled snapshot of the visible surface.

    ``capture`` returns None (or an empty buffer) when there is nothing to
    capture and must not block longer than one frame interval. Optional
    attributes: ``density`` (pixels per device-independent unit, default 1.0)
    and ``capabilities`` (e.g. ``{"native_blur"}``).
    """

    def capture(self, downsample_factor: int) -> PixelBuffer | None: ...


class PresentationSurface(Protocol):
    """Host-owned layer above all content. ``detach`` is idempotent."""

    def attach(self) -> None: ...

    def show_blurred(self, buffer: PixelBuffer) -> None: ...

    def show_solid(self, color: Color) -> None: ...

    def set_opacity(self, value: float) -> None: ...

    def detach(self) -> None: ...


class AnimationHandle(Protocol):
    @property
    def value(self) -> float: ...

    @property
    def done(self) -> bool: ...

    def cancel(self) -> float:
        """Stop at the current value and return it."""
        ...


class AnimationDriver(Protocol):
    """Advances a value from ``start`` to ``end`` over ``duration_ms``.

    ``on_complete(finished)`` fires exactly once: ``True`` when the timeline
    reached ``end`` (synchronously for a zero duration), ``False`` when the
    handle was cancelled.
    """

    def animate(
        self,
        start: float,
        end: float,
        duration_ms: int,
        on_complete: CompletionCallback,
        on_update: UpdateCallback | None = None,
    ) -> AnimationHandle: ...
