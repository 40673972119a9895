"""Opacity fade timelines for headless hosts.

TickAnimationDriver    one asyncio task per fade, ticking at ``tick_hz``
ManualAnimationDriver  advanced by explicit ``advance(dt_ms)`` calls

Both run every completion callback on the caller's context (the event loop
for the tick driver), and both fire ``on_complete`` exactly once per fade.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Callable

from privacy_blur.devices.interfaces import CompletionCallback, UpdateCallback

log = logging.getLogger(__name__)

DEFAULT_TICK_HZ = 60


def linear(t: float) -> float:
    return t


def ease_in_out(t: float) -> float:
    """Accelerate then decelerate (cosine curve)."""
    return math.cos((t + 1.0) * math.pi) / 2.0 + 0.5


EASINGS: dict[str, Callable[[float], float]] = {
    "linear": linear,
    "ease_in_out": ease_in_out,
}


def get_easing(name: str) -> Callable[[float], float]:
    easing = EASINGS.get(name)
    if easing is None:
        log.warning("unknown easing %r, using ease_in_out", name)
        return ease_in_out
    return easing


class Fade:
    """One running opacity ramp."""

    def __init__(
        self,
        start: float,
        end: float,
        duration_ms: int,
        on_complete: CompletionCallback,
        on_update: UpdateCallback | None = None,
        easing: Callable[[float], float] = ease_in_out,
    ) -> None:
        self.start = float(start)
        self.end = float(end)
        self.duration_ms = max(0, int(duration_ms))
        self.elapsed_ms = 0.0
        self._value = self.start
        self._done = False
        self._on_complete = on_complete
        self._on_update = on_update
        self._easing = easing

    @property
    def value(self) -> float:
        return self._value

    @property
    def done(self) -> bool:
        return self._done

    def advance(self, dt_ms: float) -> bool:
        """Move the timeline forward. Returns True once finished."""
        if self._done:
            return True
        self.elapsed_ms += max(0.0, dt_ms)
        if self.duration_ms <= 0:
            progress = 1.0
        else:
            progress = min(1.0, self.elapsed_ms / self.duration_ms)
        self._set_value(self.start + (self.end - self.start) * self._easing(progress))
        if progress >= 1.0:
            self._value = self.end
            self._finish(True)
        return self._done

    def cancel(self) -> float:
        if not self._done:
            self._finish(False)
        return self._value

    def _set_value(self, value: float) -> None:
        self._value = value
        if self._on_update is not None:
            self._on_update(value)

    def _finish(self, finished: bool) -> None:
        self._done = True
        self._on_complete(finished)


class ManualAnimationDriver:
    """Fades advance only when the host calls ``advance``."""

    def __init__(self, easing: str = "ease_in_out") -> None:
        self._easing = get_easing(easing)
        self._active: list[Fade] = []

    @property
    def active(self) -> list[Fade]:
        return [f for f in self._active if not f.done]

    def animate(
        self,
        start: float,
        end: float,
        duration_ms: int,
        on_complete: CompletionCallback,
        on_update: UpdateCallback | None = None,
    ) -> Fade:
        fade = Fade(start, end, duration_ms, on_complete, on_update, self._easing)
        if fade.duration_ms == 0:
            fade.advance(0.0)
        else:
            self._active.append(fade)
        return fade

    def advance(self, dt_ms: float) -> None:
        # Callbacks may start new fades; iterate over a snapshot.
        for fade in list(self._active):
            fade.advance(dt_ms)
        self._active = [f for f in self._active if not f.done]


class _TickFade(Fade):
    task: asyncio.Task | None = None

    def cancel(self) -> float:
        value = super().cancel()
        if self.task is not None and not self.task.done():
            self.task.cancel()
        return value


class TickAnimationDriver:
    """Runs each fade as an asyncio task on the running loop."""

    def __init__(self, tick_hz: int = DEFAULT_TICK_HZ, easing: str = "ease_in_out") -> None:
        self._tick_s = 1.0 / max(1, int(tick_hz))
        self._easing = get_easing(easing)

    def animate(
        self,
        start: float,
        end: float,
        duration_ms: int,
        on_complete: CompletionCallback,
        on_update: UpdateCallback | None = None,
    ) -> Fade:
        fade = _TickFade(start, end, duration_ms, on_complete, on_update, self._easing)
        if fade.duration_ms == 0:
            fade.advance(0.0)
            return fade
        fade.task = asyncio.get_running_loop().create_task(self._run(fade))
        return fade

    async def _run(self, fade: Fade) -> None:
        t_prev = time.monotonic()
        try:
            while not fade.done:
                await asyncio.sleep(self._tick_s)
                t_now = time.monotonic()
                fade.advance((t_now - t_prev) * 1000.0)
                t_prev = t_now
        except asyncio.CancelledError:
            pass
