"""Privacy overlay compositor.

Transitions (see ``privacy_blur.core.state``):
    HIDDEN  --show-->     SHOWING  capture, blur or solid, present, fade 0→1
    SHOWING --done-->     SHOWN
    SHOWING --hide-->     HIDING   cancel fade-in, fade current→0
    SHOWN   --hide-->     HIDING   fade 1→0
    HIDING  --done-->     HIDDEN   detach
    HIDING  --show-->     SHOWING  cancel fade-out, recapture, fade current→1
    Any     --teardown--> HIDDEN   detach now, no animation

Every call runs on one serialized context (the event loop thread). Work that
finishes later (off-loaded blur, fade callbacks) carries the generation that
started it and is dropped if the generation has moved on.

The host surface is never stored: it is looked up through the provider on
every use. An inactive host (``host_active`` returns False) gets the overlay
at full opacity with no fade-in.

No method raises: collaborator failures are logged and degrade to the solid
mask or to a silent no-op.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping

from privacy_blur.config import OverlayConfig
from privacy_blur.core.blur_strategy import BlurStrategy, SoftwareStackBlur
from privacy_blur.core.pixel_buffer import PixelBuffer
from privacy_blur.core.state import (
    BlurParameters,
    OverlayPhase,
    OverlayState,
    Presentation,
)
from privacy_blur.devices.interfaces import (
    AnimationDriver,
    AnimationHandle,
    FrameSource,
    PresentationSurface,
)

log = logging.getLogger(__name__)

SurfaceProvider = Callable[[], "PresentationSurface | None"]


class OverlayCompositor:
    """Owns the overlay lifecycle for one host surface."""

    def __init__(
        self,
        frame_source: FrameSource,
        surface_provider: SurfaceProvider,
        animator: AnimationDriver,
        *,
        config: OverlayConfig | None = None,
        strategy: BlurStrategy | None = None,
        offload_blur: bool = True,
        on_state: Callable[[OverlayState], Any] | None = None,
        host_active: Callable[[], bool] | None = None,
    ) -> None:
        self._source = frame_source
        self._surface_provider = surface_provider
        self._animator = animator
        self._config = config or OverlayConfig()
        self._strategy: BlurStrategy = strategy or SoftwareStackBlur()
        self._offload_blur = offload_blur
        self._on_state = on_state
        self._host_active = host_active

        self._phase = OverlayPhase.HIDDEN
        self._target_opacity = 0.0
        self._opacity = 0.0
        self._presentation = Presentation.NONE
        self._generation = 0

        self._holding_surface = False
        self._animation: AnimationHandle | None = None
        self._blur_task: asyncio.Task | None = None

    # ── Queries ──────────────────────────────────────────────────

    @property
    def config(self) -> OverlayConfig:
        return self._config

    @property
    def phase(self) -> OverlayPhase:
        return self._phase

    @property
    def state(self) -> OverlayState:
        return OverlayState(
            phase=self._phase,
            target_opacity=self._target_opacity,
            opacity=self._opacity,
            generation=self._generation,
            presentation=self._presentation,
        )

    @property
    def blur_pending(self) -> bool:
        return self._blur_task is not None and not self._blur_task.done()

    @property
    def surface_attached(self) -> bool:
        return self._surface() is not None

    def is_enabled(self) -> bool:
        return self._config.enabled

    # ── Policy ───────────────────────────────────────────────────

    def configure(self, update: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        """Partially update the config. Applies from the next transition on."""
        try:
            new = self._config.updated(update, **kwargs)
        except (TypeError, ValueError) as e:
            log.warning("overlay config rejected: %s, keeping current", e)
            return
        if new == self._config:
            return
        enabled_changed = new.enabled != self._config.enabled
        self._config = new
        log.debug("overlay config: %s", new)
        if enabled_changed and not new.enabled:
            self._force_hidden("disabled")

    def set_enabled(self, enabled: bool) -> None:
        self.configure(enabled=bool(enabled))

    def enable(self) -> None:
        self.set_enabled(True)

    def disable(self) -> None:
        self.set_enabled(False)

    # ── Lifecycle events ─────────────────────────────────────────

    def show(self) -> None:
        cfg = self._config
        if not cfg.enabled:
            log.debug("show ignored: disabled")
            return
        if self._phase in (OverlayPhase.SHOWING, OverlayPhase.SHOWN):
            log.debug("show ignored: already %s", self._phase.value)
            return

        if self._phase == OverlayPhase.HIDING:
            # Restart from where the fade-out got to; the old layer stays up
            # until the fresh one replaces it.
            start = self._cancel_animation()
            self._set_opacity(start)
            reason = "show during hide"
        else:
            if self._lookup_surface() is None:
                log.warning("show ignored: no host surface")
                return
            start = 0.0
            reason = "show"

        gen = self._next_generation()
        self._cancel_blur()
        params = self._blur_parameters(cfg)
        snapshot = self._capture(params)
        self._holding_surface = True
        self._transition(OverlayPhase.SHOWING, reason, target=1.0)

        if snapshot is None or params.solid:
            self._present(gen, None, cfg, start)
            return

        radius = params.radius
        loop = _running_loop()
        if self._offload_blur and loop is not None:
            self._blur_task = loop.create_task(
                self._blur_async(gen, snapshot, radius, cfg, start)
            )
        else:
            self._present(gen, self._run_blur(snapshot, radius), cfg, start)

    def hide(self) -> None:
        if self._phase == OverlayPhase.HIDDEN:
            return
        if self._phase == OverlayPhase.HIDING:
            log.debug("hide ignored: already hiding")
            return

        cfg = self._config
        gen = self._next_generation()
        self._cancel_blur()
        current = self._cancel_animation()

        if self._presentation == Presentation.NONE:
            # Blur still pending: nothing was ever drawn.
            self._force_hidden("hide before present")
            return

        self._set_opacity(current)
        self._transition(OverlayPhase.HIDING, "hide", target=0.0)
        self._fade(gen, current, 0.0, round(cfg.fade_duration_ms * current), OverlayPhase.HIDING)

    def teardown(self) -> None:
        """Detach immediately from any state. Safe to call repeatedly."""
        self._force_hidden("teardown")

    # ── Show pipeline ────────────────────────────────────────────

    def _capture(self, params: BlurParameters) -> PixelBuffer | None:
        try:
            snapshot = self._source.capture(params.downsample_factor)
        except Exception as e:
            log.warning("capture failed: %s, using solid mask", e)
            return None
        if snapshot is None or snapshot.is_empty:
            log.info("capture unavailable, using solid mask")
            return None
        return snapshot

    def _blur_parameters(self, cfg: OverlayConfig) -> BlurParameters:
        """Convert the configured radius (device-independent) to backend pixels."""
        radius = 0
        if cfg.blur_radius > 0:
            density = float(getattr(self._source, "density", 1.0) or 1.0)
            radius = self._strategy.effective_radius(max(0, int(cfg.blur_radius * density)))
        return BlurParameters(radius=radius, downsample_factor=cfg.downsample_factor)

    def _run_blur(self, snapshot: PixelBuffer, radius: int) -> PixelBuffer | None:
        try:
            return self._strategy.blur(snapshot, radius)
        except Exception:
            log.exception("blur (%s) failed, using solid mask", self._strategy.name)
            return None

    async def _blur_async(
        self, gen: int, snapshot: PixelBuffer, radius: int, cfg: OverlayConfig, start: float
    ) -> None:
        blurred = await asyncio.to_thread(self._run_blur, snapshot, radius)
        if gen != self._generation:
            log.debug("blur result dropped: generation %d is stale", gen)
            return
        self._blur_task = None
        self._present(gen, blurred, cfg, start)

    def _present(
        self, gen: int, blurred: PixelBuffer | None, cfg: OverlayConfig, start: float = 0.0
    ) -> None:
        if gen != self._generation:
            return
        surface = self._surface()
        if surface is None:
            log.warning("host surface gone before present")
            self._force_hidden("host surface gone")
            return

        self._call_surface(surface, "attach")
        if blurred is not None:
            self._call_surface(surface, "show_blurred", blurred)
            self._presentation = Presentation.BLURRED
        else:
            self._call_surface(surface, "show_solid", cfg.solid_color)
            self._presentation = Presentation.SOLID

        if not self._is_host_active():
            # Inactive host: fully cover now, no fade.
            self._set_opacity(1.0)
            self._on_fade_done(gen, OverlayPhase.SHOWING, True)
            return
        self._set_opacity(start)
        self._fade(
            gen, start, 1.0, round(cfg.fade_duration_ms * (1.0 - start)), OverlayPhase.SHOWING
        )

    def _is_host_active(self) -> bool:
        if self._host_active is None:
            return True
        try:
            return bool(self._host_active())
        except Exception:
            log.exception("host activity query failed, presenting without fade")
            return False

    # ── Fades ────────────────────────────────────────────────────

    def _fade(
        self, gen: int, start: float, end: float, duration_ms: int, phase: OverlayPhase
    ) -> None:
        try:
            handle = self._animator.animate(
                start,
                end,
                duration_ms,
                lambda finished: self._on_fade_done(gen, phase, finished),
                lambda value: self._on_fade_update(gen, value),
            )
        except Exception:
            log.exception("animation failed to start, jumping to %.2f", end)
            self._on_fade_update(gen, end)
            self._on_fade_done(gen, phase, True)
            return
        # Zero-length fades complete inside animate().
        if gen == self._generation and not handle.done:
            self._animation = handle

    def _on_fade_update(self, gen: int, value: float) -> None:
        if gen != self._generation:
            return
        self._set_opacity(value)

    def _on_fade_done(self, gen: int, phase: OverlayPhase, finished: bool) -> None:
        if not finished:
            return
        if gen != self._generation or phase != self._phase:
            log.debug("stale fade completion dropped (gen %d, %s)", gen, phase.value)
            return
        self._animation = None
        if phase == OverlayPhase.SHOWING:
            self._set_opacity(1.0)
            self._transition(OverlayPhase.SHOWN, "fade-in done", target=1.0)
        else:
            self._detach()
            self._transition(OverlayPhase.HIDDEN, "fade-out done", target=0.0)

    def _cancel_animation(self) -> float:
        handle, self._animation = self._animation, None
        if handle is None:
            return self._opacity
        try:
            return float(handle.cancel())
        except Exception:
            log.exception("animation cancel failed")
            return self._opacity

    def _cancel_blur(self) -> None:
        task, self._blur_task = self._blur_task, None
        if task is not None and not task.done():
            task.cancel()

    # ── Surface ──────────────────────────────────────────────────

    def _lookup_surface(self) -> PresentationSurface | None:
        try:
            return self._surface_provider()
        except Exception:
            log.exception("host surface lookup failed")
            return None

    def _surface(self) -> PresentationSurface | None:
        if not self._holding_surface:
            return None
        return self._lookup_surface()

    def _set_opacity(self, value: float) -> None:
        self._opacity = value
        surface = self._surface()
        if surface is not None and self._presentation != Presentation.NONE:
            self._call_surface(surface, "set_opacity", value)

    def _detach(self) -> None:
        surface = self._surface()
        self._holding_surface = False
        self._presentation = Presentation.NONE
        self._opacity = 0.0
        if surface is not None:
            self._call_surface(surface, "detach")

    @staticmethod
    def _call_surface(surface: PresentationSurface, method: str, *args: Any) -> None:
        try:
            getattr(surface, method)(*args)
        except Exception:
            log.exception("surface.%s failed", method)

    # ── State ────────────────────────────────────────────────────

    def _force_hidden(self, reason: str) -> None:
        self._next_generation()
        self._cancel_blur()
        self._cancel_animation()
        self._detach()
        self._transition(OverlayPhase.HIDDEN, reason, target=0.0)

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _transition(self, phase: OverlayPhase, reason: str, *, target: float) -> None:
        self._target_opacity = target
        if phase == self._phase:
            return
        log.info("overlay: %s → %s (%s)", self._phase.value, phase.value, reason)
        self._phase = phase
        if self._on_state is not None:
            try:
                self._on_state(self.state)
            except Exception:
                log.exception("state observer failed")


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
