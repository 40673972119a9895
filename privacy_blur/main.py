"""Privacy overlay entry point: mask an image file with the overlay pipeline."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

log = logging.getLogger(__name__)

_SETTLE_MARGIN_S = 5.0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Privacy Blur overlay")
    p.add_argument("input", help="Image to capture from (anything cv2 can read)")
    p.add_argument(
        "-o", "--output", default=None, help="Composited output (default: <input>.masked.png)"
    )
    p.add_argument("--overlay-output", default=None, help="Also write the bare overlay layer")
    p.add_argument("--config", default=None, help="YAML config file path")
    p.add_argument("--radius", type=int, default=None, help="Blur radius (0 = solid mask)")
    p.add_argument("--duration-ms", type=int, default=None, help="Fade duration")
    p.add_argument("--downsample", type=int, default=None, help="Capture downsample factor")
    p.add_argument(
        "--backend", choices=("auto", "native", "software"), default=None, help="Blur backend"
    )
    p.add_argument(
        "--native-capable",
        action="store_true",
        help="Declare the native_blur capability for the auto probe",
    )
    p.add_argument("--density", type=float, default=1.0, help="Pixels per blur-radius unit")
    p.add_argument("--solid", action="store_true", help="Force the solid mask")
    p.add_argument("--log-level", default="INFO", help="Log level")
    return p.parse_args(argv)


async def _wait_for(compositor, phase, timeout_s: float) -> bool:
    deadline = asyncio.get_running_loop().time() + timeout_s
    while compositor.phase != phase:
        if asyncio.get_running_loop().time() > deadline:
            return False
        await asyncio.sleep(0.01)
    return True


async def async_main(args: argparse.Namespace) -> int:
    import cv2

    from privacy_blur.config import load_config
    from privacy_blur.core.blur_strategy import CAPABILITY_NATIVE_BLUR, select_blur_strategy
    from privacy_blur.core.compositor import OverlayCompositor
    from privacy_blur.core.pixel_buffer import PixelBuffer
    from privacy_blur.core.state import OverlayPhase
    from privacy_blur.devices.animation import TickAnimationDriver
    from privacy_blur.devices.frame_source import ArrayFrameSource
    from privacy_blur.devices.raster_surface import RasterSurface

    cfg = load_config(args.config)

    # Apply CLI overrides
    cfg.overlay = cfg.overlay.updated(
        blur_radius=0 if args.solid else args.radius,
        fade_duration_ms=args.duration_ms,
        downsample_factor=args.downsample,
    )
    if args.backend:
        cfg.blur.backend = args.backend

    frame = cv2.imread(args.input, cv2.IMREAD_UNCHANGED)
    if frame is None:
        log.error("cannot read image: %s", args.input)
        return 1

    capabilities = frozenset({CAPABILITY_NATIVE_BLUR}) if args.native_capable else frozenset()
    source = ArrayFrameSource(
        lambda: frame, order="BGRA", density=args.density, capabilities=capabilities
    )
    full = PixelBuffer.from_array(frame, order="BGRA")
    surface = RasterSurface(full.width, full.height)
    strategy = select_blur_strategy(
        cfg.blur.backend,
        source.capabilities,
        software_radius_scale=cfg.blur.software_radius_scale,
        native_radius_scale=cfg.blur.native_radius_scale,
        native_saturation=cfg.blur.native_saturation,
    )
    compositor = OverlayCompositor(
        source,
        lambda: surface,
        TickAnimationDriver(cfg.animation.tick_hz, cfg.animation.easing),
        config=cfg.overlay,
        strategy=strategy,
        offload_blur=cfg.blur.offload,
    )

    timeout_s = cfg.overlay.fade_duration_ms / 1000.0 + _SETTLE_MARGIN_S
    try:
        compositor.show()
        if not await _wait_for(compositor, OverlayPhase.SHOWN, timeout_s):
            log.error("overlay did not settle (phase %s)", compositor.phase.value)
            return 1

        out_path = Path(args.output or f"{Path(args.input).with_suffix('')}.masked.png")
        masked = surface.composite(full)
        cv2.imwrite(str(out_path), cv2.cvtColor(masked.pixels, cv2.COLOR_RGBA2BGRA))
        log.info("masked image (%s) → %s", compositor.state.presentation.value, out_path)

        if args.overlay_output and surface.layer is not None:
            cv2.imwrite(
                args.overlay_output, cv2.cvtColor(surface.layer.pixels, cv2.COLOR_RGBA2BGRA)
            )
            log.info("overlay layer → %s", args.overlay_output)

        compositor.hide()
        await _wait_for(compositor, OverlayPhase.HIDDEN, timeout_s)
        return 0
    finally:
        compositor.teardown()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-5s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        return 130
