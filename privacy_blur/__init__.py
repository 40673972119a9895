"""Privacy overlay: blur or mask the visible surface on demand."""

from privacy_blur.config import OverlayConfig, PrivacyBlurConfig, load_config
from privacy_blur.core.blur_strategy import (
    NativeGaussianBlur,
    SoftwareStackBlur,
    select_blur_strategy,
)
from privacy_blur.core.compositor import OverlayCompositor
from privacy_blur.core.pixel_buffer import PixelBuffer
from privacy_blur.core.stack_blur import MAX_RADIUS, blur
from privacy_blur.core.state import OverlayPhase, OverlayState

__all__ = [
    "OverlayCompositor",
    "OverlayConfig",
    "OverlayPhase",
    "OverlayState",
    "PixelBuffer",
    "PrivacyBlurConfig",
    "load_config",
    "blur",
    "MAX_RADIUS",
    "SoftwareStackBlur",
    "NativeGaussianBlur",
    "select_blur_strategy",
]
