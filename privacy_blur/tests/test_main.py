"""CLI smoke tests against real image files."""

from __future__ import annotations

import cv2
import numpy as np

from privacy_blur.main import main, parse_args


def _write_image(path) -> None:
    img = np.zeros((40, 60, 3), dtype=np.uint8)
    img[:, :30] = (0, 0, 255)  # red in BGR
    img[10:30, 35:55] = (255, 255, 255)
    assert cv2.imwrite(str(path), img)


def test_parse_args_defaults():
    args = parse_args(["in.png"])
    assert args.input == "in.png"
    assert args.radius is None
    assert args.backend is None
    assert args.solid is False


def test_blurred_output(tmp_path):
    src = tmp_path / "screen.png"
    out = tmp_path / "masked.png"
    layer = tmp_path / "layer.png"
    _write_image(src)

    code = main([str(src), "-o", str(out), "--overlay-output", str(layer), "--duration-ms", "0"])
    assert code == 0

    masked = cv2.imread(str(out), cv2.IMREAD_UNCHANGED)
    original = cv2.imread(str(src), cv2.IMREAD_UNCHANGED)
    assert masked.shape[:2] == original.shape[:2]
    # Sharp edges are gone once fully covered by the blurred overlay.
    assert np.abs(np.diff(masked[:, :, 2].astype(int), axis=1)).max() < 255
    assert cv2.imread(str(layer)) is not None


def test_solid_output(tmp_path):
    src = tmp_path / "screen.png"
    out = tmp_path / "masked.png"
    _write_image(src)

    assert main([str(src), "-o", str(out), "--solid", "--duration-ms", "0"]) == 0
    masked = cv2.imread(str(out))
    assert (masked == 255).all()


def test_native_backend(tmp_path):
    src = tmp_path / "screen.png"
    out = tmp_path / "masked.png"
    _write_image(src)
    assert main([str(src), "-o", str(out), "--backend", "native", "--duration-ms", "10"]) == 0
    assert out.exists()


def test_missing_input(tmp_path):
    assert main([str(tmp_path / "missing.png")]) == 1
