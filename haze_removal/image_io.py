"""Reading and writing PixelBuffers with OpenCV."""

import logging
import threading
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from .errors import LoadError, SaveError
from .image import PixelBuffer
from .pixel import linear_to_srgb, srgb_to_linear

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Codec calls are serialised.
_CODEC_LOCK = threading.RLock()


def _read(path: Path, flags: int) -> np.ndarray:
    if not path.is_file():
        raise LoadError(path, "no such file")
    with _CODEC_LOCK:
        pixels = cv2.imread(str(path), flags)
    if pixels is None:
        raise LoadError(path, "unsupported or corrupt image data")
    logger.info("Loaded '%s' (%dx%d)", path, pixels.shape[1], pixels.shape[0])
    return pixels


def _to_unit_float(pixels: np.ndarray) -> np.ndarray:
    # IMREAD_COLOR and IMREAD_GRAYSCALE always decode to 8 bits.
    return pixels.astype(np.float64) / 255.0


def _write(pixels: np.ndarray, path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SaveError(path, str(exc)) from exc
    with _CODEC_LOCK:
        try:
            ok = cv2.imwrite(str(path), pixels)
        except cv2.error as exc:
            raise SaveError(path, str(exc)) from exc
    if not ok:
        raise SaveError(path, "encoder rejected the image")
    logger.info("Wrote '%s'", path)


def _to_uint8(values: np.ndarray) -> np.ndarray:
    return np.clip(values * 255.0 + 0.5, 0, 255).astype(np.uint8)


def load_color_image(path: PathLike, linear: bool = False) -> PixelBuffer:
    """
    Load an RGB image as floats in [0, 1].

    Args:
        path: image file readable by OpenCV.
        linear: decode sRGB-encoded values to linear light.

    Raises:
        LoadError: if the file is missing or cannot be decoded.
    """
    bgr = _read(Path(path), cv2.IMREAD_COLOR)
    rgb = _to_unit_float(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))
    if linear:
        rgb = srgb_to_linear(rgb)
    return PixelBuffer(rgb)


def load_scalar_image(path: PathLike) -> PixelBuffer:
    """Load a greyscale image as floats in [0, 1]."""
    grey = _read(Path(path), cv2.IMREAD_GRAYSCALE)
    return PixelBuffer(_to_unit_float(grey))


def save_color_image(image: PixelBuffer, path: PathLike, linear: bool = False) -> None:
    """
    Save an RGB buffer as 8-bit, clipping values to [0, 1].

    ``linear`` re-encodes linear values to sRGB first, undoing
    ``load_color_image(..., linear=True)``.
    """
    if not image.is_color:
        raise ValueError("save_color_image expects an RGB buffer.")
    rgb = image.data
    if linear:
        rgb = linear_to_srgb(np.clip(rgb, 0.0, 1.0))
    bgr8 = cv2.cvtColor(_to_uint8(rgb), cv2.COLOR_RGB2BGR)
    _write(bgr8, Path(path))


def save_scalar_image(image: PixelBuffer, path: PathLike) -> None:
    """Save a scalar buffer as an 8-bit greyscale image, clipping to [0, 1]."""
    if image.is_color:
        raise ValueError("save_scalar_image expects a scalar buffer.")
    _write(_to_uint8(image.data), Path(path))
