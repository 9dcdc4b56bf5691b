"""
Window filters used by the dehazing pipeline.

The box filter follows the classic O(n) sliding-window formulation: the 2D
mean is separated into a horizontal and a vertical pass, and each pass
slides a running sum along the axis instead of re-summing every window.
Windows are clipped at the image borders (no padding, reflection or wrap),
so the divisor shrinks near the edges.
"""

import logging

import cv2
import numpy as np

from .errors import DegenerateInput
from .image import PixelBuffer

logger = logging.getLogger(__name__)


class WindowAccumulator:
    """
    Running sum and sample count over a sliding 1D window.

    ``push``/``pop`` take array slices, so one accumulator slides every row
    (or column) of an image at once; the count is shared because all lines
    of a pass advance together.
    """

    def __init__(self, shape) -> None:
        self._sum = np.zeros(shape, dtype=np.float64)
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def total(self) -> np.ndarray:
        return self._sum

    def push(self, values: np.ndarray) -> None:
        self._sum += values
        self._count += 1

    def pop(self, values: np.ndarray) -> None:
        self._sum -= values
        self._count -= 1

    def mean(self) -> np.ndarray:
        return self._sum / self._count


def _sliding_pass(data: np.ndarray, radius: int, axis: int, normalise: bool) -> np.ndarray:
    """One 1D pass of the box filter along ``axis`` of ``data``."""
    src = np.moveaxis(data, axis, 0)
    out = np.empty_like(src)
    length = src.shape[0]
    window = 2 * radius + 1
    acc = WindowAccumulator(src.shape[1:])

    for pos in range(length + radius):
        # Leading edge enters while still inside the image
        if pos < length:
            acc.push(src[pos])
        # Trailing edge leaves once the window has filled
        if pos >= window:
            acc.pop(src[pos - window])
        if pos >= radius:
            out[pos - radius] = acc.mean() if normalise else acc.total

    return np.moveaxis(out, 0, axis)


def box_filter(image: PixelBuffer, radius: int, normalise: bool = True) -> PixelBuffer:
    """
    Mean over the ``(2r+1) x (2r+1)`` window around each pixel.

    Args:
        image: scalar or colour buffer.
        radius: window half-width, ``>= 0``.
        normalise: when False, return clipped window sums instead of means.

    Returns:
        New buffer of the same shape.
    """
    if radius < 0:
        raise ValueError(f"radius must be non-negative, got {radius}")
    horizontal = _sliding_pass(image.data, radius, axis=1, normalise=normalise)
    vertical = _sliding_pass(horizontal, radius, axis=0, normalise=normalise)
    return PixelBuffer(vertical)


def min_filter(image: PixelBuffer, kernel_size: int) -> PixelBuffer:
    """
    Minimum over a ``kernel_size`` square window, clipped at the borders.

    The window around pixel ``c`` spans ``c - k//2`` to ``c - k//2 + k - 1``,
    the same placement as :meth:`ImageView.centred_sub_view`.
    """
    if kernel_size <= 0:
        raise ValueError(f"kernel_size must be positive, got {kernel_size}")
    if image.is_color:
        raise ValueError("min_filter expects a scalar buffer.")
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel_size, kernel_size))
    # Constant border for erosion is +inf, so samples outside the image never win.
    eroded = cv2.erode(image.data, kernel, borderType=cv2.BORDER_CONSTANT,
                       borderValue=float("inf"))
    return PixelBuffer(eroded)


def normalise(image: PixelBuffer) -> PixelBuffer:
    """Rescale a scalar buffer so its minimum becomes 0.0 and maximum 1.0."""
    low = float(image.data.min())
    high = float(image.data.max())
    if high == low:
        raise DegenerateInput(
            f"Cannot normalise a flat image (every value is {low}); depth has no range."
        )
    logger.debug("Normalising range [%.6f, %.6f]", low, high)
    return (image - low) / (high - low)
