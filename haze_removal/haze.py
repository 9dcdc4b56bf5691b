"""
Haze removal with the colour attenuation prior.

Image formation model::

    I(x) = J(x) * t(x) + A * (1 - t(x))
    J(x) = A + (I(x) - A) / t(x)

where ``I`` is the hazy observation, ``J`` the scene radiance, ``A`` the
atmospheric light and ``t = exp(-beta * d)`` the transmission for haze depth
``d``. Depth is estimated per pixel as a linear function of luminance and
saturation (Zhu et al., colour attenuation prior).
"""

import logging
from typing import Tuple

import numpy as np

from .errors import DimensionMismatch
from .filters import min_filter, normalise
from .image import PixelBuffer
from .pixel import Color, Coord, luminance, saturation

logger = logging.getLogger(__name__)

# Learned coefficients: depth = theta0 + theta1 * luminance + theta2 * saturation
THETA = (0.121779, 0.959710, -0.780245)

# Fraction of the deepest pixels considered as atmospheric light candidates
TOP_FRACTION_DIVISOR = 1000

T_MIN = 0.1
T_MAX = 0.9


def _require_color(image: PixelBuffer, name: str) -> None:
    if not image.is_color:
        raise ValueError(f"{name} must be an RGB buffer.")


def estimate_raw_depth(image: PixelBuffer) -> PixelBuffer:
    """Per-pixel depth from the colour attenuation prior, clamped to [0, 1]."""
    _require_color(image, "image")
    depth = THETA[0] + THETA[1] * luminance(image.data) + THETA[2] * saturation(image.data)
    return PixelBuffer(np.clip(depth, 0.0, 1.0))


def estimate_depth(image: PixelBuffer, kernel_size: int) -> PixelBuffer:
    """
    Normalised haze depth of a hazy RGB image.

    The raw prior estimate is min-filtered over ``kernel_size`` square windows
    to suppress local noise, then stretched to [0, 1].

    Raises:
        DegenerateInput: if the filtered depth is constant over the image.
    """
    if kernel_size <= 0:
        raise ValueError(f"kernel_size must be positive, got {kernel_size}")
    raw = estimate_raw_depth(image)
    return normalise(min_filter(raw, kernel_size))


def estimate_atmospheric_light(image: PixelBuffer, depth: PixelBuffer) -> Tuple[Color, Coord]:
    """
    Pick the atmospheric light colour.

    The deepest 0.1% of pixels (at least one) are selected with a partial
    partition; the brightest of those by luminance is returned together with
    its coordinate.
    """
    _require_color(image, "image")
    if image.dimensions != depth.dimensions:
        raise DimensionMismatch(
            f"Image is {image.dimensions} but depth is {depth.dimensions}"
        )

    flat_depth = depth.data.reshape(-1)
    count = max(flat_depth.size // TOP_FRACTION_DIVISOR, 1)
    candidates = np.argpartition(flat_depth, -count)[-count:]

    flat_image = image.data.reshape(-1, 3)
    best = candidates[np.argmax(luminance(flat_image[candidates]))]
    y, x = divmod(int(best), image.width)
    return Color.from_array(flat_image[best]), Coord(x, y)


def transmission_map(depth: PixelBuffer, beta: float) -> PixelBuffer:
    """``exp(-beta * depth)`` clamped to [0.1, 0.9]."""
    return PixelBuffer(np.clip(np.exp(-beta * depth.data), T_MIN, T_MAX))


def remove_haze(image: PixelBuffer, depth: PixelBuffer, beta: float = 1.0) -> PixelBuffer:
    """
    Recover scene radiance from a hazy image and its depth map.

    Args:
        image: hazy RGB buffer.
        depth: scalar depth buffer of the same size, normally guided-filtered.
        beta: scattering coefficient, ``>= 0``.

    Returns:
        Dehazed RGB buffer. Values are not clipped and may leave [0, 1].
    """
    if beta < 0:
        raise ValueError(f"beta must be non-negative, got {beta}")

    A, where = estimate_atmospheric_light(image, depth)
    logger.info("Atmospheric light %s at %s", tuple(round(c, 4) for c in A), where)

    t = transmission_map(depth, beta).data[:, :, np.newaxis]
    A = A.to_array()
    return PixelBuffer(A + (image.data - A) / t)
