"""
Guided image filter with a colour guide.

For every local window the input ``p`` is modelled as an affine function of
the guide ``I``: ``p ~ a . I + b``, where ``a`` holds one coefficient per
guide channel. Solving the least-squares fit needs the inverse of the 3x3
local covariance of the guide, which only depends on the guide, radius and
eps. That part lives in :class:`GuidedFilterState` so it can be computed once
and reused for every channel (or image) filtered against the same guide.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import DimensionMismatch, SingularMatrixError
from .filters import box_filter
from .image import PixelBuffer, join_channels, split_channels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymmetricMatrix3:
    """
    Per-pixel symmetric 3x3 matrices, stored as their six distinct entries.

    Each entry is a scalar :class:`PixelBuffer`; entry ``rg`` is row r,
    column g (equal to column r, row g).
    """

    rr: PixelBuffer
    rg: PixelBuffer
    rb: PixelBuffer
    gg: PixelBuffer
    gb: PixelBuffer
    bb: PixelBuffer

    def _first_cofactor_row(self) -> Tuple[PixelBuffer, PixelBuffer, PixelBuffer]:
        return (
            self.gg * self.bb - self.gb * self.gb,
            self.gb * self.rb - self.rg * self.bb,
            self.rg * self.gb - self.gg * self.rb,
        )

    def invert(self) -> "SymmetricMatrix3":
        """
        Invert every matrix with the adjugate method.

        Raises:
            SingularMatrixError: if any determinant is zero or not finite.
        """
        cof_rr, cof_rg, cof_rb = self._first_cofactor_row()
        cof_gg = self.rr * self.bb - self.rb * self.rb
        cof_gb = self.rb * self.rg - self.rr * self.gb
        cof_bb = self.rr * self.gg - self.rg * self.rg

        det = cof_rr * self.rr + cof_rg * self.rg + cof_rb * self.rb
        bad = (det.data == 0.0) | ~np.isfinite(det.data)
        if bad.any():
            y, x = np.argwhere(bad)[0]
            raise SingularMatrixError(
                f"Guide covariance is singular at {int(bad.sum())} pixel(s), first at ({x}, {y})"
            )

        return SymmetricMatrix3(
            cof_rr / det, cof_rg / det, cof_rb / det,
            cof_gg / det, cof_gb / det, cof_bb / det,
        )

    def apply(self, r: PixelBuffer, g: PixelBuffer, b: PixelBuffer
              ) -> Tuple[PixelBuffer, PixelBuffer, PixelBuffer]:
        """Multiply each matrix by the per-pixel vector ``(r, g, b)``."""
        return (
            self.rr * r + self.rg * g + self.rb * b,
            self.rg * r + self.gg * g + self.gb * b,
            self.rb * r + self.gb * g + self.bb * b,
        )


@dataclass(frozen=True)
class GuidedFilterState:
    """Guide statistics shared by every filtering call with the same guide."""

    radius: int
    eps: float
    guide: Tuple[PixelBuffer, PixelBuffer, PixelBuffer]
    mean: Tuple[PixelBuffer, PixelBuffer, PixelBuffer]
    inv_cov: SymmetricMatrix3

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self.guide[0].dimensions

    @classmethod
    def from_guide(cls, guide: PixelBuffer, radius: int, eps: float) -> "GuidedFilterState":
        if not guide.is_color:
            raise ValueError("The guide image must be an RGB buffer.")
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius}")
        if eps < 0:
            raise ValueError(f"eps must be non-negative, got {eps}")

        I_r, I_g, I_b = split_channels(guide)
        mean_r = box_filter(I_r, radius)
        mean_g = box_filter(I_g, radius)
        mean_b = box_filter(I_b, radius)

        def cov(x, y, mean_x, mean_y):
            return box_filter(x * y, radius) - mean_x * mean_y

        cov_mat = SymmetricMatrix3(
            rr=cov(I_r, I_r, mean_r, mean_r) + eps,
            rg=cov(I_r, I_g, mean_r, mean_g),
            rb=cov(I_r, I_b, mean_r, mean_b),
            gg=cov(I_g, I_g, mean_g, mean_g) + eps,
            gb=cov(I_g, I_b, mean_g, mean_b),
            bb=cov(I_b, I_b, mean_b, mean_b) + eps,
        )
        logger.debug("Guided filter state: %dx%d, radius %d, eps %g",
                     guide.width, guide.height, radius, eps)

        return cls(
            radius=radius,
            eps=eps,
            guide=(I_r, I_g, I_b),
            mean=(mean_r, mean_g, mean_b),
            inv_cov=cov_mat.invert(),
        )


def guided_filter_channel(image: PixelBuffer, state: GuidedFilterState) -> PixelBuffer:
    """Filter one scalar channel using precomputed guide statistics."""
    if image.is_color:
        raise ValueError("guided_filter_channel expects a scalar buffer.")
    if image.dimensions != state.dimensions:
        raise DimensionMismatch(
            f"Input is {image.dimensions} but the guide is {state.dimensions}"
        )

    r = state.radius
    I_r, I_g, I_b = state.guide
    mean_r, mean_g, mean_b = state.mean

    mean_p = box_filter(image, r)
    cov_r = box_filter(I_r * image, r) - mean_r * mean_p
    cov_g = box_filter(I_g * image, r) - mean_g * mean_p
    cov_b = box_filter(I_b * image, r) - mean_b * mean_p

    a_r, a_g, a_b = state.inv_cov.apply(cov_r, cov_g, cov_b)
    b = mean_p - a_r * mean_r - a_g * mean_g - a_b * mean_b

    return (box_filter(a_r, r) * I_r
            + box_filter(a_g, r) * I_g
            + box_filter(a_b, r) * I_b
            + box_filter(b, r))


def guided_filter(image: PixelBuffer, guide: PixelBuffer, radius: int, eps: float) -> PixelBuffer:
    """
    Edge-preserving smoothing of ``image`` guided by the RGB ``guide``.

    Args:
        image: scalar or RGB buffer with the guide's dimensions.
        guide: RGB buffer whose edges are preserved.
        radius: window half-width.
        eps: regulariser added to the guide covariance diagonal.

    Returns:
        Filtered buffer of the same kind as ``image``.
    """
    state = GuidedFilterState.from_guide(guide, radius, eps)

    if not image.is_color:
        return guided_filter_channel(image, state)

    channels = [guided_filter_channel(c, state) for c in split_channels(image)]
    return join_channels(*channels)
