"""
Pixel-level value types: integer coordinates and RGB colours.

Colours are stored as linear floats nominally in [0, 1]; the range is not
enforced so that intermediate results (e.g. recovered radiance) may overshoot.
The vectorized helpers operate on ``(..., 3)`` arrays and agree exactly with
the scalar :class:`Color` methods.
"""

from dataclasses import dataclass
from typing import Iterator, Union

import numpy as np

LUMINANCE_WEIGHTS = (0.2126, 0.7152, 0.0722)

Number = Union[int, float]


def clamp(x: Number, low: Number, high: Number) -> Number:
    """Clamp a value between two extremes."""
    return min(max(x, low), high)


@dataclass(frozen=True)
class Coord:
    """2D pixel coordinate."""

    x: int = 0
    y: int = 0

    def __add__(self, other: "Coord") -> "Coord":
        return Coord(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Coord") -> "Coord":
        return Coord(self.x - other.x, self.y - other.y)

    def __iter__(self) -> Iterator[int]:
        yield self.x
        yield self.y

    def __repr__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True)
class Color:
    """RGB colour as three floats."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0

    @classmethod
    def grey(cls, value: float) -> "Color":
        return cls(value, value, value)

    @classmethod
    def from_array(cls, values: np.ndarray) -> "Color":
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def to_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=np.float64)

    @property
    def luminance(self) -> float:
        wr, wg, wb = LUMINANCE_WEIGHTS
        return wr * self.r + wg * self.g + wb * self.b

    @property
    def saturation(self) -> float:
        value = self.luminance
        if value == 0.0:
            return 0.0
        return (max(self.r, self.g, self.b) - min(self.r, self.g, self.b)) / value

    def with_luminance(self, value: float) -> "Color":
        """Return a copy rescaled so that its luminance equals ``value``."""
        current = self.luminance
        if current == 0.0:
            return Color.grey(value)
        return self * (value / current)

    def __add__(self, other: "Color") -> "Color":
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def __sub__(self, other: "Color") -> "Color":
        return Color(self.r - other.r, self.g - other.g, self.b - other.b)

    def __mul__(self, factor: float) -> "Color":
        return Color(self.r * factor, self.g * factor, self.b * factor)

    __rmul__ = __mul__

    def __truediv__(self, denom: float) -> "Color":
        return Color(self.r / denom, self.g / denom, self.b / denom)

    def __iter__(self) -> Iterator[float]:
        yield self.r
        yield self.g
        yield self.b


# ─── Vectorized helpers ────────────────────────────────────────────

def luminance(rgb: np.ndarray) -> np.ndarray:
    """Per-pixel luminance of an ``(..., 3)`` array."""
    return (LUMINANCE_WEIGHTS[0] * rgb[..., 0]
            + LUMINANCE_WEIGHTS[1] * rgb[..., 1]
            + LUMINANCE_WEIGHTS[2] * rgb[..., 2])


def saturation(rgb: np.ndarray) -> np.ndarray:
    """Per-pixel saturation ``(max - min) / luminance``; 0 where luminance is 0."""
    lum = luminance(rgb)
    spread = rgb.max(axis=-1) - rgb.min(axis=-1)
    out = np.zeros_like(lum)
    np.divide(spread, lum, out=out, where=lum != 0.0)
    return out


def linear_to_srgb(values):
    """Apply the sRGB transfer function to linear values (scalar or array)."""
    values = np.asarray(values, dtype=np.float64)
    low = values * 12.92
    high = 1.055 * np.power(np.maximum(values, 0.0031308), 1.0 / 2.4) - 0.055
    return np.where(values <= 0.0031308, low, high)


def srgb_to_linear(values):
    """Inverse of :func:`linear_to_srgb`."""
    values = np.asarray(values, dtype=np.float64)
    low = values / 12.92
    high = np.power((np.maximum(values, 0.04045) + 0.055) / 1.055, 2.4)
    return np.where(values <= 0.04045, low, high)
