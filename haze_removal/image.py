"""
Dense 2D pixel buffers.

A :class:`PixelBuffer` owns a row-major ``numpy`` array holding either one
scalar per pixel (shape ``(H, W)``) or an RGB colour per pixel (shape
``(H, W, 3)``). Buffers are treated as values: arithmetic always returns a new
buffer, and constructors copy their input so no two buffers share storage.
"""

from __future__ import annotations

import operator
from typing import Callable, Optional, Tuple, Union

import numpy as np

from .errors import DimensionMismatch
from .image_view import ImageView
from .pixel import Color, Coord, clamp

DTYPE = np.float64

Operand = Union["PixelBuffer", float, int]


class PixelBuffer:
    """Scalar or 3-channel image with bounds-safe pixel access."""

    __array_ufunc__ = None  # numpy operands defer to our reflected operators

    def __init__(self, data: np.ndarray) -> None:
        data = np.array(data, dtype=DTYPE, copy=True)
        if data.ndim == 3 and data.shape[2] != 3:
            raise ValueError(f"Colour buffers need 3 channels, got shape {data.shape}")
        if data.ndim not in (2, 3):
            raise ValueError(f"Expected (H, W) or (H, W, 3) data, got shape {data.shape}")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError(f"Buffers need at least one pixel, got shape {data.shape}")
        self._data = data

    # ─── Construction ──────────────────────────────────────────────
    @classmethod
    def zeros(cls, width: int, height: int, channels: int = 1) -> "PixelBuffer":
        shape = (height, width) if channels == 1 else (height, width, channels)
        return cls(np.zeros(shape, dtype=DTYPE))

    @classmethod
    def filled(cls, width: int, height: int, value: Union[float, Color]) -> "PixelBuffer":
        if isinstance(value, Color):
            return cls(np.broadcast_to(value.to_array(), (height, width, 3)))
        return cls(np.full((height, width), value, dtype=DTYPE))

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self._data)

    # ─── Shape ─────────────────────────────────────────────────────
    @property
    def data(self) -> np.ndarray:
        """Underlying row-major array. Mutating it mutates this buffer."""
        return self._data

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def channels(self) -> int:
        return 1 if self._data.ndim == 2 else self._data.shape[2]

    @property
    def is_color(self) -> bool:
        return self._data.ndim == 3

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self.width, self.height

    def size(self) -> int:
        return self.width * self.height

    # ─── Views ─────────────────────────────────────────────────────
    def get_view(self, offset: Optional[Coord] = None,
                 width: Optional[int] = None, height: Optional[int] = None) -> ImageView:
        """View covering the whole buffer, or a clamped subset of it."""
        full = ImageView.covering(self.width, self.height)
        if offset is None:
            return full
        width = self.width if width is None else width
        height = self.height if height is None else height
        return ImageView(offset, width, height, full.rect)

    def region(self, view: ImageView) -> np.ndarray:
        """Read-only array of the pixels covered by ``view``."""
        out = self._data[view.slices()]
        out.flags.writeable = False
        return out

    # ─── Pixel access ──────────────────────────────────────────────
    def get(self, coord: Coord) -> Union[float, Color]:
        """Pixel at ``coord``, clamped to the buffer's borders."""
        x = clamp(coord.x, 0, self.width - 1)
        y = clamp(coord.y, 0, self.height - 1)
        return self._wrap(self._data[y, x])

    def get_unsafe(self, coord: Coord) -> Union[float, Color]:
        """Pixel at ``coord``. The caller guarantees it is within bounds."""
        return self._wrap(self._data[coord.y, coord.x])

    __getitem__ = get

    def _wrap(self, value):
        if self.is_color:
            return Color.from_array(value)
        return float(value)

    # ─── Arithmetic ────────────────────────────────────────────────
    def _check_sizes(self, other: "PixelBuffer") -> None:
        if self._data.shape != other._data.shape:
            raise DimensionMismatch(
                "Binary arithmetic operator on two images of different sizes: "
                f"{self._data.shape} and {other._data.shape}"
            )

    def _binary(self, other: Operand, op: Callable) -> "PixelBuffer":
        if isinstance(other, PixelBuffer):
            self._check_sizes(other)
            return PixelBuffer(op(self._data, other._data))
        if np.ndim(other) != 0:
            return NotImplemented
        return PixelBuffer(op(self._data, other))

    def _reflected(self, other: Operand, op: Callable) -> "PixelBuffer":
        if np.ndim(other) != 0:
            return NotImplemented
        return PixelBuffer(op(other, self._data))

    def __add__(self, other: Operand) -> "PixelBuffer":
        return self._binary(other, operator.add)

    def __sub__(self, other: Operand) -> "PixelBuffer":
        return self._binary(other, operator.sub)

    def __mul__(self, other: Operand) -> "PixelBuffer":
        return self._binary(other, operator.mul)

    def __truediv__(self, other: Operand) -> "PixelBuffer":
        return self._binary(other, operator.truediv)

    def __radd__(self, other: Operand) -> "PixelBuffer":
        return self._reflected(other, operator.add)

    def __rsub__(self, other: Operand) -> "PixelBuffer":
        return self._reflected(other, operator.sub)

    def __rmul__(self, other: Operand) -> "PixelBuffer":
        return self._reflected(other, operator.mul)

    def __rtruediv__(self, other: Operand) -> "PixelBuffer":
        return self._reflected(other, operator.truediv)

    def __neg__(self) -> "PixelBuffer":
        return PixelBuffer(-self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self._data.shape == other._data.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None

    def __repr__(self) -> str:
        kind = "rgb" if self.is_color else "grey"
        return f"PixelBuffer({self.width}x{self.height}, {kind})"


def split_channels(image: PixelBuffer) -> Tuple[PixelBuffer, PixelBuffer, PixelBuffer]:
    """Split an RGB buffer into three scalar buffers, one per channel."""
    if not image.is_color:
        raise ValueError("split_channels expects a colour buffer.")
    return tuple(PixelBuffer(image.data[:, :, c]) for c in range(3))


def join_channels(r: PixelBuffer, g: PixelBuffer, b: PixelBuffer) -> PixelBuffer:
    """Join three scalar buffers into one RGB buffer."""
    for channel in (r, g, b):
        if channel.is_color:
            raise ValueError("join_channels expects scalar buffers.")
    if not (r.dimensions == g.dimensions == b.dimensions):
        raise DimensionMismatch(
            f"Cannot join channels of sizes {r.dimensions}, {g.dimensions}, {b.dimensions}"
        )
    return PixelBuffer(np.stack([r.data, g.data, b.data], axis=2))
