"""Rectangular windows over an image's coordinate space."""

from typing import Iterator, Tuple

from .pixel import Coord, clamp

Rect = Tuple[int, int, int, int]  # x0, y0, x1, y1 (exclusive)


class ImageView:
    """
    View over a rectangular subset of an image.

    The view never owns pixel data; it only describes which coordinates of
    its parent are covered. On construction the rectangle is clamped to
    ``limit`` (the parent's extent), so a view partly outside the parent
    shrinks to the overlap and a view entirely outside it is empty.
    Iterating a view yields :class:`Coord` values in row-major order and can
    be repeated any number of times.
    """

    __slots__ = ("_offset", "_width", "_height", "_limit")

    def __init__(self, offset: Coord, width: int, height: int, limit: Rect) -> None:
        lx0, ly0, lx1, ly1 = limit
        x0 = clamp(offset.x, lx0, lx1)
        y0 = clamp(offset.y, ly0, ly1)
        x1 = clamp(offset.x + width, x0, lx1)
        y1 = clamp(offset.y + height, y0, ly1)

        self._offset = Coord(x0, y0)
        self._width = x1 - x0
        self._height = y1 - y0
        self._limit = limit

    @classmethod
    def covering(cls, width: int, height: int) -> "ImageView":
        """View over a whole ``width`` x ``height`` image."""
        return cls(Coord(0, 0), width, height, (0, 0, width, height))

    @property
    def offset(self) -> Coord:
        return self._offset

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def rect(self) -> Rect:
        return (self._offset.x, self._offset.y,
                self._offset.x + self._width, self._offset.y + self._height)

    def is_empty(self) -> bool:
        return self._width == 0 or self._height == 0

    def sub_view(self, offset: Coord, width: int, height: int) -> "ImageView":
        """New view relative to this view's offset, clamped to this view."""
        return ImageView(self._offset + offset, width, height, self.rect)

    def centred_sub_view(self, centre: Coord, width: int, height: int) -> "ImageView":
        """
        New view of the given size centred on ``centre``.

        ``centre`` is an absolute coordinate (as produced by iterating a view),
        the window spans ``centre - (width // 2, height // 2)`` onwards.
        """
        corner = centre - Coord(width // 2, height // 2)
        return ImageView(corner, width, height, self.rect)

    def slices(self) -> Tuple[slice, slice]:
        """Row and column slices selecting this view from a ``(H, W, ...)`` array."""
        x0, y0, x1, y1 = self.rect
        return slice(y0, y1), slice(x0, x1)

    def __iter__(self) -> Iterator[Coord]:
        x0, y0, x1, y1 = self.rect
        for y in range(y0, y1):
            for x in range(x0, x1):
                yield Coord(x, y)

    def __len__(self) -> int:
        return self._width * self._height

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageView):
            return NotImplemented
        return (self._offset == other._offset
                and self._width == other._width
                and self._height == other._height)

    def __hash__(self) -> int:
        return hash((self._offset, self._width, self._height))

    def __repr__(self) -> str:
        return f"ImageView(offset={self._offset!r}, width={self._width}, height={self._height})"
