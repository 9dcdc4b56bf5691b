"""
Single-image haze removal.

This package contains:
- Pixel buffers, colours and image views
- An O(n) box filter and a colour-guided image filter
- Depth estimation with the colour attenuation prior and haze removal
"""

from .errors import (
    HazeRemovalError,
    DimensionMismatch,
    DegenerateInput,
    SingularMatrixError,
    LoadError,
    SaveError,
)
from .pixel import (
    Coord,
    Color,
    linear_to_srgb,
    srgb_to_linear,
)
from .image_view import ImageView
from .image import (
    PixelBuffer,
    split_channels,
    join_channels,
)
from .filters import (
    WindowAccumulator,
    box_filter,
    min_filter,
    normalise,
)
from .guided_filter import (
    SymmetricMatrix3,
    GuidedFilterState,
    guided_filter_channel,
    guided_filter,
)
from .haze import (
    estimate_raw_depth,
    estimate_depth,
    estimate_atmospheric_light,
    transmission_map,
    remove_haze,
)
from .image_io import (
    load_color_image,
    load_scalar_image,
    save_color_image,
    save_scalar_image,
)

__all__ = [
    "HazeRemovalError",
    "DimensionMismatch",
    "DegenerateInput",
    "SingularMatrixError",
    "LoadError",
    "SaveError",
    "Coord",
    "Color",
    "linear_to_srgb",
    "srgb_to_linear",
    "ImageView",
    "PixelBuffer",
    "split_channels",
    "join_channels",
    "WindowAccumulator",
    "box_filter",
    "min_filter",
    "normalise",
    "SymmetricMatrix3",
    "GuidedFilterState",
    "guided_filter_channel",
    "guided_filter",
    "estimate_raw_depth",
    "estimate_depth",
    "estimate_atmospheric_light",
    "transmission_map",
    "remove_haze",
    "load_color_image",
    "load_scalar_image",
    "save_color_image",
    "save_scalar_image",
]

__version__ = "0.1.0"
