"""Exception types raised by the haze removal pipeline."""

from pathlib import Path
from typing import Union


class HazeRemovalError(Exception):
    """Base class for every error raised by this package."""


class DimensionMismatch(HazeRemovalError, ValueError):
    """Binary operation on images of different sizes."""


class DegenerateInput(HazeRemovalError):
    """Input that the algorithms cannot process, e.g. a perfectly flat depth map."""


class SingularMatrixError(DegenerateInput):
    """Guide covariance matrix could not be inverted."""


class _PathError(HazeRemovalError):
    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self._verb} '{self.path}': {reason}")


class LoadError(_PathError):
    _verb = "Failed to read image"


class SaveError(_PathError):
    _verb = "Failed to write image"
