import numpy as np
import pytest

from haze_removal import PixelBuffer


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_rgb(rng):
    return PixelBuffer(rng.random((12, 15, 3)))


@pytest.fixture
def random_grey(rng):
    return PixelBuffer(rng.random((12, 15)))


@pytest.fixture
def hazy_rgb():
    """Saturated scene on the left fading into flat grey haze on the right."""
    h, w = 24, 32
    yy, xx = np.mgrid[0:h, 0:w]
    scene = np.stack([
        0.2 + 0.6 * (yy / (h - 1)),
        0.1 + 0.3 * ((xx + yy) % 5) / 4.0,
        0.6 - 0.5 * (yy / (h - 1)),
    ], axis=2)
    haze = (xx / (w - 1))[:, :, np.newaxis]
    return PixelBuffer(scene * (1.0 - haze) + 0.85 * haze)
