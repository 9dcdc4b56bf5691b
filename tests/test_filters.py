import numpy as np
import pytest

from haze_removal import (
    Coord,
    DegenerateInput,
    PixelBuffer,
    WindowAccumulator,
    box_filter,
    min_filter,
    normalise,
)


def naive_box_filter(buf, radius):
    """Direct clipped-window mean, one window per pixel."""
    out = np.empty_like(buf.data)
    view = buf.get_view()
    size = 2 * radius + 1
    for coord in view:
        window = buf.region(view.centred_sub_view(coord, size, size))
        out[coord.y, coord.x] = window.reshape(-1, *buf.data.shape[2:]).mean(axis=0)
    return out


def naive_min_filter(buf, size):
    out = np.empty_like(buf.data)
    view = buf.get_view()
    for coord in view:
        out[coord.y, coord.x] = buf.region(view.centred_sub_view(coord, size, size)).min()
    return out


def test_accumulator_push_pop():
    acc = WindowAccumulator((2,))
    acc.push(np.array([1.0, 2.0]))
    acc.push(np.array([3.0, 4.0]))
    np.testing.assert_allclose(acc.mean(), [2.0, 3.0])
    acc.pop(np.array([1.0, 2.0]))
    assert acc.count == 1
    np.testing.assert_allclose(acc.mean(), [3.0, 4.0])


@pytest.mark.parametrize("radius", [0, 1, 3, 20])
def test_constant_image_is_unchanged(radius):
    buf = PixelBuffer.filled(9, 7, 0.37)
    np.testing.assert_allclose(box_filter(buf, radius).data, 0.37)


@pytest.mark.parametrize("radius", [0, 1, 2, 5])
def test_matches_naive_mean(random_grey, radius):
    np.testing.assert_allclose(box_filter(random_grey, radius).data,
                               naive_box_filter(random_grey, radius), atol=1e-12)


def test_color_buffers(random_rgb):
    np.testing.assert_allclose(box_filter(random_rgb, 2).data,
                               naive_box_filter(random_rgb, 2), atol=1e-12)


def test_linearity(rng):
    x = PixelBuffer(rng.random((10, 13)))
    y = PixelBuffer(rng.random((10, 13)))
    lhs = box_filter(x * 2.5 + y * -0.75, 3)
    rhs = box_filter(x, 3) * 2.5 + box_filter(y, 3) * -0.75
    np.testing.assert_allclose(lhs.data, rhs.data, atol=1e-12)


@pytest.mark.parametrize("radius", [0, 1, 2, 4])
def test_corner_weight(radius):
    side = 2 * radius + 3
    ones = PixelBuffer.filled(side, side, 1.0)
    weights = box_filter(ones, radius, normalise=False)
    assert weights.get(Coord(0, 0)) == (radius + 1) ** 2
    assert weights.get(Coord(side // 2, side // 2)) == (2 * radius + 1) ** 2

    delta = PixelBuffer.zeros(side, side)
    delta.data[0, 0] = 1.0
    assert box_filter(delta, radius).get(Coord(0, 0)) == pytest.approx(1.0 / (radius + 1) ** 2)


def test_radius_larger_than_image(rng):
    buf = PixelBuffer(rng.random((2, 3)))
    out = box_filter(buf, 10)
    np.testing.assert_allclose(out.data, buf.data.mean())
    weights = box_filter(PixelBuffer.filled(3, 2, 1.0), 10, normalise=False)
    np.testing.assert_allclose(weights.data, 6.0)


def test_box_filter_does_not_mutate_input(random_grey):
    before = random_grey.copy()
    box_filter(random_grey, 2)
    assert random_grey == before


def test_negative_radius_rejected(random_grey):
    with pytest.raises(ValueError):
        box_filter(random_grey, -1)


@pytest.mark.parametrize("size", [1, 2, 3, 4, 7])
def test_min_filter_matches_views(random_grey, size):
    np.testing.assert_array_equal(min_filter(random_grey, size).data,
                                  naive_min_filter(random_grey, size))


def test_min_filter_size_one_is_identity(random_grey):
    assert min_filter(random_grey, 1) == random_grey


def test_min_filter_rejects_bad_input(random_grey, random_rgb):
    with pytest.raises(ValueError):
        min_filter(random_grey, 0)
    with pytest.raises(ValueError):
        min_filter(random_rgb, 3)


def test_normalise_range(random_grey):
    scaled = random_grey * 0.3 + 0.2
    out = normalise(scaled)
    assert out.data.min() == 0.0
    assert out.data.max() == 1.0
    assert np.unravel_index(out.data.argmax(), out.data.shape) == \
        np.unravel_index(scaled.data.argmax(), scaled.data.shape)


def test_normalise_flat_image_is_degenerate():
    with pytest.raises(DegenerateInput):
        normalise(PixelBuffer.filled(4, 4, 0.5))
