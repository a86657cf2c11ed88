import numpy as np
import pytest
from PIL import Image

from mandelview.surface.heightmap import (
    gaussian_kernel,
    gaussian_kernel_2d,
    height_curve,
    heights_from_image,
    heights_from_iterations,
    pseudo_iterations,
    sample,
    smooth_heights,
)


@pytest.mark.parametrize("radius", range(0, 12))
def test_kernel_weights_sum_to_one(radius):
    k = gaussian_kernel(radius)
    assert len(k) == 2 * radius + 1
    assert k.sum() == pytest.approx(1.0)
    assert gaussian_kernel_2d(radius).sum() == pytest.approx(1.0)
    np.testing.assert_allclose(k, k[::-1])


def test_kernel_rejects_negative_radius():
    with pytest.raises(ValueError):
        gaussian_kernel(-1)


def test_height_curve_shape():
    t = np.linspace(0, 1, 101)
    h = height_curve(t)
    assert h[0] == pytest.approx(0.0)
    assert h[-1] == pytest.approx(1.0)
    assert (np.diff(h) > 0).all()


def test_heights_from_iterations():
    field = np.array([[0, 10, 50], [90, 99, 100]])
    h = heights_from_iterations(field, 100)
    assert h[1, 2] == 0.0  # in-set sentinel sits at sea level
    assert h[0, 0] == pytest.approx(1.0)
    flat = h.ravel()[:5]
    assert (np.diff(flat) < 0).all()
    assert (h >= 0).all() and (h <= 1).all()


def test_heights_from_empty_field():
    assert heights_from_iterations(np.zeros((0, 0), dtype=int), 100).shape == (0, 0)


def test_heights_from_image_inverts_luminance():
    px = np.array([[[255, 255, 255], [0, 0, 0]], [[255, 0, 0], [0, 0, 255]]], dtype=np.uint8)
    h = heights_from_image(px)
    assert h[0, 0] == pytest.approx(0.0)
    assert h[0, 1] == pytest.approx(1.0)
    assert h[1, 0] == pytest.approx((255 - 0.299 * 255) / 255)
    assert h[1, 1] == pytest.approx((255 - 0.114 * 255) / 255)


def test_heights_from_image_region_of_pillow_image():
    img = Image.new("RGB", (10, 8), (255, 255, 255))
    img.paste((0, 0, 0), (2, 2, 6, 5))
    h = heights_from_image(img, box=(2, 2, 6, 5))
    assert h.shape == (3, 4)
    np.testing.assert_allclose(h, 1.0)
    arr = heights_from_image(np.asarray(img), box=(2, 2, 6, 5))
    np.testing.assert_allclose(arr, h)


def test_pseudo_iterations_avoid_sentinel():
    its = pseudo_iterations(np.array([[0.0, 0.5, 1.0]]), 100)
    assert its.max() < 100
    assert its[0, 2] == 0


def test_smoothing_constant_map_is_identity():
    h = np.full((9, 7), 0.42)
    np.testing.assert_allclose(smooth_heights(h, 3), h)


def test_smoothing_truncates_kernel_at_edges():
    h = np.array([[0.0, 0.0, 3.0]])
    w0, w1, _ = gaussian_kernel(1)
    out = smooth_heights(h, 1)
    assert out[0, 0] == pytest.approx(0.0)
    assert out[0, 1] == pytest.approx(3.0 * w0)
    assert out[0, 2] == pytest.approx(3.0 * w1 / (w0 + w1))


def test_smoothing_keeps_range_and_reduces_spikes():
    rng = np.random.default_rng(7)
    h = rng.random((20, 30))
    out = smooth_heights(h, 4)
    assert out.shape == h.shape
    assert out.min() >= h.min() - 1e-12
    assert out.max() <= h.max() + 1e-12
    assert out.std() < h.std()


def test_sample_clamps_out_of_range_indices():
    grid = np.arange(12).reshape(3, 4)
    got = sample(grid, np.array([-5, 2, 99]), np.array([0, 1, 99]))
    assert list(got) == [0, 6, 11]
