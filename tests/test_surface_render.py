import numpy as np
import pytest
from PIL import Image

from mandelview.renderers.field import compute_field
from mandelview.renderers.surface import (
    SurfaceOptions,
    build_surface,
    render_height_surface,
    render_surface,
)
from mandelview.surface.heightmap import heights_from_image, heights_from_iterations
from mandelview.viewport import Viewport

W, H, ITER = 64, 48, 40


@pytest.fixture(scope="module")
def field():
    return compute_field(Viewport(-0.5, 0.0, 1.0), W, H, ITER, backend="numpy")


def test_render_surface_image(field):
    img = render_surface(field, ITER, "ocean", options=SurfaceOptions(resolution=4, smoothing=2))
    assert isinstance(img, Image.Image)
    assert img.size == (W, H)
    assert np.asarray(img).max() > 0


def test_all_in_set_field_renders_black():
    field = np.full((20, 30), ITER, dtype=np.int32)
    img = render_surface(field, ITER, "classic", options=SurfaceOptions(resolution=2))
    assert np.asarray(img).max() == 0


def test_mesh_is_sorted_and_coloured(field):
    heights = heights_from_iterations(field, ITER)
    mesh = build_surface(heights, field, ITER, "neon", W, H, SurfaceOptions(pitch=40, roll=10, yaw=-30))
    assert len(mesh.colors) == len(mesh.triangles)
    assert (np.diff(mesh.triangles.avg_z) <= 0).all()


def test_empty_field_does_not_raise():
    img = render_surface(np.zeros((0, 0), dtype=np.int32), ITER, width=10, height=10)
    assert img.size == (10, 10)


def test_surface_from_captured_region():
    shot = Image.new("RGB", (40, 40), (255, 255, 255))
    shot.paste((20, 20, 20), (10, 10, 30, 30))
    heights = heights_from_image(shot, box=(5, 5, 35, 35))
    img = render_height_surface(heights, ITER, "copper", width=60, height=60,
                                options=SurfaceOptions(resolution=3, height_scale=30))
    assert img.size == (60, 60)
    assert np.asarray(img).max() > 0
