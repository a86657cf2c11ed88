import numpy as np
import pytest

from mandelview.surface.mesh import (
    CAMERA_DISTANCE,
    SurfaceGrid,
    build_grid,
    cull_behind_camera,
    depth_sort,
    project,
    rotation_matrix,
    tessellate,
)


@pytest.fixture
def ramp_grid():
    rows, cols = 12, 16
    heights = np.linspace(0, 1, rows * cols).reshape(rows, cols)
    iterations = np.arange(rows * cols).reshape(rows, cols) % 50
    return build_grid(heights, iterations, cols, rows, resolution=2, height_scale=40.0)


def test_grid_layout_is_centred(ramp_grid):
    assert (ramp_grid.rows, ramp_grid.cols) == (6, 8)
    assert len(ramp_grid) == 48
    first = ramp_grid.point(0)
    assert (first.x, first.y) == (-8.0, -6.0)
    assert (first.grid_x, first.grid_y) == (0, 0)
    assert first.z == 0.0
    last = ramp_grid.point(47)
    assert (last.grid_x, last.grid_y) == (14, 10)
    assert last.z < 0


def test_grid_from_short_map_clamps_lookups():
    heights = np.ones((2, 2))
    grid = build_grid(heights, np.zeros((1, 1), dtype=int), 10, 10, resolution=3, height_scale=5.0)
    assert len(grid) == 16
    assert (grid.positions[:, 2] == -5.0).all()


def test_empty_map_builds_empty_grid():
    grid = build_grid(np.zeros((0, 0)), np.zeros((0, 0)), 10, 10)
    assert len(grid) == 0
    projected = project(grid, (30, 0, 45), 10, 10)
    assert len(tessellate(projected)) == 0


def test_rejects_zero_resolution():
    with pytest.raises(ValueError):
        build_grid(np.ones((4, 4)), np.ones((4, 4)), 4, 4, resolution=0)


def test_rotation_identity_and_order():
    np.testing.assert_allclose(rotation_matrix(0, 0, 0), np.eye(3))
    # pitch first: y tips into z, then yaw about z leaves it there
    v = rotation_matrix(90, 0, 90) @ np.array([0.0, 1.0, 0.0])
    np.testing.assert_allclose(v, [0, 0, 1], atol=1e-12)
    r = rotation_matrix(20, 35, -50)
    np.testing.assert_allclose(r @ r.T, np.eye(3), atol=1e-12)


def test_perspective_projection():
    grid = SurfaceGrid(
        positions=np.array([[10.0, -4.0, 0.0], [10.0, -4.0, CAMERA_DISTANCE]]),
        iterations=np.array([1, 2]),
        grid_x=np.array([0, 1]),
        grid_y=np.array([0, 0]),
        rows=1,
        cols=2,
    )
    p = project(grid, (0, 0, 0), 200, 100)
    a, b = p.point(0), p.point(1)
    assert (a.x, a.y, a.scale) == (110.0, 46.0, 1.0)
    assert b.scale == pytest.approx(0.5)
    assert (b.x, b.y) == pytest.approx((105.0, 48.0))
    assert b.z == CAMERA_DISTANCE


def test_points_behind_camera_do_not_flip():
    grid = SurfaceGrid(np.array([[5.0, 5.0, -2 * CAMERA_DISTANCE]]), np.array([0]),
                       np.array([0]), np.array([0]), 1, 1)
    p = project(grid, (0, 0, 0), 10, 10)
    assert p.scale[0] > 0


def test_two_triangles_per_quad_with_one_diagonal(ramp_grid):
    projected = project(ramp_grid, (30, 10, 45), 16, 12)
    tris = tessellate(projected)
    quads = (ramp_grid.rows - 1) * (ramp_grid.cols - 1)
    assert len(tris) == 2 * quads
    cols = ramp_grid.cols
    for q in range(quads):
        upper, lower = tris.indices[2 * q], tris.indices[2 * q + 1]
        a = (q // (cols - 1)) * cols + q % (cols - 1)
        assert set(upper) | set(lower) == {a, a + 1, a + cols, a + cols + 1}
        # shared edge is always the b-c diagonal
        assert set(upper) & set(lower) == {a + 1, a + cols}


def test_depth_sort_is_back_to_front(ramp_grid):
    projected = project(ramp_grid, (50, -20, 120), 16, 12)
    tris = depth_sort(tessellate(projected))
    assert (np.diff(tris.avg_z) <= 0).all()
    t = tris.triangle(0, projected)
    assert t.avg_z == pytest.approx(np.mean([c.z for c in t.corners]))


def test_representative_iteration_keeps_sentinel_only_when_all_in_set():
    grid = build_grid(np.zeros((2, 3)), np.array([[100, 100, 100], [100, 100, 99]]), 3, 2,
                      resolution=1, height_scale=1.0)
    tris = tessellate(project(grid, (0, 0, 0), 3, 2))
    assert list(tris.iterations) == [100, 100, 100, 99]


def test_triangles_crossing_the_camera_plane_are_culled(ramp_grid):
    distance = 20.0
    projected = project(ramp_grid, (0.0, 0.0, 0.0), 16, 12, camera_distance=distance)
    triangles = tessellate(projected)
    kept = cull_behind_camera(triangles, projected, distance)

    assert 0 < len(kept) < len(triangles)
    assert (distance + projected.depth[kept.indices] > 1.0).all()
    assert cull_behind_camera(triangles, projected, CAMERA_DISTANCE) is triangles
