import numpy as np
import pytest

from surf3tikz.core.anchors import (
    BOX_CORNER_CANDIDATES,
    SelectionError,
    SurfaceGrid,
    projection_classes,
    select_box_anchors,
    select_surface_anchors,
    surface_anchor_cells,
)
from surf3tikz.core.geometry import AxisRange, ViewTransform, bounding_box, project_points

RANGES_A = (AxisRange(0.0, 10.0), AxisRange(0.0, 5.0), AxisRange(-1.0, 1.0))
UNIT = (AxisRange(0.0, 1.0), AxisRange(0.0, 1.0), AxisRange(0.0, 1.0))


def test_box_anchors_default_matlab_like_view():
    view = ViewTransform(azimuth_deg=-37.5, elevation_deg=30.0)
    corners = bounding_box(RANGES_A)
    idx = select_box_anchors(corners, view, RANGES_A)
    assert idx in BOX_CORNER_CANDIDATES
    assert idx == (0, 3, 5, 6)
    np.testing.assert_array_equal(
        corners[list(idx)],
        [[0.0, 0.0, -1.0], [0.0, 5.0, 1.0], [10.0, 0.0, 1.0], [10.0, 5.0, -1.0]],
    )


def test_box_anchors_project_to_distinct_locations():
    rng = np.random.default_rng(1)
    corners = bounding_box(RANGES_A)
    for az, el in rng.uniform(low=[-180.0, -80.0], high=[180.0, 80.0], size=(50, 2)):
        view = ViewTransform(azimuth_deg=float(az), elevation_deg=float(el))
        if len(set(projection_classes(corners, view, RANGES_A).tolist())) != 8:
            continue
        idx = select_box_anchors(corners, view, RANGES_A)
        uv = project_points(corners[list(idx)], view, RANGES_A)
        d = np.linalg.norm(uv[:, None, :] - uv[None, :, :], axis=-1)
        assert np.all(d[~np.eye(4, dtype=bool)] > 1e-9)


def test_box_anchors_deterministic():
    view = ViewTransform(azimuth_deg=12.0, elevation_deg=47.0)
    corners = bounding_box(RANGES_A)
    first = select_box_anchors(corners, view, RANGES_A)
    for _ in range(5):
        assert select_box_anchors(corners, view, RANGES_A) == first


def test_face_diagonal_view_fails_without_override():
    view = ViewTransform(azimuth_deg=45.0, elevation_deg=0.0)
    corners = bounding_box(UNIT)
    with pytest.raises(SelectionError):
        select_box_anchors(corners, view, UNIT)
    assert select_box_anchors(corners, view, UNIT, override=(0, 1, 2, 4)) == (0, 1, 2, 4)


def test_override_is_validated():
    corners = bounding_box(UNIT)
    view = ViewTransform(azimuth_deg=-60.0, elevation_deg=30.0)
    with pytest.raises(SelectionError):
        select_box_anchors(corners, view, UNIT, override=(0, 1, 2))
    with pytest.raises(SelectionError):
        select_box_anchors(corners, view, UNIT, override=(0, 1, 2, 9))


def test_face_diagonal_view_merges_corners_of_both_tetrahedra():
    ranges = UNIT
    view = ViewTransform(azimuth_deg=45.0, elevation_deg=0.0, box_aspect=(1.0, 1.0, 1.0))
    labels = projection_classes(bounding_box(ranges), view, ranges)
    assert labels[0] == labels[6]
    assert labels[1] == labels[7]


def test_surface_cells_follow_half_up_rounding():
    z = np.zeros((5, 5))
    z[1, 3] = 2.0
    z[3, 1] = -2.0
    cells = surface_anchor_cells(z.shape, z)
    assert cells[:8] == [(0, 0), (0, 2), (0, 4), (2, 0), (4, 0), (2, 2), (4, 2), (4, 4)]
    assert cells[8] == (1, 3)
    assert cells[9] == (3, 1)


def test_surface_anchors_plane_grid():
    xx, yy = np.meshgrid(np.arange(10.0), np.arange(10.0))
    grid = SurfaceGrid(xx, yy, xx + yy)
    ranges = (AxisRange(0.0, 9.0), AxisRange(0.0, 9.0), AxisRange(0.0, 18.0))
    view = ViewTransform(azimuth_deg=-60.0, elevation_deg=30.0)
    cells, points = select_surface_anchors(grid, view, ranges)
    # Maximum (9,9) and minimum (0,0) are grid corners already, so only eight anchors remain.
    assert cells == [(0, 0), (0, 4), (0, 9), (4, 0), (9, 0), (4, 4), (9, 4), (9, 9)]
    np.testing.assert_array_equal(points[5], [4.0, 4.0, 8.0])
    np.testing.assert_array_equal(points[-1], [9.0, 9.0, 18.0])


def test_surface_anchors_interior_extremum_and_nan():
    xx, yy = np.meshgrid(np.arange(10.0), np.arange(10.0))
    zz = -((xx - 3.0) ** 2) - (yy - 5.0) ** 2
    zz[9, 9] = np.nan
    grid = SurfaceGrid(xx, yy, zz)
    ranges = (AxisRange(0.0, 9.0), AxisRange(0.0, 9.0), AxisRange(-61.0, 0.0))
    view = ViewTransform(azimuth_deg=-60.0, elevation_deg=30.0)
    cells, points = select_surface_anchors(grid, view, ranges)
    assert (9, 9) not in cells
    assert (5, 3) in cells
    assert len(cells) == 8
    assert np.all(np.isfinite(points))


def test_surface_grid_rejects_mismatched_shapes():
    with pytest.raises(ValueError):
        SurfaceGrid(np.zeros((2, 3)), np.zeros((2, 3)), np.zeros((3, 2)))


def test_surface_anchors_coinciding_in_projection_are_dropped():
    xx, yy = np.meshgrid(np.arange(10.0), np.arange(10.0))
    grid = SurfaceGrid(xx, yy, yy.copy())
    ranges = (AxisRange(0.0, 9.0), AxisRange(0.0, 9.0), AxisRange(0.0, 9.0))
    # Side view along x: every cell of a grid row lands on the same spot.
    view = ViewTransform(azimuth_deg=0.0, elevation_deg=0.0)
    cells, points = select_surface_anchors(grid, view, ranges)
    assert cells == [(0, 0), (4, 0), (9, 0)]
    uv = project_points(points, view, ranges)
    d = np.linalg.norm(uv[:, None, :] - uv[None, :, :], axis=-1)
    assert np.all(d[~np.eye(len(cells), dtype=bool)] > 1e-9)
