from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from surf3tikz.core.geometry import AxisRange, ViewTransform, project_points

logger = logging.getLogger(__name__)

# The two tetrahedra inscribed in the box (even / odd corner-index parity).
# Every pair inside one of them differs in exactly two coordinates.
BOX_CORNER_CANDIDATES: tuple[tuple[int, int, int, int], ...] = (
    (0, 3, 5, 6),
    (1, 2, 4, 7),
)

PROJECTION_DECIMALS = 9


class SelectionError(ValueError):
    pass


@dataclass(frozen=True)
class SurfaceGrid:
    """Parameter grid of one surface: X, Y, Z arrays of identical (rows, cols) shape."""

    x: np.ndarray
    y: np.ndarray
    z: np.ndarray

    def __post_init__(self) -> None:
        shapes = {np.shape(self.x), np.shape(self.y), np.shape(self.z)}
        if len(shapes) != 1 or len(np.shape(self.z)) != 2:
            raise ValueError(f"surface grid arrays must share one 2D shape, got {sorted(shapes)}")

    @property
    def shape(self) -> tuple[int, int]:
        rows, cols = np.shape(self.z)
        return int(rows), int(cols)

    def point(self, row: int, col: int) -> np.ndarray:
        return np.array(
            [float(self.x[row, col]), float(self.y[row, col]), float(self.z[row, col])],
            dtype=np.float64,
        )

    def as_points(self) -> np.ndarray:
        return np.stack(
            [np.asarray(a, dtype=np.float64).reshape(-1) for a in (self.x, self.y, self.z)],
            axis=-1,
        )


def projection_classes(points: np.ndarray, view: ViewTransform, ranges: Sequence[AxisRange]) -> np.ndarray:
    """
    Label each point with the index of its projected location.

    Points sharing a label coincide on screen under `view`. Labels are assigned in order of first appearance.
    """
    uv = np.round(project_points(points, view, ranges), PROJECTION_DECIMALS) + 0.0  # folds -0.0 into 0.0
    seen: dict[tuple[float, float], int] = {}
    labels = np.empty((uv.shape[0],), dtype=np.int64)
    for i, (u, v) in enumerate(uv.tolist()):
        labels[i] = seen.setdefault((u, v), len(seen))
    return labels


def select_box_anchors(
    corners: np.ndarray,
    view: ViewTransform,
    ranges: Sequence[AxisRange],
    override: Sequence[int] | None = None,
) -> tuple[int, int, int, int]:
    """
    Choose four box corners that stay visually distinct under `view`.

    Returns 0-based corner indices into `corners` (as laid out by `bounding_box`).
    Raises SelectionError for degenerate views when no override is given.
    """
    corners = np.asarray(corners, dtype=np.float64).reshape(8, 3)
    if override is not None:
        idx = tuple(int(i) for i in override)
        if len(idx) != 4 or len(set(idx)) != 4 or not all(0 <= i < 8 for i in idx):
            raise SelectionError(f"anchor override must be 4 distinct corner indices in 0..7, got {idx}")
        logger.debug("using anchor override %s", idx)
        return idx  # type: ignore[return-value]

    labels = projection_classes(corners, view, ranges)
    logger.debug("projected corner classes: %s", labels.tolist())
    for candidate in BOX_CORNER_CANDIDATES:
        if len({int(labels[i]) for i in candidate}) == 4:
            return candidate

    raise SelectionError(
        f"no box-corner subset is visually distinct at azimuth={view.azimuth_deg}, "
        f"elevation={view.elevation_deg}; pass an explicit anchor override or change the view"
    )


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def surface_anchor_cells(shape: tuple[int, int], z: np.ndarray) -> list[tuple[int, int]]:
    """
    Grid cells used as anchors, in order: corners and edge midpoints around the grid,
    the grid centre, then the cells of the global maximum and minimum of `z`.
    """
    rows, cols = int(shape[0]), int(shape[1])
    if rows < 1 or cols < 1:
        raise ValueError("surface grid is empty")
    mr = _round_half_up(rows / 2) - 1
    mc = _round_half_up(cols / 2) - 1

    cells = [
        (0, 0),
        (0, mc),
        (0, cols - 1),
        (mr, 0),
        (rows - 1, 0),
        (mr, mc),
        (rows - 1, mc),
        (rows - 1, cols - 1),
    ]
    z = np.asarray(z, dtype=np.float64)
    if np.any(np.isfinite(z)):
        zf = np.where(np.isfinite(z), z, np.nan)
        imax = np.unravel_index(int(np.nanargmax(zf)), z.shape)
        imin = np.unravel_index(int(np.nanargmin(zf)), z.shape)
        cells.append((int(imax[0]), int(imax[1])))
        cells.append((int(imin[0]), int(imin[1])))
    return cells


def select_surface_anchors(
    grid: SurfaceGrid,
    view: ViewTransform,
    ranges: Sequence[AxisRange],
) -> tuple[list[tuple[int, int]], np.ndarray]:
    """
    Up to ten anchors sampled from the surface grid.

    Repeated cells, cells with non-finite coordinates and anchors landing on an earlier anchor's
    projected location are dropped. Returns the kept cells and their (N,3) data points.
    """
    kept_cells: list[tuple[int, int]] = []
    kept_points: list[np.ndarray] = []
    for cell in surface_anchor_cells(grid.shape, grid.z):
        if cell in kept_cells:
            continue
        p = grid.point(*cell)
        if not np.all(np.isfinite(p)):
            logger.debug("skipping non-finite surface cell %s", cell)
            continue
        kept_cells.append(cell)
        kept_points.append(p)

    if not kept_points:
        raise SelectionError("surface grid has no finite anchor candidates")

    points = np.stack(kept_points, axis=0)
    labels = projection_classes(points, view, ranges)
    first = np.array([labels[i] not in labels[:i] for i in range(labels.size)], dtype=bool)
    if not np.all(first):
        logger.debug("dropping surface anchors with coinciding projections: %s", np.flatnonzero(~first).tolist())
    cells = [c for c, keep in zip(kept_cells, first.tolist(), strict=True) if keep]
    return cells, points[first]
