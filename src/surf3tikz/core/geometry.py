from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class AxisRange:
    """Value range of one axis. A bound of None is unresolved (left to autoscaling)."""

    lo: float | None
    hi: float | None

    @property
    def resolved(self) -> bool:
        return self.lo is not None and self.hi is not None

    def as_tuple(self) -> tuple[float, float]:
        if not self.resolved:
            raise ValueError("axis range is not resolved")
        return float(self.lo), float(self.hi)  # type: ignore[arg-type]


AxisRanges = tuple[AxisRange, AxisRange, AxisRange]


@dataclass(frozen=True)
class ViewTransform:
    """
    Snapshot of the scene view.

    Angles follow the matplotlib convention (`Axes3D.azim`, `Axes3D.elev`), in degrees.
    `box_aspect` is the relative size of the drawn box along x, y, z.
    """

    azimuth_deg: float
    elevation_deg: float
    box_aspect: tuple[float, float, float] = (1.0, 1.0, 1.0)


def resolve_axis_ranges(ranges: Sequence[AxisRange], series: Sequence[np.ndarray]) -> AxisRanges:
    """
    Replace every unresolved bound with the tightest bound covering all plotted data on that axis.

    `series` holds one (N,3) array of x/y/z values per plotted primitive. Non-finite values are ignored.
    Explicit bounds are returned unchanged.
    """
    if len(ranges) != 3:
        raise ValueError("expected three axis ranges (x, y, z)")

    if series:
        data = np.concatenate([np.asarray(s, dtype=np.float64).reshape(-1, 3) for s in series], axis=0)
    else:
        data = np.zeros((0, 3), dtype=np.float64)

    out: list[AxisRange] = []
    for axis, r in enumerate(ranges):
        if r.resolved:
            out.append(r)
            continue
        values = data[:, axis]
        values = values[np.isfinite(values)]
        if values.size == 0:
            raise ValueError(f"axis {'xyz'[axis]} has an unresolved bound and no plotted data")
        lo = float(np.min(values)) if r.lo is None else float(r.lo)
        hi = float(np.max(values)) if r.hi is None else float(r.hi)
        out.append(AxisRange(lo, hi))
    return out[0], out[1], out[2]


def bounding_box(ranges: Sequence[AxisRange]) -> np.ndarray:
    """
    Returns the (8,3) corners of the axis-aligned box spanned by resolved ranges.

    Corner i takes the upper x bound if bit 2 of i is set, upper y for bit 1 and upper z for bit 0.
    """
    limits = [r.as_tuple() for r in ranges]
    return np.array(list(itertools.product(*limits)), dtype=np.float64)


def _normalized(points: np.ndarray, ranges: Sequence[AxisRange], box_aspect: Sequence[float]) -> np.ndarray:
    lo = np.array([r.as_tuple()[0] for r in ranges], dtype=np.float64)
    hi = np.array([r.as_tuple()[1] for r in ranges], dtype=np.float64)
    span = hi - lo
    span = np.where(span == 0.0, 1.0, span)
    center = 0.5 * (lo + hi)
    return (points - center) / span * np.asarray(box_aspect, dtype=np.float64)


def rotation_to_view(view: ViewTransform) -> np.ndarray:
    """
    (2,3) matrix mapping normalized box coordinates to the projected (u, v) plane.

    Rotation by -azimuth about the vertical axis, then by the elevation about the horizontal axis.
    """
    az = math.radians(float(view.azimuth_deg))
    el = math.radians(float(view.elevation_deg))
    rot_az = np.array(
        [
            [math.cos(az), math.sin(az), 0.0],
            [-math.sin(az), math.cos(az), 0.0],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )
    rot_el = np.array(
        [
            [math.cos(el), 0.0, math.sin(el)],
            [0.0, 1.0, 0.0],
            [-math.sin(el), 0.0, math.cos(el)],
        ],
        dtype=np.float64,
    )
    # Viewer looks along -x after both rotations; keep (y, z) as (u, v).
    return (rot_el @ rot_az)[1:, :]


def project_points(points: np.ndarray, view: ViewTransform, ranges: Sequence[AxisRange]) -> np.ndarray:
    """Orthographic projection of (N,3) data points to (N,2) view-plane coordinates."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    norm = _normalized(pts, ranges, view.box_aspect)
    return norm @ rotation_to_view(view).T


def pixel_to_physical(
    rows: np.ndarray,
    cols: np.ndarray,
    height_px: int,
    screen_ppi: float,
    inch_to_point_ratio: float,
) -> np.ndarray:
    """
    Map pixel centroids (row, col; origin top-left) to physical positions (x, y; origin bottom-left).

    The result is in points: pixels / screen_ppi gives inches, / inch_to_point_ratio gives points.
    Returns an (N,2) array.
    """
    rows = np.asarray(rows, dtype=np.float64).reshape(-1)
    cols = np.asarray(cols, dtype=np.float64).reshape(-1)
    flipped = np.stack([cols, float(height_px) - rows], axis=-1)
    return flipped / float(screen_ppi) / float(inch_to_point_ratio)
