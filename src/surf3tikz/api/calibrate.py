from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import numpy as np

from surf3tikz.config import CalibrationConfig
from surf3tikz.core.anchors import select_box_anchors, select_surface_anchors
from surf3tikz.core.geometry import AxisRanges, bounding_box, pixel_to_physical, resolve_axis_ranges
from surf3tikz.core.marker import PixelCentroid, locate_marker, overlay_centroids
from surf3tikz.core.ordering import resolve_order
from surf3tikz.scene.base import SceneHost, WorkingScene

logger = logging.getLogger(__name__)

CalibrationMode = Literal["box", "surface"]


@dataclass(frozen=True)
class CalibrationPair:
    data_point: tuple[float, float, float]
    position_pt: tuple[float, float]


@dataclass(frozen=True)
class CalibrationResult:
    """
    Everything an exporter needs to re-anchor the raster image.

    `pairs` are in the order pgfplots must receive them. `color_range` is the legend range
    when the scene had a colour legend, otherwise the plotted z range.
    """

    mode: CalibrationMode
    pairs: tuple[CalibrationPair, ...]
    axis_ranges: tuple[tuple[float, float], tuple[float, float], tuple[float, float]]
    axis_labels: tuple[str, str, str]
    color_range: tuple[float, float]
    color_label: str
    frame_height_px: int
    warnings: tuple[str, ...] = ()
    debug_frame: np.ndarray | None = field(default=None, compare=False, repr=False)

    @property
    def data_points(self) -> np.ndarray:
        return np.array([p.data_point for p in self.pairs], dtype=np.float64).reshape(-1, 3)

    @property
    def positions_pt(self) -> np.ndarray:
        return np.array([p.position_pt for p in self.pairs], dtype=np.float64).reshape(-1, 2)


def _z_range(series: list[np.ndarray]) -> tuple[float, float]:
    z = np.concatenate([np.asarray(s, dtype=np.float64).reshape(-1, 3)[:, 2] for s in series]) if series else np.zeros(0)
    z = z[np.isfinite(z)]
    if z.size == 0:
        return float("nan"), float("nan")
    return float(np.min(z)), float(np.max(z))


def _hide_for_detection(scene: WorkingScene, mode: CalibrationMode, surface_id: int | None, suppress_all: bool) -> dict[int, bool]:
    targets = set(scene.primitive_ids()) if suppress_all else set()
    if mode == "surface" and surface_id is not None:
        targets.add(surface_id)
    saved: dict[int, bool] = {}
    for pid in sorted(targets):
        saved[pid] = scene.is_visible(pid)
        scene.set_visibility(pid, False)
    return saved


def _restore_visibility(scene: WorkingScene, saved: dict[int, bool]) -> None:
    for pid, visible in saved.items():
        scene.set_visibility(pid, visible)


def detect_anchors(scene: WorkingScene, points: np.ndarray) -> tuple[list[PixelCentroid], int]:
    """
    Move the marker to each anchor in turn, capture a frame and locate the marker.

    Strictly sequential: each frame reads back the marker position set just before it.
    Returns the centroids in anchor order and the frame height in pixels.
    """
    centroids: list[PixelCentroid] = []
    height_px = 0
    try:
        for i, p in enumerate(np.asarray(points, dtype=np.float64).reshape(-1, 3)):
            scene.set_marker(p)
            frame = scene.capture_frame()
            height_px = int(frame.shape[0])
            c = locate_marker(frame)
            logger.debug("anchor %d at %s -> pixel (row=%d, col=%d)", i, p.tolist(), c.row, c.col)
            centroids.append(c)
    finally:
        scene.set_marker(None)
    return centroids, height_px


def _debug_overlay(scene: WorkingScene, points: np.ndarray, centroids: list[PixelCentroid]) -> np.ndarray:
    scene.set_markers(points)
    try:
        frame = scene.capture_frame()
    finally:
        scene.set_markers(None)
    return overlay_centroids(frame, centroids)


def run_calibration_pass(
    scene: WorkingScene,
    config: CalibrationConfig,
    *,
    mode: CalibrationMode = "box",
    raster_path: Path | None = None,
) -> CalibrationResult:
    """
    One calibration pass on a scene the caller already duplicated.

    The scene is mutated (ranges written back, marker moved, primitives toggled) and left
    for the caller to destroy.
    """
    if config.screen_ppi is None:
        raise ValueError("screen_ppi must be resolved before calibration (see CalibrationConfig.with_screen_ppi)")
    if mode not in ("box", "surface"):
        raise ValueError(f"unknown calibration mode: {mode}")

    series = scene.series_extents()
    ranges: AxisRanges = resolve_axis_ranges(scene.axis_ranges(), series)
    scene.set_axis_ranges(ranges)
    view = scene.view()
    logger.info(
        "calibrating (%s mode) at azimuth=%.3f elevation=%.3f, ranges=%s",
        mode,
        view.azimuth_deg,
        view.elevation_deg,
        [r.as_tuple() for r in ranges],
    )

    surface_id: int | None = None
    if mode == "box":
        corners = bounding_box(ranges)
        idx = select_box_anchors(corners, view, ranges, override=config.anchor_override)
        points = corners[list(idx)]
        logger.info("box-corner anchors: %s", list(idx))
        z_range = _z_range(series)
    else:
        found = scene.surface()
        if found is None:
            raise ValueError("surface mode needs a tagged surface in the scene (see surf3tikz.scene.matplotlib_scene.tag_surface)")
        surface_id, grid = found
        cells, points = select_surface_anchors(grid, view, ranges)
        logger.info("surface anchors at grid cells: %s", cells)
        z_range = _z_range([grid.as_points()])

    saved = _hide_for_detection(scene, mode, surface_id, config.suppress_primitives)
    try:
        centroids, height_px = detect_anchors(scene, points)
    finally:
        _restore_visibility(scene, saved)
    # Overlay on the restored plot, primitives visible.
    debug_frame = _debug_overlay(scene, points, centroids) if config.debug else None

    rows = np.array([c.row for c in centroids], dtype=np.float64)
    cols = np.array([c.col for c in centroids], dtype=np.float64)
    positions = pixel_to_physical(rows, cols, height_px, config.screen_ppi, config.inch_to_point_ratio)

    warnings: list[str] = []
    order = list(range(points.shape[0]))
    if mode == "box":
        order, ok = resolve_order(positions)
        if not ok:
            msg = (
                "no two anchors differ in both image coordinates; kept original order, "
                "pgfplots may place the image incorrectly"
            )
            logger.warning(msg)
            warnings.append(msg)

    pairs = tuple(
        CalibrationPair(
            data_point=(float(points[i, 0]), float(points[i, 1]), float(points[i, 2])),
            position_pt=(float(positions[i, 0]), float(positions[i, 1])),
        )
        for i in order
    )

    legend = scene.color_legend()
    if legend is not None:
        color_range, color_label = legend.limits, legend.label
    else:
        color_range, color_label = z_range, ""

    if raster_path is not None:
        scene.save_raster(Path(raster_path), dpi=config.export_dpi)
        logger.info("wrote raster %s at %s dpi", raster_path, config.export_dpi)

    return CalibrationResult(
        mode=mode,
        pairs=pairs,
        axis_ranges=(ranges[0].as_tuple(), ranges[1].as_tuple(), ranges[2].as_tuple()),
        axis_labels=scene.axis_labels(),
        color_range=(float(color_range[0]), float(color_range[1])),
        color_label=str(color_label),
        frame_height_px=height_px,
        warnings=tuple(warnings),
        debug_frame=debug_frame,
    )


def calibrate_scene(
    source: SceneHost,
    config: CalibrationConfig,
    *,
    mode: CalibrationMode = "box",
    raster_path: Path | None = None,
) -> CalibrationResult:
    """
    Duplicate `source`, run one calibration pass on the copy and destroy it.

    The copy is destroyed exactly once, whether the pass succeeds or fails.
    """
    scene = source.duplicate()
    try:
        return run_calibration_pass(scene, config, mode=mode, raster_path=raster_path)
    finally:
        scene.destroy()


def calibrate_figure(
    figure: Any,
    config: CalibrationConfig | None = None,
    *,
    mode: CalibrationMode = "box",
    raster_path: Path | None = None,
) -> CalibrationResult:
    """
    Calibrate a matplotlib figure holding one 3D axes.

    The screen resolution defaults to the figure's own dpi when the config leaves it unset.
    """
    from surf3tikz.scene.matplotlib_scene import FigureScene  # noqa: PLC0415

    config = config or CalibrationConfig()
    if config.screen_ppi is None:
        config = config.with_screen_ppi(float(figure.dpi))
    host = FigureScene(
        figure,
        dpi=config.screen_ppi,
        marker_size_pt=config.marker_size_pt,
        orthographic=config.orthographic,
    )
    return calibrate_scene(host, config, mode=mode, raster_path=raster_path)
