from __future__ import annotations

import logging
import pickle
from pathlib import Path
from typing import Any, Sequence

import matplotlib
import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from surf3tikz.core.anchors import SurfaceGrid
from surf3tikz.core.geometry import AxisRange, AxisRanges, ViewTransform
from surf3tikz.scene.base import ColorLegend

logger = logging.getLogger(__name__)

# matplotlib keeps only the polygons of a surface, so the parameter grid rides along on the artist.
SURFACE_GRID_ATTR = "surf3tikz_grid"


def tag_surface(artist: Any, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> SurfaceGrid:
    """Attach the (X, Y, Z) grid of a surface to its artist so it survives figure duplication."""
    grid = SurfaceGrid(
        x=np.array(x, dtype=np.float64, copy=True),
        y=np.array(y, dtype=np.float64, copy=True),
        z=np.array(z, dtype=np.float64, copy=True),
    )
    setattr(artist, SURFACE_GRID_ATTR, grid)
    return grid


def plot_surface(ax: Any, x: np.ndarray, y: np.ndarray, z: np.ndarray, **kwargs: Any) -> Any:
    """`Axes3D.plot_surface` followed by `tag_surface`."""
    surf = ax.plot_surface(x, y, z, **kwargs)
    tag_surface(surf, x, y, z)
    return surf


def find_scene_axes(figure: Figure) -> Any:
    for ax in figure.axes:
        if getattr(ax, "name", "") == "3d":
            return ax
    raise ValueError("figure holds no 3D axes")


def _colorbars(figure: Figure) -> list[Any]:
    found: list[Any] = []
    for ax in figure.axes:
        for artist in (*ax.collections, *ax.images):
            cb = getattr(artist, "colorbar", None)
            if cb is not None and all(cb is not c for c in found):
                found.append(cb)
    return found


def _close_figure(figure: Figure) -> None:
    import matplotlib.pyplot as plt  # noqa: PLC0415

    figure.clear()
    plt.close(figure)


def _legend_from_colorbar(cb: Any) -> ColorLegend:
    vmin, vmax = cb.mappable.get_clim()
    label = cb.ax.get_ylabel() if cb.orientation == "vertical" else cb.ax.get_xlabel()
    return ColorLegend(limits=(float(vmin), float(vmax)), label=str(label))


class FigureScene:
    """
    matplotlib figure as a scene host.

    The wrapped figure is never modified: `duplicate` pickles it and hands out a
    `FigureWorkingScene` that owns the copy.
    """

    def __init__(
        self,
        figure: Figure,
        *,
        dpi: float | None = None,
        marker_size_pt: float = 8.0,
        orthographic: bool = True,
    ) -> None:
        self.figure = figure
        self.dpi = dpi
        self.marker_size_pt = float(marker_size_pt)
        self.orthographic = bool(orthographic)

    def duplicate(self) -> "FigureWorkingScene":
        find_scene_axes(self.figure)
        copy = pickle.loads(pickle.dumps(self.figure))
        try:
            return FigureWorkingScene(
                copy,
                dpi=self.dpi,
                marker_size_pt=self.marker_size_pt,
                orthographic=self.orthographic,
            )
        except Exception:
            # An unpickled pyplot figure registers itself with pyplot again.
            _close_figure(copy)
            raise


class FigureWorkingScene:
    """
    Working copy of a figure, stripped down to its 3D axes.

    Axis labels and the colour legend are read before every non-scene child (colorbars,
    other axes, figure texts and legends) is hidden and the scene axes are switched off.
    """

    def __init__(
        self,
        figure: Figure,
        *,
        dpi: float | None,
        marker_size_pt: float,
        orthographic: bool,
    ) -> None:
        self.figure = figure
        self._canvas = FigureCanvasAgg(figure)
        self._marker: Any = None
        self._marker_size_pt = float(marker_size_pt)
        self._destroyed = False

        if dpi is not None:
            figure.set_dpi(float(dpi))
        self.axes = find_scene_axes(figure)
        if orthographic:
            self.axes.set_proj_type("ortho")

        ax = self.axes
        self._labels = (str(ax.get_xlabel()), str(ax.get_ylabel()), str(ax.get_zlabel()))

        colorbars = _colorbars(figure)
        own = [cb for cb in colorbars if cb.mappable.axes is ax]
        legend_cb = own[0] if own else (colorbars[0] if colorbars else None)
        self._legend = None if legend_cb is None else _legend_from_colorbar(legend_cb)
        self._strip(colorbars)

    def _strip(self, colorbars: list[Any]) -> None:
        # Hidden rather than removed, so the layout of the scene axes stays as the caller drew it.
        legend_axes = [cb.ax for cb in colorbars]
        others = [a for a in self.figure.axes if a is not self.axes and all(a is not c for c in legend_axes)]
        for a in (*legend_axes, *others):
            a.set_visible(False)
        for artist in (*self.figure.texts, *self.figure.legends):
            artist.set_visible(False)
        legend = self.axes.get_legend()
        if legend is not None:
            legend.set_visible(False)
        self.axes.set_title("")
        self.axes.set_axis_off()
        self.axes.set_facecolor("white")
        self.figure.patch.set_facecolor("white")
        logger.debug("stripped %d colorbar(s) and %d other axes from working copy", len(colorbars), len(others))

    def axis_ranges(self) -> AxisRanges:
        ax = self.axes
        out: list[AxisRange] = []
        for get_lim, auto_on in (
            (ax.get_xlim, ax.get_autoscalex_on),
            (ax.get_ylim, ax.get_autoscaley_on),
            (ax.get_zlim, ax.get_autoscalez_on),
        ):
            if auto_on():
                out.append(AxisRange(None, None))
            else:
                lo, hi = get_lim()
                out.append(AxisRange(float(lo), float(hi)))
        return out[0], out[1], out[2]

    def set_axis_ranges(self, ranges: Sequence[AxisRange]) -> None:
        (x0, x1), (y0, y1), (z0, z1) = (r.as_tuple() for r in ranges)
        self.axes.set_xlim(x0, x1)
        self.axes.set_ylim(y0, y1)
        self.axes.set_zlim(z0, z1)

    def view(self) -> ViewTransform:
        # Roll only turns the image in its plane, so it never changes which anchors coincide.
        vertical = int(getattr(self.axes, "_vertical_axis", 2))
        if vertical != 2:
            raise ValueError(
                f"only views with z as the vertical axis are supported, got vertical_axis={'xyz'[vertical]!r}"
            )
        raw = self.axes.get_box_aspect()
        aspect = np.ones(3) if raw is None else np.asarray(raw, dtype=np.float64).reshape(-1)
        if aspect.size != 3:
            aspect = np.ones(3)
        return ViewTransform(
            azimuth_deg=float(self.axes.azim),
            elevation_deg=float(self.axes.elev),
            box_aspect=(float(aspect[0]), float(aspect[1]), float(aspect[2])),
        )

    def series_extents(self) -> list[np.ndarray]:
        series: list[np.ndarray] = []
        untagged = False
        for line in self.axes.lines:
            if line is self._marker:
                continue
            if not hasattr(line, "get_data_3d"):
                untagged = True
                continue
            xs, ys, zs = line.get_data_3d()
            series.append(
                np.column_stack(
                    [np.asarray(v, dtype=np.float64).reshape(-1) for v in (xs, ys, zs)]
                )
            )
        for coll in self.axes.collections:
            grid = getattr(coll, SURFACE_GRID_ATTR, None)
            if grid is None:
                untagged = True
                continue
            series.append(grid.as_points())
        if untagged or len(self.axes.patches) > 0:
            # Scatter points and untagged polygons: fall back to the limits the axes accumulated while plotting.
            (x0, y0), (x1, y1) = self.axes.xy_dataLim.get_points()
            z0, z1 = self.axes.zz_dataLim.intervalx
            series.append(np.array([[x0, y0, z0], [x1, y1, z1]], dtype=np.float64))
        return series

    def axis_labels(self) -> tuple[str, str, str]:
        return self._labels

    def color_legend(self) -> ColorLegend | None:
        return self._legend

    def _primitives(self) -> list[Any]:
        ax = self.axes
        return [a for a in (*ax.lines, *ax.collections, *ax.patches) if a is not self._marker]

    def primitive_ids(self) -> list[int]:
        return list(range(len(self._primitives())))

    def surface(self) -> tuple[int, SurfaceGrid] | None:
        for i, artist in enumerate(self._primitives()):
            grid = getattr(artist, SURFACE_GRID_ATTR, None)
            if grid is not None:
                return i, grid
        return None

    def set_visibility(self, primitive_id: int, visible: bool) -> None:
        self._primitives()[primitive_id].set_visible(bool(visible))

    def is_visible(self, primitive_id: int) -> bool:
        return bool(self._primitives()[primitive_id].get_visible())

    def set_marker(self, point: np.ndarray | None) -> None:
        self.set_markers(None if point is None else np.asarray(point, dtype=np.float64).reshape(1, 3))

    def set_markers(self, points: np.ndarray | None) -> None:
        if points is None:
            if self._marker is not None:
                self._marker.set_visible(False)
            return
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if self._marker is None:
            self._marker = self._create_marker(pts)
        else:
            self._marker.set_data_3d(pts[:, 0], pts[:, 1], pts[:, 2])
        self._marker.set_visible(True)

    def _create_marker(self, pts: np.ndarray) -> Any:
        ax = self.axes
        limits = (ax.get_xlim(), ax.get_ylim(), ax.get_zlim())
        (marker,) = ax.plot(
            pts[:, 0],
            pts[:, 1],
            pts[:, 2],
            linestyle="none",
            marker="s",
            markersize=self._marker_size_pt,
            markerfacecolor="black",
            markeredgecolor="white",
            markeredgewidth=1.0,
            zorder=10,
            clip_on=False,
        )
        # Plotting may autoscale; the calibrated limits must not move.
        ax.set_xlim(*limits[0])
        ax.set_ylim(*limits[1])
        ax.set_zlim(*limits[2])
        return marker

    def capture_frame(self) -> np.ndarray:
        self._canvas.draw()
        rgba = np.asarray(self._canvas.buffer_rgba())
        return np.array(rgba[..., :3], dtype=np.uint8, copy=True)

    def save_raster(self, path: Path, dpi: float) -> Path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with matplotlib.rc_context({"savefig.bbox": "standard"}):
            self.figure.savefig(p, dpi=float(dpi), format="png", facecolor="white")
        return p

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        _close_figure(self.figure)
