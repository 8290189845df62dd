from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

import numpy as np

from surf3tikz.core.anchors import SurfaceGrid
from surf3tikz.core.geometry import AxisRange, AxisRanges, ViewTransform


@dataclass(frozen=True)
class ColorLegend:
    limits: tuple[float, float]
    label: str = ""


class WorkingScene(Protocol):
    """
    A duplicated scene owned by a single calibration pass.

    Mutations (marker, visibility, ranges) only ever touch this copy. `destroy` releases
    the host resources and must tolerate repeated calls.
    """

    def axis_ranges(self) -> AxisRanges: ...

    def set_axis_ranges(self, ranges: Sequence[AxisRange]) -> None: ...

    def view(self) -> ViewTransform: ...

    def series_extents(self) -> list[np.ndarray]: ...

    def axis_labels(self) -> tuple[str, str, str]: ...

    def color_legend(self) -> ColorLegend | None: ...

    def primitive_ids(self) -> list[int]: ...

    def surface(self) -> tuple[int, SurfaceGrid] | None: ...

    def set_visibility(self, primitive_id: int, visible: bool) -> None: ...

    def is_visible(self, primitive_id: int) -> bool: ...

    def set_marker(self, point: np.ndarray | None) -> None: ...

    def set_markers(self, points: np.ndarray | None) -> None: ...

    def capture_frame(self) -> np.ndarray: ...

    def save_raster(self, path: Path, dpi: float) -> Path: ...

    def destroy(self) -> None: ...


class SceneHost(Protocol):
    def duplicate(self) -> WorkingScene: ...
