from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
from matplotlib.figure import Figure

from surf3tikz.scene.matplotlib_scene import plot_surface

SurfaceKind = Literal["peaks", "plane", "saddle"]


@dataclass(frozen=True)
class DemoSpec:
    kind: SurfaceKind = "peaks"
    nx: int = 30
    ny: int = 30
    azim: float = -60.0
    elev: float = 30.0
    width_in: float = 5.0
    height_in: float = 4.0
    dpi: float = 100.0
    colorbar: bool = True
    cmap: str = "viridis"


def surface_grid(kind: SurfaceKind, nx: int, ny: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Sample grid (X, Y, Z) of shape (ny, nx) for one of the demo surfaces."""
    x = np.linspace(-3.0, 3.0, int(nx))
    y = np.linspace(-3.0, 3.0, int(ny))
    xx, yy = np.meshgrid(x, y)
    if kind == "peaks":
        zz = (
            3.0 * (1.0 - xx) ** 2 * np.exp(-(xx**2) - (yy + 1.0) ** 2)
            - 10.0 * (xx / 5.0 - xx**3 - yy**5) * np.exp(-(xx**2) - yy**2)
            - 1.0 / 3.0 * np.exp(-((xx + 1.0) ** 2) - yy**2)
        )
    elif kind == "plane":
        zz = xx + yy
    elif kind == "saddle":
        zz = xx**2 - yy**2
    else:
        raise ValueError(f"unknown surface kind: {kind}")
    return xx, yy, zz


def make_surface_figure(spec: DemoSpec = DemoSpec()) -> tuple[Figure, Any, Any]:
    """
    Figure with one tagged surface, axis labels and (optionally) a labelled colorbar.

    Built without pyplot so no global figure state is touched.
    """
    fig = Figure(figsize=(spec.width_in, spec.height_in), dpi=spec.dpi)
    ax = fig.add_subplot(projection="3d")
    xx, yy, zz = surface_grid(spec.kind, spec.nx, spec.ny)
    surf = plot_surface(ax, xx, yy, zz, cmap=spec.cmap, linewidth=0, antialiased=False)
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_zlabel("z")
    ax.set_title(f"{spec.kind} surface")
    ax.view_init(elev=spec.elev, azim=spec.azim)
    if spec.colorbar:
        cb = fig.colorbar(surf, ax=ax, shrink=0.7)
        cb.set_label("height")
    return fig, ax, surf


def make_scatter_figure(
    n: int = 200,
    seed: int = 0,
    azim: float = -60.0,
    elev: float = 30.0,
    dpi: float = 100.0,
) -> tuple[Figure, Any]:
    """Figure with a scatter cloud and a polyline: arbitrary primitives for box-corner calibration."""
    rng = np.random.default_rng(seed)
    pts = rng.uniform(low=[0.0, 0.0, -1.0], high=[10.0, 5.0, 1.0], size=(int(n), 3))
    fig = Figure(figsize=(5.0, 4.0), dpi=dpi)
    ax = fig.add_subplot(projection="3d")
    ax.scatter(pts[:, 0], pts[:, 1], pts[:, 2], c=pts[:, 2], cmap="viridis", s=6)
    t = np.linspace(0.0, 1.0, 50)
    ax.plot(10.0 * t, 5.0 * t, np.sin(2.0 * np.pi * t), color="tab:red")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_zlabel("z")
    ax.view_init(elev=elev, azim=azim)
    return fig, ax
