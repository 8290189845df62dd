"""
pgfplots export demo (surface mode).

This script is meant to be:
- readable,
- runnable (no hidden imports),
- a template for exporting your own figures.

It does:
1) build a 3D surface figure with a labelled colorbar,
2) calibrate it against the surface grid and write the PNG,
3) write the matching `\\addplot3 graphics` TikZ file,
4) print the anchor correspondences.

Include the result in LaTeX with `\\input{<out>.tikz}` next to `<out>.png`.
"""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np
from matplotlib.figure import Figure

from surf3tikz import CalibrationConfig, calibrate_figure, write_tikz
from surf3tikz.core.image_io import make_white_transparent
from surf3tikz.scene.matplotlib_scene import plot_surface


def build_figure() -> Figure:
    x = np.linspace(0.0, 2.0 * np.pi, 40)
    y = np.linspace(-1.0, 1.0, 25)
    xx, yy = np.meshgrid(x, y)
    zz = np.sin(xx) * np.cos(np.pi * yy)

    fig = Figure(figsize=(5.0, 4.0), dpi=100)
    ax = fig.add_subplot(projection="3d")
    # plot_surface keeps the (X, Y, Z) grid on the artist, which surface mode needs.
    surf = plot_surface(ax, xx, yy, zz, cmap="coolwarm", linewidth=0, antialiased=False)
    ax.set_xlabel("phase")
    ax.set_ylabel("y")
    ax.set_zlabel("amplitude")
    ax.view_init(elev=35.0, azim=-50.0)
    fig.colorbar(surf, ax=ax, shrink=0.7).set_label("amplitude")
    return fig


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", type=Path, default=Path("wave"), help="Base path for <out>.png and <out>.tikz.")
    ap.add_argument("--export-dpi", type=float, default=300.0)
    args = ap.parse_args()

    png = args.out.with_name(args.out.name + ".png")
    tikz = args.out.with_name(args.out.name + ".tikz")

    cfg = CalibrationConfig(export_dpi=float(args.export_dpi))
    result = calibrate_figure(build_figure(), cfg, mode="surface", raster_path=png)
    make_white_transparent(png)
    write_tikz(tikz, result, image_name=png.name)

    for pair in result.pairs:
        print(f"{pair.data_point} => ({pair.position_pt[0]:.2f}, {pair.position_pt[1]:.2f}) pt")
    print(f"Wrote {png} and {tikz}")


if __name__ == "__main__":
    main()
