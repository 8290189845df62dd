from __future__ import annotations

import argparse
import logging
import pickle
from dataclasses import replace
from pathlib import Path
from typing import Any

from surf3tikz.api.calibrate import CalibrationResult, calibrate_figure
from surf3tikz.api.tikz_io import save_calibration_json, write_tikz
from surf3tikz.config import CalibrationConfig, load_calibration_config, parse_anchor_override
from surf3tikz.core.image_io import load_rgb_u8, make_white_transparent, save_rgb_u8
from surf3tikz.core.marker import locate_marker
from surf3tikz.sim.figures import DemoSpec, make_scatter_figure, make_surface_figure


def _add_export_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--out", type=Path, required=True, help="Base path; writes <out>.png, <out>.tikz (and <out>.json).")
    p.add_argument("--mode", type=str, default="surface", choices=["box", "surface"])
    p.add_argument("--config", type=Path, default=None, help="JSON calibration config.")
    p.add_argument("--export-dpi", type=float, default=None, help="PNG resolution (default: 300).")
    p.add_argument("--screen-ppi", type=float, default=None, help="Capture resolution (default: figure dpi).")
    p.add_argument("--anchors", type=str, default=None, help="Box-corner override, e.g. 0,3,5,6.")
    p.add_argument("--no-png", action="store_true", help="Do not write the PNG.")
    p.add_argument("--no-tikz", action="store_true", help="Do not write the TikZ file.")
    p.add_argument("--keep-white", action="store_true", help="Keep the white PNG background.")
    p.add_argument("--json", action="store_true", help="Also write the calibration values as JSON.")
    p.add_argument("--debug", action="store_true", help="Write <out>_debug.png with the detected centroids.")


def _config_from_args(args: argparse.Namespace) -> CalibrationConfig:
    cfg = load_calibration_config(args.config) if args.config is not None else CalibrationConfig()
    changes: dict[str, Any] = {}
    if args.export_dpi is not None:
        changes["export_dpi"] = float(args.export_dpi)
    if args.screen_ppi is not None:
        changes["screen_ppi"] = float(args.screen_ppi)
    if args.anchors is not None:
        changes["anchor_override"] = parse_anchor_override(args.anchors)
    if args.no_png:
        changes["write_png"] = False
    if args.no_tikz:
        changes["write_tikz"] = False
    if args.keep_white:
        changes["transparent_background"] = False
    if args.json:
        changes["write_json"] = True
    if args.debug:
        changes["debug"] = True
    return replace(cfg, **changes)


def export_figure(figure: Any, out: Path, cfg: CalibrationConfig, *, mode: str) -> CalibrationResult:
    """Calibrate `figure` and write the PNG / TikZ / JSON outputs next to `out`."""
    out = Path(out)
    png_path = out.with_name(out.name + ".png")
    result = calibrate_figure(figure, cfg, mode=mode, raster_path=png_path if cfg.write_png else None)  # type: ignore[arg-type]

    if cfg.write_png:
        if cfg.transparent_background:
            make_white_transparent(png_path)
        print(f"Wrote {png_path}")
    if cfg.write_tikz:
        tikz_path = write_tikz(out.with_name(out.name + ".tikz"), result, image_name=png_path.name)
        print(f"Wrote {tikz_path}")
    if cfg.write_json:
        json_path = save_calibration_json(out.with_name(out.name + ".json"), result)
        print(f"Wrote {json_path}")
    if result.debug_frame is not None:
        debug_path = save_rgb_u8(out.with_name(out.name + "_debug.png"), result.debug_frame)
        print(f"Wrote {debug_path}")
    for w in result.warnings:
        print(f"Warning: {w}")
    return result


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="surf3tikz")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug logging.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser(
        "export",
        help="Calibrate a pickled matplotlib figure and write PNG + TikZ. Only load pickles you trust.",
    )
    exp.add_argument("figure", type=Path, help="Figure saved with pickle.dump(fig, f).")
    _add_export_options(exp)

    demo = sub.add_parser("demo", help="Build a demo figure and export it.")
    _add_export_options(demo)
    demo.add_argument("--surface", type=str, default="peaks", choices=["peaks", "plane", "saddle"])
    demo.add_argument("--grid", type=int, default=30, help="Grid points per axis.")
    demo.add_argument("--azim", type=float, default=-60.0)
    demo.add_argument("--elev", type=float, default=30.0)
    demo.add_argument("--dpi", type=float, default=100.0, help="Figure dpi.")

    loc = sub.add_parser("locate-marker", help="Print the centroid of the single pure-black marker in an image.")
    loc.add_argument("image", type=Path)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING - 10 * min(int(args.verbose), 2),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "export":
        with args.figure.open("rb") as f:
            figure = pickle.load(f)
        export_figure(figure, args.out, _config_from_args(args), mode=args.mode)
        return 0

    if args.cmd == "demo":
        cfg = _config_from_args(args)
        if args.mode == "surface":
            spec = DemoSpec(kind=args.surface, nx=args.grid, ny=args.grid, azim=args.azim, elev=args.elev, dpi=args.dpi)
            figure, _ax, _surf = make_surface_figure(spec)
        else:
            figure, _ax = make_scatter_figure(azim=args.azim, elev=args.elev, dpi=args.dpi)
        export_figure(figure, args.out, cfg, mode=args.mode)
        return 0

    if args.cmd == "locate-marker":
        c = locate_marker(load_rgb_u8(args.image))
        print(f"row={c.row} col={c.col}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")
