from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from surf3tikz.api.calibrate import CalibrationPair, CalibrationResult

SCHEMA_VERSION = "surf3tikz.calibration.v0"


def render_tikz(result: CalibrationResult, image_name: str) -> str:
    """
    pgfplots code placing `image_name` on a gridded 3D axis.

    The image is anchored by `\\addplot3 graphics` through the calibration pairs, in order.
    """
    (x0, x1), (y0, y1), (z0, z1) = result.axis_ranges
    xlabel, ylabel, zlabel = result.axis_labels
    cmin, cmax = result.color_range

    lines = [
        "% created with surf3tikz",
        "\\begin{tikzpicture}",
        "\t\\begin{axis}[",
        "\t\tgrid,",
        "\t\tenlargelimits = false,",
        f"\t\txmin = {x0:f},",
        f"\t\txmax = {x1:f},",
        f"\t\tymin = {y0:f},",
        f"\t\tymax = {y1:f},",
        f"\t\tzmin = {z0:f},",
        f"\t\tzmax = {z1:f},",
        f"\t\txlabel = {{{xlabel}}},",
        f"\t\tylabel = {{{ylabel}}},",
        f"\t\tzlabel = {{{zlabel}}},",
        "\t\tcolorbar,",
        "\t\tcolorbar style = {%",
        f"\t\t\tylabel = {{{result.color_label}}},",
        "\t\t},",
        f"\t\tpoint meta min = {cmin:f},",
        f"\t\tpoint meta max = {cmax:f},",
        "\t]",
        "\t\t\\addplot3 graphics[",
        "\t\t\tpoints={% important",
    ]
    for pair in result.pairs:
        x, y, z = pair.data_point
        px, py = pair.position_pt
        lines.append(f"\t\t\t\t({x:f},{y:f},{z:f}) => ({px:f},{py:f})")
    lines += [
        f"\t\t}}]{{{image_name}}};",
        "\t\\end{axis}",
        "\\end{tikzpicture}",
    ]
    return "\n".join(lines) + "\n"


def write_tikz(path: Path, result: CalibrationResult, image_name: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_tikz(result, image_name), encoding="utf-8")
    return path


def save_calibration_json(path: Path, result: CalibrationResult) -> Path:
    """
    Save the key values of a calibration as JSON, for building custom TikZ code.

    The debug frame is not stored.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    meta: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "mode": result.mode,
        "pairs": [
            {"data_point": list(p.data_point), "position_pt": list(p.position_pt)} for p in result.pairs
        ],
        "axis_ranges": {k: list(r) for k, r in zip("xyz", result.axis_ranges, strict=True)},
        "axis_labels": {k: s for k, s in zip("xyz", result.axis_labels, strict=True)},
        "color": {"range": list(result.color_range), "label": result.color_label},
        "frame_height_px": int(result.frame_height_px),
        "warnings": list(result.warnings),
    }
    path.write_text(json.dumps(meta, indent=2, sort_keys=True), encoding="utf-8")
    return path


def _pair(entry: dict[str, Any]) -> CalibrationPair:
    d = np.asarray(entry["data_point"], dtype=np.float64).reshape(3)
    p = np.asarray(entry["position_pt"], dtype=np.float64).reshape(2)
    return CalibrationPair(
        data_point=(float(d[0]), float(d[1]), float(d[2])),
        position_pt=(float(p[0]), float(p[1])),
    )


def load_calibration_json(path: Path) -> CalibrationResult:
    meta = json.loads(Path(path).read_text(encoding="utf-8"))
    if str(meta.get("schema_version")) != SCHEMA_VERSION:
        raise ValueError("unsupported calibration schema")

    ranges = meta["axis_ranges"]
    labels = meta["axis_labels"]
    color = meta["color"]
    return CalibrationResult(
        mode=str(meta["mode"]),  # type: ignore[arg-type]
        pairs=tuple(_pair(e) for e in meta["pairs"]),
        axis_ranges=tuple((float(ranges[k][0]), float(ranges[k][1])) for k in "xyz"),  # type: ignore[arg-type]
        axis_labels=(str(labels["x"]), str(labels["y"]), str(labels["z"])),
        color_range=(float(color["range"][0]), float(color["range"][1])),
        color_label=str(color["label"]),
        frame_height_px=int(meta["frame_height_px"]),
        warnings=tuple(str(w) for w in meta.get("warnings", [])),
    )
