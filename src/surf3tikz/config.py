from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any


class ConfigValidationError(ValueError):
    pass


@dataclass(frozen=True)
class CalibrationConfig:
    export_dpi: float = 300.0
    screen_ppi: float | None = None
    inch_to_point_ratio: float = 1.0 / 72.0
    anchor_override: tuple[int, int, int, int] | None = None
    debug: bool = False
    write_png: bool = True
    write_tikz: bool = True
    write_json: bool = False
    transparent_background: bool = True
    marker_size_pt: float = 8.0
    suppress_primitives: bool = True
    orthographic: bool = True

    def with_screen_ppi(self, screen_ppi: float) -> "CalibrationConfig":
        _require(float(screen_ppi) > 0.0, "screen_ppi must be > 0")
        return replace(self, screen_ppi=float(screen_ppi))


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigValidationError(msg)


def load_calibration_config(path: Path) -> CalibrationConfig:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return parse_calibration_config(data)


def parse_anchor_override(raw: object) -> tuple[int, int, int, int] | None:
    """
    Accepts None, a sequence of four corner indices or a comma-separated string ("0,3,5,6").

    Indices are 0-based box-corner indices (see `surf3tikz.core.geometry.bounding_box`).
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        parts = [p.strip() for p in raw.split(",") if p.strip()]
        _require(all(p.lstrip("-").isdigit() for p in parts), "anchor_override must list integer corner indices")
        raw = [int(p) for p in parts]
    _require(isinstance(raw, (list, tuple)) and len(raw) == 4, "anchor_override must hold exactly 4 corner indices")
    idx = tuple(int(i) for i in raw)  # type: ignore[union-attr]
    _require(all(0 <= i < 8 for i in idx), "anchor_override indices must be in 0..7")
    _require(len(set(idx)) == 4, "anchor_override indices must be distinct")
    return idx  # type: ignore[return-value]


def parse_calibration_config(data: dict[str, Any]) -> CalibrationConfig:
    _require(isinstance(data, dict), "config must be a JSON object")
    defaults = CalibrationConfig()
    known = set(CalibrationConfig.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    _require(not unknown, f"unknown config keys: {unknown}")

    export_dpi = float(data.get("export_dpi", defaults.export_dpi))
    _require(export_dpi > 0.0, "export_dpi must be > 0")

    screen_raw = data.get("screen_ppi")
    screen_ppi = None if screen_raw is None else float(screen_raw)
    _require(screen_ppi is None or screen_ppi > 0.0, "screen_ppi must be > 0")

    ratio = float(data.get("inch_to_point_ratio", defaults.inch_to_point_ratio))
    _require(ratio > 0.0, "inch_to_point_ratio must be > 0")

    marker_size = float(data.get("marker_size_pt", defaults.marker_size_pt))
    _require(marker_size > 0.0, "marker_size_pt must be > 0")

    flags: dict[str, bool] = {}
    for key in (
        "debug",
        "write_png",
        "write_tikz",
        "write_json",
        "transparent_background",
        "suppress_primitives",
        "orthographic",
    ):
        value = data.get(key, getattr(defaults, key))
        _require(isinstance(value, bool), f"{key} must be a boolean")
        flags[key] = value

    return CalibrationConfig(
        export_dpi=export_dpi,
        screen_ppi=screen_ppi,
        inch_to_point_ratio=ratio,
        anchor_override=parse_anchor_override(data.get("anchor_override")),
        marker_size_pt=marker_size,
        **flags,
    )
