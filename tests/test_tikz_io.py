from __future__ import annotations

from pathlib import Path

import pytest

from surf3tikz.api.calibrate import CalibrationPair, CalibrationResult
from surf3tikz.api.tikz_io import load_calibration_json, render_tikz, save_calibration_json, write_tikz


def _result() -> CalibrationResult:
    return CalibrationResult(
        mode="box",
        pairs=(
            CalibrationPair((0.0, 0.0, -1.0), (12.5, 30.0)),
            CalibrationPair((10.0, 5.0, -1.0), (200.25, 80.0)),
            CalibrationPair((0.0, 5.0, 1.0), (40.0, 150.0)),
            CalibrationPair((10.0, 0.0, 1.0), (170.0, 110.5)),
        ),
        axis_ranges=((0.0, 10.0), (0.0, 5.0), (-1.0, 1.0)),
        axis_labels=("x", "y", "$z$"),
        color_range=(-1.0, 1.0),
        color_label="height",
        frame_height_px=240,
        warnings=("kept original order",),
    )


def test_render_tikz_contains_axis_setup_and_points():
    text = render_tikz(_result(), "plot.png")
    assert text.startswith("% created with surf3tikz\n\\begin{tikzpicture}")
    assert "\t\txmin = 0.000000,\n\t\txmax = 10.000000," in text
    assert "\t\tzmin = -1.000000," in text
    assert "\t\tzlabel = {$z$}," in text
    assert "\t\t\tylabel = {height}," in text
    assert "\t\tpoint meta max = 1.000000," in text
    assert "\\addplot3 graphics[" in text
    assert "points={% important" in text
    assert text.endswith("\t\t}]{plot.png};\n\t\\end{axis}\n\\end{tikzpicture}\n")


def test_render_tikz_keeps_pair_order():
    text = render_tikz(_result(), "plot.png")
    lines = [ln.strip() for ln in text.splitlines() if "=>" in ln]
    assert lines == [
        "(0.000000,0.000000,-1.000000) => (12.500000,30.000000)",
        "(10.000000,5.000000,-1.000000) => (200.250000,80.000000)",
        "(0.000000,5.000000,1.000000) => (40.000000,150.000000)",
        "(10.000000,0.000000,1.000000) => (170.000000,110.500000)",
    ]


def test_write_tikz(tmp_path: Path):
    p = write_tikz(tmp_path / "out" / "plot.tikz", _result(), image_name="plot.png")
    assert p.read_text(encoding="utf-8") == render_tikz(_result(), "plot.png")


def test_calibration_json_roundtrip(tmp_path: Path):
    p = save_calibration_json(tmp_path / "plot.json", _result())
    assert load_calibration_json(p) == _result()


def test_calibration_json_rejects_other_schema(tmp_path: Path):
    p = tmp_path / "bad.json"
    p.write_text('{"schema_version": "something.else"}', encoding="utf-8")
    with pytest.raises(ValueError):
        load_calibration_json(p)
