from surf3tikz.api.calibrate import (
    CalibrationPair,
    CalibrationResult,
    calibrate_figure,
    calibrate_scene,
    run_calibration_pass,
)
from surf3tikz.api.tikz_io import load_calibration_json, render_tikz, save_calibration_json, write_tikz

__all__ = [
    "CalibrationPair",
    "CalibrationResult",
    "calibrate_figure",
    "calibrate_scene",
    "run_calibration_pass",
    "render_tikz",
    "write_tikz",
    "save_calibration_json",
    "load_calibration_json",
]
