from surf3tikz import config
from surf3tikz.api import (
    CalibrationPair,
    CalibrationResult,
    calibrate_figure,
    calibrate_scene,
    load_calibration_json,
    render_tikz,
    save_calibration_json,
    write_tikz,
)
from surf3tikz.config import CalibrationConfig

__all__ = [
    "config",
    "CalibrationConfig",
    "CalibrationPair",
    "CalibrationResult",
    "calibrate_figure",
    "calibrate_scene",
    "render_tikz",
    "write_tikz",
    "save_calibration_json",
    "load_calibration_json",
]
