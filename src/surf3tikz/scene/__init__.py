"""
Scene hosts: the rendering environment behind calibration.

The core only talks to a `SceneHost` / `WorkingScene`; `FigureScene` backs them with matplotlib.
"""

from surf3tikz.scene.base import ColorLegend, SceneHost, WorkingScene

__all__ = ["ColorLegend", "SceneHost", "WorkingScene"]
