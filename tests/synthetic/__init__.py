"""Synthetic film ruler test harness.

Render ruler targets with known tick positions and cross centers so the
pipeline can be checked against ground truth.

Usage:
    from synthetic import RulerTarget, render_target
    target = RulerTarget(modifiers=[MissingTicks(indices=(10,))])
    image = render_target(target)
"""

from .modifiers import GaussianBlur, MissingTicks, Modifier
from .renderer import render_target, write_target
from .target import Cross, RulerTarget

__all__ = [
    # Geometry
    "Cross",
    "RulerTarget",
    # Rendering
    "render_target",
    "write_target",
    # Modifiers
    "Modifier",
    "MissingTicks",
    "GaussianBlur",
]
