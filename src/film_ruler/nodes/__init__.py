"""Pipeline nodes for film ruler calibration.

This module uses lazy imports so that importing the package does not pull in
OpenCV until a node actually runs.
"""

from __future__ import annotations

from film_ruler.models import PipelineState


def preprocess(state: PipelineState) -> PipelineState:
    from film_ruler.nodes.preprocessing import preprocess as _preprocess

    return _preprocess(state)


def detect_edges(state: PipelineState) -> PipelineState:
    from film_ruler.nodes.edge_detection import detect_edges as _detect_edges

    return _detect_edges(state)


def calibrate_scale(state: PipelineState) -> PipelineState:
    from film_ruler.nodes.scale_calibration import calibrate_scale as _calibrate_scale

    return _calibrate_scale(state)


def measure(state: PipelineState) -> PipelineState:
    from film_ruler.nodes.measurement import measure as _measure

    return _measure(state)


def render(state: PipelineState) -> PipelineState:
    from film_ruler.nodes.rendering import render as _render

    return _render(state)


__all__ = [
    "calibrate_scale",
    "detect_edges",
    "measure",
    "preprocess",
    "render",
]
