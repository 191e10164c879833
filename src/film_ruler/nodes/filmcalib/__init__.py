"""Film ruler calibration algorithms.

Pure functions over numpy arrays; the stage nodes in film_ruler.nodes wire
them into the pipeline:
- edges: edge map and dense edge window
- ticks: tick centers from darkness profiles
- tick_repair: spacing anomalies and gap interpolation
- ransac_lines: robust reference lines and their intersection
- regions: calibration boxes, ROIs and clamping
"""

from .edges import build_edge_map, centered_window, locate_dense_window
from .ransac_lines import clip_line_to_roi, fit_roi_lines, intersect_lines, ransac_fit_line
from .regions import CalibrationBoxes, calibration_boxes, clamp_rect, measurement_rois
from .tick_repair import mean_spacing, repair_spacing
from .ticks import Orientation, detect_ticks

__all__ = [
    "CalibrationBoxes",
    "Orientation",
    "build_edge_map",
    "calibration_boxes",
    "centered_window",
    "clamp_rect",
    "clip_line_to_roi",
    "detect_ticks",
    "fit_roi_lines",
    "intersect_lines",
    "locate_dense_window",
    "mean_spacing",
    "measurement_rois",
    "ransac_fit_line",
    "repair_spacing",
]
