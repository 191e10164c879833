import numpy as np
from pydantic import BaseModel, ConfigDict

from film_ruler import config

from .calibration import AxisDistance, ProcessingError
from .geometry import DenseWindow, Rect, RoiFit, SpacingStats

Color = tuple[int, int, int]


class CalibrationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    blur_ksize: int = config.GAUSS_BLUR_KSIZE
    canny_low: int = config.CANNY_LOW
    canny_high: int = config.CANNY_HIGH
    canny_use_l2: bool = config.CANNY_USE_L2

    window_height: int = config.DENSE_WINDOW_HEIGHT
    window_width: int = config.DENSE_WINDOW_WIDTH

    smooth_sigma: float = config.PROFILE_SMOOTH_SIGMA
    smooth_radius: int = config.PROFILE_SMOOTH_RADIUS
    min_spacing: int = config.MIN_TICK_SPACING
    max_spacing: int = config.MAX_TICK_SPACING
    nms_sep_factor: float = config.NMS_SEP_FACTOR

    gap_low_factor: float = config.TICK_GAP_LOW_FACTOR
    gap_high_factor: float = config.TICK_GAP_HIGH_FACTOR
    max_missing_per_gap: int = config.MAX_MISSING_PER_GAP

    ransac_iters: int = config.RANSAC_ITERS
    ransac_eps_px: float = config.RANSAC_EPS_PX
    ransac_theta0_deg: float = config.RANSAC_THETA0_DEG
    min_edge_points: int = config.MIN_EDGE_POINTS
    # None draws fresh OS entropy on every run
    ransac_seed: int | None = None


class FilmParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    pixels_per_mm: float = config.PIXELS_PER_MM
    target_width_mm: float = config.TARGET_WIDTH_MM
    target_height_mm: float = config.TARGET_HEIGHT_MM

    roi_offset_x_px: int = config.ROI_OFFSET_X_PX
    roi_offset_y_base_px: int = config.ROI_OFFSET_Y_BASE_PX
    roi_offset_y_mm: float = config.ROI_OFFSET_Y_MM
    roi_width_mm: float = config.ROI_WIDTH_MM
    roi_height_mm: float = config.ROI_HEIGHT_MM
    shift_distance_mm: float = config.SHIFT_DISTANCE_MM

    color_rect_h: Color = config.COLOR_RECT_H
    color_rect_v: Color = config.COLOR_RECT_V
    color_tick: Color = config.COLOR_TICK
    color_intersection: Color = config.COLOR_INTERSECTION
    color_line_h: Color = config.COLOR_LINE_H
    color_line_v: Color = config.COLOR_LINE_V
    tick_thickness: int = config.TICK_THICKNESS
    rect_thickness: int = config.RECT_THICKNESS
    roi_rect_thickness: int = config.ROI_RECT_THICKNESS
    line_thickness: int = config.LINE_THICKNESS
    intersection_radius: int = config.INTERSECTION_RADIUS


class PipelineState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    source_name: str = "image"
    output_dir: str | None = None
    exif_orientation: int = 1
    params: FilmParams = FilmParams()
    config: CalibrationConfig = CalibrationConfig()

    image: np.ndarray | None = None
    edges: np.ndarray | None = None
    dense_window: DenseWindow | None = None

    box_horizontal: Rect | None = None
    box_vertical: Rect | None = None
    ticks_horizontal: list[int] = []
    ticks_vertical: list[int] = []
    spacing_horizontal: SpacingStats | None = None
    spacing_vertical: SpacingStats | None = None
    pixels_per_mm_h: float | None = None
    pixels_per_mm_v: float | None = None

    roi1: RoiFit | None = None
    roi2: RoiFit | None = None
    distances: list[AxisDistance] = []

    edge_raster: np.ndarray | None = None
    overlay_raster: np.ndarray | None = None
    edge_path: str | None = None
    overlay_path: str | None = None

    logs: list[str] = []
    errors: list[ProcessingError] = []
