from enum import Enum
from typing import Any, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from film_ruler import config

from .geometry import DenseWindow, Rect, RoiFit, SpacingStats


class ProcessingStage(str, Enum):
    INPUT = "input"
    PREPROCESS = "preprocess"
    EDGES = "edges"
    SCALE = "scale"
    MEASURE = "measure"
    RENDER = "render"


class ProcessingError(BaseModel):
    stage: ProcessingStage
    error_type: str
    recoverable: bool
    message: str
    details: dict[str, Any] = {}


class InvalidInputError(ValueError):
    """Raised when the input image is empty or cannot be decoded."""

    def __init__(self, message: str, error: ProcessingError | None = None):
        super().__init__(message)
        self.error = error


class AxisDistance(BaseModel):
    """Per-axis measurement components between the two ROI intersections."""

    axis: Literal["horizontal", "vertical"]
    index1: int
    index2: int
    offset1_mm: float
    offset2_mm: float

    @property
    def index_diff(self) -> int:
        return self.index2 - self.index1

    def combined_mm(self, tick_pitch_mm: float = config.NOMINAL_TICK_PITCH_MM) -> float:
        """index_diff x tick pitch + offset2 - offset1, for callers that want one number."""
        return self.index_diff * tick_pitch_mm + self.offset2_mm - self.offset1_mm


class CalibrationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    source_name: str
    width: int
    height: int
    dense_window: DenseWindow
    box_horizontal: Rect
    box_vertical: Rect
    ticks_horizontal: list[int] = []
    ticks_vertical: list[int] = []
    spacing_horizontal: SpacingStats = SpacingStats()
    spacing_vertical: SpacingStats = SpacingStats()
    pixels_per_mm_h: float
    pixels_per_mm_v: float
    roi1: RoiFit | None = None
    roi2: RoiFit | None = None
    distances: list[AxisDistance] = []
    edge_path: str | None = None
    overlay_path: str | None = None
    logs: list[str] = []
    errors: list[ProcessingError] = []

    edge_raster: np.ndarray | None = Field(default=None, exclude=True, repr=False)
    overlay_raster: np.ndarray | None = Field(default=None, exclude=True, repr=False)

    @property
    def intersections(self) -> tuple[tuple[float, float] | None, tuple[float, float] | None]:
        p1 = self.roi1.intersection if self.roi1 else None
        p2 = self.roi2.intersection if self.roi2 else None
        return p1, p2

    def distance(self, axis: str) -> AxisDistance | None:
        for d in self.distances:
            if d.axis == axis:
                return d
        return None
