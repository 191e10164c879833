from .calibration import (
    AxisDistance,
    CalibrationResult,
    InvalidInputError,
    ProcessingError,
    ProcessingStage,
)
from .geometry import (
    DenseWindow,
    FittedLine,
    LineModel,
    LineOrientation,
    Point,
    Rect,
    RoiFit,
    SpacingStats,
)
from .state import CalibrationConfig, FilmParams, PipelineState

__all__ = [
    "AxisDistance",
    "CalibrationConfig",
    "CalibrationResult",
    "DenseWindow",
    "FilmParams",
    "FittedLine",
    "InvalidInputError",
    "LineModel",
    "LineOrientation",
    "PipelineState",
    "Point",
    "ProcessingError",
    "ProcessingStage",
    "Rect",
    "RoiFit",
    "SpacingStats",
]
