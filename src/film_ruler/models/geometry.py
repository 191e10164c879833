import math
from typing import Literal

from pydantic import BaseModel, ConfigDict

LineOrientation = Literal["horizontal", "vertical"]
Point = tuple[float, float]


class Rect(BaseModel):
    """Axis-aligned pixel rectangle. Right and bottom edges are exclusive."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    width: int
    height: int

    @property
    def x1(self) -> int:
        return self.x + self.width

    @property
    def y1(self) -> int:
        return self.y + self.height

    @property
    def slices(self) -> tuple[slice, slice]:
        """(rows, cols) slices for numpy indexing."""
        return (slice(self.y, self.y1), slice(self.x, self.x1))

    def shifted(self, dx: int = 0, dy: int = 0) -> "Rect":
        return Rect(x=self.x + dx, y=self.y + dy, width=self.width, height=self.height)


class DenseWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    y_start: int
    y_end: int
    x_start: int
    x_end: int
    fallback: bool = False

    @property
    def width(self) -> int:
        return self.x_end - self.x_start

    @property
    def height(self) -> int:
        return self.y_end - self.y_start


class SpacingStats(BaseModel):
    base_spacing: int = 0
    mean_good_spacing: float = 0.0
    small_gap_indices: list[int] = []
    large_gap_indices: list[int] = []
    inserted_total: int = 0
    error_small_gap: bool = False
    logs: list[str] = []


class LineModel(BaseModel):
    """Implicit line a*x + b*y + c = 0 with a unit normal (a, b)."""

    model_config = ConfigDict(frozen=True)

    a: float
    b: float
    c: float
    orientation: LineOrientation
    inlier_count: int = 0
    residual_rms: float = 0.0

    @property
    def angle_deg(self) -> float:
        """Direction of the line in degrees, folded into [0, 180)."""
        return math.degrees(math.atan2(-self.a, self.b)) % 180.0

    def distance(self, x: float, y: float) -> float:
        return abs(self.a * x + self.b * y + self.c)

    def translated(self, dx: float, dy: float) -> "LineModel":
        """Same line expressed in a frame whose origin moved by (-dx, -dy)."""
        return self.model_copy(update={"c": self.c - self.a * dx - self.b * dy})


class FittedLine(BaseModel):
    model: LineModel
    p1: Point
    p2: Point


class RoiFit(BaseModel):
    label: str
    roi: Rect
    horizontal: FittedLine | None = None
    vertical: FittedLine | None = None
    intersection: Point | None = None
    edge_points: int = 0
    logs: list[str] = []
