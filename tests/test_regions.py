import pytest

from film_ruler.models import DenseWindow, FilmParams, Rect
from film_ruler.nodes.filmcalib import calibration_boxes, clamp_rect, measurement_rois
from film_ruler.nodes.filmcalib.regions import round_half_up

WINDOW = DenseWindow(y_start=100, y_end=180, x_start=100, x_end=180)
PARAMS = FilmParams(
    pixels_per_mm=20,
    target_width_mm=50,
    target_height_mm=35,
    roi_offset_x_px=5,
    roi_offset_y_base_px=5,
    roi_offset_y_mm=10,
    roi_width_mm=8,
    roi_height_mm=8,
    shift_distance_mm=30,
)


@pytest.mark.parametrize(
    "value, expected", [(2.5, 3), (2.4999, 2), (-0.5, 0), (-1.5, -1), (7.0, 7)]
)
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_clamp_inside_is_identity():
    rect = Rect(x=10, y=20, width=30, height=40)
    assert clamp_rect(rect, 100, 100) == (rect, False)


def test_clamp_partial_overlap_is_clipped():
    clamped, degenerate = clamp_rect(Rect(x=-10, y=90, width=30, height=40), 100, 100)
    assert not degenerate
    assert clamped == Rect(x=0, y=90, width=20, height=10)


def test_clamp_outside_falls_back_to_border_sliver():
    clamped, degenerate = clamp_rect(Rect(x=500, y=500, width=30, height=40), 100, 80)
    assert degenerate
    assert clamped == Rect(x=98, y=78, width=2, height=2)


def test_calibration_boxes_layout():
    boxes = calibration_boxes(WINDOW, PARAMS, 1200, 800)
    assert boxes.degenerate == ()
    assert boxes.box_horizontal == Rect(x=100, y=100, width=1080, height=40)
    assert boxes.box_vertical == Rect(x=100, y=180, width=40, height=620)
    assert boxes.outline_horizontal == Rect(x=100, y=100, width=1080, height=80)
    assert boxes.outline_vertical == Rect(x=100, y=180, width=80, height=620)


def test_calibration_boxes_clamped_to_image():
    boxes = calibration_boxes(WINDOW, PARAMS, 400, 300)
    assert boxes.box_horizontal.x1 <= 400
    assert boxes.box_vertical.y1 <= 300


def test_measurement_rois_from_calibrated_scales():
    roi1, roi2, degenerate = measurement_rois(WINDOW, PARAMS, 20.0, 20.0, 1200, 800)
    assert degenerate == ()
    assert roi1 == Rect(x=185, y=385, width=160, height=160)
    assert roi2 == Rect(x=785, y=385, width=160, height=160)


def test_vertical_offsets_use_vertical_scale():
    roi1, _, _ = measurement_rois(WINDOW, PARAMS, 20.0, 10.0, 1200, 800)
    assert roi1.y == 180 + 5 + 100
    assert roi1.height == 80
    assert roi1.width == 160


def test_roi_shifted_off_image_is_degenerate():
    roi1, roi2, degenerate = measurement_rois(WINDOW, PARAMS, 20.0, 20.0, 500, 800)
    assert degenerate == ("ROI_POINT2",)
    assert roi2.width == 2 and roi2.x1 == 500
    assert roi1.x1 <= 500


def test_roi_sizes_round_half_to_even():
    # 8 mm x 20.0625 px/mm = 160.5 px exactly
    roi1, roi2, _ = measurement_rois(WINDOW, PARAMS, 20.0625, 20.0625, 1200, 800)
    assert roi1.width == 160
    assert roi1.height == 160
    assert roi1.y == 180 + 5 + 201
    assert roi2.x - roi1.x == 602
