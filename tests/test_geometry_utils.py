import pytest

from plotdigitizer.model.calibration import CalibrationRecord, ScaleReference
from plotdigitizer.model.codec import encode
from plotdigitizer.model.geometry_primitives import DisplayPoint, ImagePoint
from plotdigitizer.model.geometry_utils import perimeter, plot_area_in_units, polygon_area, polygon_centroid, signed_area

SQUARE = [ImagePoint(0, 0), ImagePoint(100, 0), ImagePoint(100, 100), ImagePoint(0, 100)]


def test_area_of_open_and_closed_ring():
    assert polygon_area(SQUARE) == pytest.approx(10000)
    assert polygon_area(SQUARE + [SQUARE[0]]) == pytest.approx(10000)


def test_signed_area_follows_orientation():
    assert signed_area(SQUARE) == pytest.approx(-signed_area(SQUARE[::-1]))


def test_area_of_too_few_points():
    assert polygon_area(SQUARE[:2]) == 0.0


def test_centroid_keeps_coordinate_space():
    centroid = polygon_centroid([DisplayPoint(p.x, p.y) for p in SQUARE])
    assert isinstance(centroid, DisplayPoint)
    assert (centroid.x, centroid.y) == pytest.approx((50, 50))


def test_centroid_of_triangle():
    centroid = polygon_centroid([ImagePoint(0, 0), ImagePoint(90, 0), ImagePoint(0, 30)])
    assert (centroid.x, centroid.y) == pytest.approx((30, 10))


def test_centroid_of_collapsed_polygon():
    line = [ImagePoint(0, 0), ImagePoint(10, 10), ImagePoint(20, 20)]
    assert polygon_centroid(line) == ImagePoint(0, 0)


def test_perimeter():
    assert perimeter(SQUARE) == pytest.approx(400)


def test_plot_area_in_units():
    calibration = CalibrationRecord(ImagePoint(0, 0), ScaleReference(reference_pixels=10, reference_units=1))
    assert plot_area_in_units(encode(SQUARE), calibration) == pytest.approx(100)
