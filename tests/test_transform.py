import math
import random

import pytest

from plotdigitizer.config import ROUND_TRIP_TOLERANCE
from plotdigitizer.model.geometry_primitives import DisplayPoint, ImagePoint, ImageDimensions, DisplaySize
from plotdigitizer.model.transform import CoordinateTransform, ScaleFactors


def _transform(iw=2000, ih=1200, dw=700, dh=450):
    return CoordinateTransform(ImageDimensions(iw, ih), DisplaySize(dw, dh))


def test_scale_factors_are_image_over_display():
    scale = _transform().scale
    assert scale.scale_x == pytest.approx(2000 / 700)
    assert scale.scale_y == pytest.approx(1200 / 450)


@pytest.mark.parametrize("display", [DisplaySize(0, 450), DisplaySize(700, 0), DisplaySize(0, 0)])
def test_degenerate_display_falls_back_to_identity(display):
    scale = ScaleFactors.from_sizes(ImageDimensions(2000, 1200), display)
    assert scale == ScaleFactors(1.0, 1.0)
    assert all(math.isfinite(v) for v in (scale.scale_x, scale.scale_y))


def test_identity_transform_is_a_no_op():
    t = _transform(dw=0, dh=0)
    assert t.to_image_space(DisplayPoint(12.5, 7.0)) == ImagePoint(12.5, 7.0)


def test_round_trip_within_tolerance():
    rng = random.Random(1234)
    for _ in range(200):
        t = _transform(rng.randint(1, 8000), rng.randint(1, 8000), rng.randint(1, 1200), rng.randint(1, 900))
        p = DisplayPoint(rng.uniform(-50, 1500), rng.uniform(-50, 1500))
        back = t.to_display_space(t.to_image_space(p))
        assert back.x == pytest.approx(p.x, abs=ROUND_TRIP_TOLERANCE)
        assert back.y == pytest.approx(p.y, abs=ROUND_TRIP_TOLERANCE)


def test_scale_is_recomputed_when_display_changes():
    image = ImageDimensions(2000, 1000)
    point = ImagePoint(1000, 500)
    small = CoordinateTransform(image, DisplaySize(900, 450)).to_display_space(point)
    large = CoordinateTransform(image, DisplaySize(1000, 500)).to_display_space(point)
    assert small == DisplayPoint(450, 225)
    assert large == DisplayPoint(500, 250)


def test_list_conversion_preserves_order_and_length():
    t = _transform()
    pts = [DisplayPoint(10, 10), DisplayPoint(110, 10), DisplayPoint(110, 110), DisplayPoint(10, 10)]
    image_pts = t.to_image_space_many(pts)
    assert len(image_pts) == 4
    assert all(isinstance(p, ImagePoint) for p in image_pts)
    assert image_pts == [t.to_image_space(p) for p in pts]
    for back, original in zip(t.to_display_space_many(image_pts), pts):
        assert isinstance(back, DisplayPoint)
        assert back.x == pytest.approx(original.x)
        assert back.y == pytest.approx(original.y)


def test_empty_list_conversion():
    assert _transform().to_image_space_many([]) == []


def test_coordinate_spaces_are_not_interchangeable():
    t = _transform()
    with pytest.raises(TypeError):
        t.to_image_space(ImagePoint(1, 2))
    with pytest.raises(TypeError):
        t.to_display_space(DisplayPoint(1, 2))
    with pytest.raises(TypeError):
        t.to_display_space_many([DisplayPoint(1, 2)])
    with pytest.raises(TypeError):
        _ = ImagePoint(1, 2) - DisplayPoint(1, 2)
    assert ImagePoint(1, 2) != DisplayPoint(1, 2)
