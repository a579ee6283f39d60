import pytest

from plotdigitizer.config import FALLBACK_CANVAS_SIZE
from plotdigitizer.model.geometry_primitives import ImageDimensions, DisplaySize, MaxBox
from plotdigitizer.model.scaler import fit_display_size, canvas_size_for


def test_wide_image_is_width_bound():
    size = fit_display_size(ImageDimensions(2000, 1000), MaxBox(900, 600))
    assert size == DisplaySize(900, 450)


def test_tall_image_is_height_bound():
    size = fit_display_size(ImageDimensions(1000, 2000), MaxBox(900, 600))
    assert size == DisplaySize(300, 600)


@pytest.mark.parametrize("w,h", [(2000, 1200), (4000, 3000), (1200, 5000), (3333, 1000), (1500, 1500)])
@pytest.mark.parametrize("box", [MaxBox(900, 600), MaxBox(700, 450), MaxBox(1000, 700)])
def test_aspect_ratio_preserved_and_one_side_binds(w, h, box):
    size = fit_display_size(ImageDimensions(w, h), box)
    assert size.width <= box.max_width
    assert size.height <= box.max_height
    assert size.width == box.max_width or size.height == box.max_height
    # Whole-pixel rounding is the only distortion
    assert abs(size.width / size.height - w / h) < 1e-3 * (w / h)


def test_small_image_is_not_upscaled():
    size = fit_display_size(ImageDimensions(400, 200), MaxBox(900, 600))
    assert size == DisplaySize(400, 200)


def test_outputs_are_rounded_to_whole_pixels():
    size = fit_display_size(ImageDimensions(2000, 1200), MaxBox(700, 450))
    assert size == DisplaySize(700, 420)
    size = fit_display_size(ImageDimensions(1000, 3000), MaxBox(700, 449))
    assert isinstance(size.width, int) and size.width == 150


def test_no_image_uses_fallback_canvas():
    assert canvas_size_for(None, MaxBox(900, 600)) == DisplaySize(*FALLBACK_CANVAS_SIZE)


def test_invalid_image_dimensions_rejected():
    with pytest.raises(ValueError):
        ImageDimensions(0, 100)
