"""
Display Scaler
==============
Fits an image into a maximum viewport box while preserving its aspect ratio.
"""
from __future__ import annotations

import logging
from typing import Optional

from plotdigitizer.config import FALLBACK_CANVAS_SIZE
from plotdigitizer.model.geometry_primitives import ImageDimensions, DisplaySize, MaxBox

logger = logging.getLogger(__name__)


def fit_display_size(image: ImageDimensions, max_box: MaxBox) -> DisplaySize:
    """
    Compute the canvas size for an image.

    The image is first fitted to the width bound (never upscaled past its own
    width); if the resulting height overflows, it is refitted to the height
    bound instead. Both sides are rounded to whole pixels.

    Args:
        image: Intrinsic image size.
        max_box: Largest canvas allowed.

    Returns:
        The display size, aspect ratio preserved within rounding.
    """
    aspect = image.aspect_ratio

    width = min(float(image.width), float(max_box.max_width))
    height = width / aspect

    if height > max_box.max_height:
        height = float(max_box.max_height)
        width = height * aspect

    size = DisplaySize(width=int(round(width)), height=int(round(height)))
    logger.debug(f"Fitted {image.width}x{image.height} into "
                 f"{max_box.max_width}x{max_box.max_height} -> {size.width}x{size.height}")
    return size


def canvas_size_for(image: Optional[ImageDimensions], max_box: MaxBox) -> DisplaySize:
    """Like `fit_display_size`, but falls back to a fixed canvas while no image is known."""
    if image is None:
        return DisplaySize(*FALLBACK_CANVAS_SIZE)
    return fit_display_size(image, max_box)
