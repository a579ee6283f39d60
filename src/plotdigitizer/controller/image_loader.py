"""
Image Resource
==============
Reads the intrinsic pixel size of a site-plan image without decoding it.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from PySide6.QtGui import QImageReader

from plotdigitizer.model.geometry_primitives import ImageDimensions

logger = logging.getLogger(__name__)


def read_image_dimensions(path: Optional[str]) -> Optional[ImageDimensions]:
    """
    Intrinsic `{width, height}` of the image at `path`.

    Returns None when the file is missing or unreadable; the engine then
    stays in its "no image" state with capture and calibration disabled.
    """
    if not path or not os.path.exists(path):
        logger.warning(f"Image not found: {path}")
        return None

    reader = QImageReader(path)
    size = reader.size()
    if not size.isValid() or size.width() <= 0 or size.height() <= 0:
        logger.warning(f"Could not read image size of '{path}': {reader.errorString()}")
        return None

    dims = ImageDimensions(width=size.width(), height=size.height())
    logger.debug(f"Image '{path}' is {dims.width}x{dims.height}.")
    return dims
