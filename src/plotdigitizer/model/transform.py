"""
Coordinate Transform
====================
Bidirectional mapping between display space and image-pixel space.

The scale factors are always derived from the current image and display
sizes on access; a transform is rebuilt, never patched, when the canvas is
resized. Rounding happens only where callers store final integer image
coordinates, never in here.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Sequence, TYPE_CHECKING

import numpy as np

from plotdigitizer.model.geometry_primitives import (
    DisplayPoint, ImagePoint, ImageDimensions, DisplaySize,
    points_to_array, array_to_points
)

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScaleFactors:
    """Image pixels per display pixel, per axis. Always strictly positive and finite."""
    scale_x: float = 1.0
    scale_y: float = 1.0

    @classmethod
    def identity(cls) -> ScaleFactors:
        return cls(1.0, 1.0)

    @classmethod
    def from_sizes(cls, image: ImageDimensions, display: DisplaySize) -> ScaleFactors:
        """
        Compute `image / display` component-wise.

        A zero-sized display (layout not settled yet) gives the identity scale
        instead of infinity or NaN.
        """
        if display.is_degenerate:
            logger.debug(f"Degenerate display size {display.width}x{display.height}, using identity scale.")
            return cls.identity()

        sx = image.width / display.width
        sy = image.height / display.height
        if not (math.isfinite(sx) and math.isfinite(sy)) or sx <= 0.0 or sy <= 0.0:
            return cls.identity()
        return cls(sx, sy)

    def as_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.scale_x, self.scale_y], dtype=np.float64)


@dataclass(frozen=True)
class CoordinateTransform:
    """
    Converts points between the canvas and the image it shows.

    Example:
        >>> t = CoordinateTransform(ImageDimensions(2000, 1000), DisplaySize(900, 450))
        >>> t.to_image_space(DisplayPoint(450, 225))
        ImagePoint(x=1000.0, y=500.0)
    """
    image: ImageDimensions
    display: DisplaySize

    @property
    def scale(self) -> ScaleFactors:
        return ScaleFactors.from_sizes(self.image, self.display)

    def to_image_space(self, point: DisplayPoint) -> ImagePoint:
        if not isinstance(point, DisplayPoint):
            raise TypeError(f"Expected a DisplayPoint, got {type(point).__name__}.")
        s = self.scale
        return ImagePoint(point.x * s.scale_x, point.y * s.scale_y)

    def to_display_space(self, point: ImagePoint) -> DisplayPoint:
        if not isinstance(point, ImagePoint):
            raise TypeError(f"Expected an ImagePoint, got {type(point).__name__}.")
        s = self.scale
        return DisplayPoint(point.x / s.scale_x, point.y / s.scale_y)

    def to_image_space_many(self, points: Sequence[DisplayPoint]) -> list[ImagePoint]:
        """Pointwise `to_image_space`, order and length preserved."""
        for p in points:
            if not isinstance(p, DisplayPoint):
                raise TypeError(f"Expected DisplayPoints, got {type(p).__name__}.")
        arr = points_to_array(points) * self.scale.as_array()
        return array_to_points(arr, ImagePoint)

    def to_display_space_many(self, points: Sequence[ImagePoint]) -> list[DisplayPoint]:
        """Pointwise `to_display_space`, order and length preserved."""
        for p in points:
            if not isinstance(p, ImagePoint):
                raise TypeError(f"Expected ImagePoints, got {type(p).__name__}.")
        arr = points_to_array(points) / self.scale.as_array()
        return array_to_points(arr, DisplayPoint)
