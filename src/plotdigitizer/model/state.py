"""
Venture State (Data Model)
==========================
This module defines the data held for the venture currently being edited.

Why is this file needed?
------------------------
1. State Management: It holds the site-plan image size, the calibration and
   the saved plots of one venture in one place.
2. Decoupling: Views read from this object; the Store writes to it.

Classes:
    VentureState: The per-venture container.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional

from plotdigitizer.model.calibration import CalibrationRecord
from plotdigitizer.model.geometry_primitives import ImageDimensions, MaxBox, DisplaySize
from plotdigitizer.model.geometry_utils import plot_area_in_units
from plotdigitizer.model.plot import PlotRecord
from plotdigitizer.model.scaler import canvas_size_for
from plotdigitizer.model.transform import CoordinateTransform

logger = logging.getLogger(__name__)


@dataclass
class VentureState:
    """
    A site-plan image with its calibration and plots.
    `image` is None until the image resource has reported its size.
    """
    venture_id: str = ""
    name: str = "Untitled Venture"
    image_path: Optional[str] = None
    image: Optional[ImageDimensions] = None

    calibration: CalibrationRecord = field(default_factory=CalibrationRecord)
    plots: list[PlotRecord] = field(default_factory=list)

    @property
    def has_image(self) -> bool:
        return self.image is not None

    def display_size(self, max_box: MaxBox) -> DisplaySize:
        return canvas_size_for(self.image, max_box)

    def transform(self, max_box: MaxBox) -> Optional[CoordinateTransform]:
        """A fresh transform for the given canvas bounds, or None without an image."""
        if self.image is None:
            return None
        return CoordinateTransform(image=self.image, display=self.display_size(max_box))

    def apply_calibration(self, record: CalibrationRecord) -> None:
        """Replace the calibration, keeping the last valid scale if the new one is unusable."""
        if not record.scale.is_valid:
            logger.warning(f"Calibration of '{self.venture_id}' has an invalid scale, keeping the previous one.")
            record = record.with_scale(self.calibration.scale)
        self.calibration = record

    def plot_area(self, plot: PlotRecord) -> float:
        return plot_area_in_units(plot.geometry, self.calibration)

    def reset(self) -> None:
        """Clear all data for a new venture"""
        self.venture_id = ""
        self.name = "Untitled Venture"
        self.image_path = None
        self.image = None
        self.calibration = CalibrationRecord()
        self.plots = []
        logger.info("Venture state has been reset.")
