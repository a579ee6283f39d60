"""
Calibration Records
===================
The mapping from pixel distances to real-world units for one site-plan image.

A record pairs an origin (image space) with a scale reference: `reference_pixels`
image pixels correspond to `reference_units` units. A record read from
persistence never carries a zero or invalid scale: bad values are replaced by
the last known valid ones, so downstream area and price calculations can
never divide by zero.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
import logging
import math
from typing import Any, Dict, Mapping, Optional

from plotdigitizer.config import DEFAULT_REFERENCE_PIXELS, DEFAULT_REFERENCE_UNITS, DEFAULT_UNIT
from plotdigitizer.model.errors import CalibrationError
from plotdigitizer.model.geometry_primitives import ImagePoint, Offset

logger = logging.getLogger(__name__)


class LengthUnit(StrEnum):
    SQYD = "sqyd"
    METERS = "meters"
    FEET = "feet"

    @property
    def label(self) -> str:
        return UNIT_LABELS[self]


UNIT_LABELS: Dict[LengthUnit, str] = {
    LengthUnit.SQYD: "sq.yd",
    LengthUnit.METERS: "m",
    LengthUnit.FEET: "ft",
}


def _positive(value: Any) -> Optional[float]:
    """`value` as a finite float > 0, or None."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0.0:
        return None
    return number


@dataclass(frozen=True)
class ScaleReference:
    reference_pixels: float = DEFAULT_REFERENCE_PIXELS
    reference_units: float = DEFAULT_REFERENCE_UNITS
    unit: LengthUnit = LengthUnit(DEFAULT_UNIT)

    @property
    def is_valid(self) -> bool:
        return _positive(self.reference_pixels) is not None and _positive(self.reference_units) is not None

    @property
    def units_per_pixel(self) -> float:
        pixels = _positive(self.reference_pixels)
        units = _positive(self.reference_units)
        if pixels is None or units is None:
            raise CalibrationError(
                f"Invalid scale reference: {self.reference_pixels} px = {self.reference_units} {self.unit}."
            )
        return units / pixels

    def to_dict(self) -> Dict[str, Any]:
        return {
            "referencePixels": self.reference_pixels,
            "referenceUnits": self.reference_units,
            "unit": str(self.unit),
        }

    @staticmethod
    def from_dict(data: Optional[Mapping[str, Any]], fallback: Optional[ScaleReference] = None) -> ScaleReference:
        """
        Parse a persisted scale. A zero, missing or unparsable field is
        replaced by the fallback's value (the defaults when none is given).
        """
        fallback = fallback or ScaleReference()
        data = data or {}

        pixels = _positive(data.get("referencePixels"))
        units = _positive(data.get("referenceUnits"))
        if pixels is None or units is None:
            logger.warning(f"Scale {dict(data)} has invalid fields, keeping last valid values.")

        try:
            unit = LengthUnit(data.get("unit", fallback.unit))
        except ValueError:
            logger.warning(f"Unknown unit '{data.get('unit')}', keeping '{fallback.unit}'.")
            unit = fallback.unit

        return ScaleReference(
            reference_pixels=pixels if pixels is not None else fallback.reference_pixels,
            reference_units=units if units is not None else fallback.reference_units,
            unit=unit,
        )


@dataclass(frozen=True)
class CalibrationRecord:
    """
    Calibration of one venture image.

    A fresh record has no origin and the placeholder scale; it only becomes
    calibrated through a completed calibration wizard.
    """
    origin: Optional[ImagePoint] = None
    scale: ScaleReference = field(default_factory=ScaleReference)

    @property
    def is_calibrated(self) -> bool:
        return self.origin is not None and self.scale.is_valid

    @property
    def units_per_pixel(self) -> float:
        return self.scale.units_per_pixel

    def pixels_to_units(self, distance_px: float) -> float:
        """Convert an image-space distance to real-world units."""
        return distance_px * self.units_per_pixel

    def area_to_units(self, area_px2: float) -> float:
        """Convert an image-space area (px²) to squared real-world units."""
        return area_px2 * self.units_per_pixel ** 2

    def relative_to_origin(self, point: ImagePoint) -> Offset:
        if self.origin is None:
            raise CalibrationError("No origin set.")
        return point - self.origin

    def with_scale(self, scale: ScaleReference) -> CalibrationRecord:
        return replace(self, scale=scale)

    def to_dict(self) -> Dict[str, Any]:
        """
        Request body of the save-calibration call. Only a record with an
        origin can be sent. `isCalibrated` is only ever read, never written.
        """
        if self.origin is None:
            raise CalibrationError("Cannot save a calibration without an origin.")
        return {
            "origin": {"x": self.origin.x, "y": self.origin.y},
            "scale": self.scale.to_dict(),
        }

    @staticmethod
    def from_dict(data: Optional[Mapping[str, Any]], fallback: Optional[CalibrationRecord] = None) -> CalibrationRecord:
        """
        Parse a persisted record.

        An explicit `isCalibrated: false` means the stored origin is only the
        backend's placeholder and is treated as unset.
        """
        fallback = fallback or CalibrationRecord()
        if not data:
            return fallback

        origin: Optional[ImagePoint] = fallback.origin
        raw_origin = data.get("origin")
        if isinstance(raw_origin, Mapping):
            try:
                origin = ImagePoint(float(raw_origin["x"]), float(raw_origin["y"]))
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Ignoring malformed origin {raw_origin!r}.")
        if data.get("isCalibrated") is False:
            origin = None

        scale = ScaleReference.from_dict(data.get("scale"), fallback=fallback.scale)
        return CalibrationRecord(origin=origin, scale=scale)
