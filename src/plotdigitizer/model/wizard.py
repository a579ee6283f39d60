"""
Calibration Wizard
==================
Three-step state machine that establishes the origin and the pixel-to-unit
scale of a venture image.

    ORIGIN  -> one click sets the origin (last click wins)
    SCALE   -> two clicks draw a reference line, the user types its length
    CONFIRM -> review and save

Forward navigation out of ORIGIN is blocked until an origin is set; backward
navigation is always allowed and keeps everything captured so far. Like the
capture draft, a session is an immutable value replaced on every transition.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
import logging
import math
from typing import Optional, Protocol, TYPE_CHECKING

from plotdigitizer.config import MAX_SCALE_POINTS
from plotdigitizer.model.calibration import CalibrationRecord, LengthUnit, ScaleReference
from plotdigitizer.model.errors import CalibrationError, InvalidTransitionError, PersistenceError
from plotdigitizer.model.geometry_primitives import DisplayPoint, ImagePoint
from plotdigitizer.model.io import SaveResult

if TYPE_CHECKING:
    from plotdigitizer.model.transform import CoordinateTransform

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    """The wizard steps, in order."""
    ORIGIN = 1
    SCALE = 2
    CONFIRM = 3


class CalibrationSaver(Protocol):
    def save_calibration(self, venture_id: str, record: CalibrationRecord) -> SaveResult: ...


@dataclass(frozen=True)
class ScalePoint:
    """A scale-line click, kept in both spaces: display to draw it, image to measure it."""
    display: DisplayPoint
    image: ImagePoint


@dataclass(frozen=True)
class CalibrationSummary:
    """What the confirm step shows."""
    origin: Optional[ImagePoint]
    pixel_distance: float
    reference_distance: str
    unit: LengthUnit

    def __str__(self) -> str:
        origin = f"({self.origin.x:g}, {self.origin.y:g})" if self.origin else "not set"
        return f"Origin: {origin}; Scale: {self.pixel_distance:g}px = {self.reference_distance} {self.unit}"


@dataclass(frozen=True)
class CalibrationSession:
    step: WizardStep = WizardStep.ORIGIN
    origin: Optional[ImagePoint] = None
    scale_points: tuple[ScalePoint, ...] = ()
    reference_distance_input: str = ""
    unit: LengthUnit = LengthUnit.SQYD
    prior: CalibrationRecord = field(default_factory=CalibrationRecord)

    @classmethod
    def start(cls, record: Optional[CalibrationRecord] = None) -> CalibrationSession:
        """Open the wizard on a venture, seeded from its current calibration."""
        record = record or CalibrationRecord()
        return cls(origin=record.origin, unit=record.scale.unit, prior=record)

    # ---- derived values ----

    @property
    def pixel_distance(self) -> int:
        """Length of the scale line in image pixels, 0 until both points exist."""
        if len(self.scale_points) < 2:
            return 0
        a, b = self.scale_points[0].image, self.scale_points[1].image
        return int(round(a.distance_to(b)))

    @property
    def can_advance(self) -> bool:
        if self.step == WizardStep.ORIGIN:
            return self.origin is not None
        return self.step < WizardStep.CONFIRM

    def summary(self) -> CalibrationSummary:
        return CalibrationSummary(
            origin=self.origin,
            pixel_distance=self.pixel_distance or self.prior.scale.reference_pixels,
            reference_distance=self.reference_distance_input.strip() or f"{self.prior.scale.reference_units:g}",
            unit=self.unit,
        )

    # ---- input ----

    def click(self, point: DisplayPoint, transform: CoordinateTransform) -> CalibrationSession:
        """
        Route a canvas click to the current step.

        The image-space position is snapped to whole pixels. Clicks on the
        confirm step, and a third scale click, are ignored.
        """
        image_point = transform.to_image_space(point).rounded()

        if self.step == WizardStep.ORIGIN:
            logger.debug(f"Origin set to {image_point}.")
            return replace(self, origin=image_point)

        if self.step == WizardStep.SCALE:
            if len(self.scale_points) >= MAX_SCALE_POINTS:
                logger.debug("Scale line already has two points, click ignored.")
                return self
            return replace(self, scale_points=self.scale_points + (ScalePoint(point, image_point),))

        return self

    def reset_origin(self) -> CalibrationSession:
        return replace(self, origin=None)

    def clear_scale_points(self) -> CalibrationSession:
        return replace(self, scale_points=())

    def set_reference_distance(self, text: str) -> CalibrationSession:
        return replace(self, reference_distance_input=text)

    def set_unit(self, unit: LengthUnit | str) -> CalibrationSession:
        return replace(self, unit=LengthUnit(unit))

    # ---- navigation ----

    def next(self) -> CalibrationSession:
        if self.step == WizardStep.CONFIRM:
            raise InvalidTransitionError("Already on the last step.")
        if not self.can_advance:
            raise InvalidTransitionError("Set the origin before continuing.")
        return replace(self, step=WizardStep(self.step + 1))

    def back(self) -> CalibrationSession:
        if self.step == WizardStep.ORIGIN:
            raise InvalidTransitionError("Already on the first step.")
        return replace(self, step=WizardStep(self.step - 1))

    def go_to(self, step: WizardStep | int) -> CalibrationSession:
        """Jump back to any step already reached (the step indicator)."""
        step = WizardStep(step)
        if step > self.step:
            raise InvalidTransitionError(f"Cannot jump ahead to step {step.name}.")
        return replace(self, step=step)

    # ---- saving ----

    def build_record(self) -> CalibrationRecord:
        """
        The record to persist.

        The measured line replaces the reference pixels unless it is missing,
        in which case the prior value is kept; an empty or unparsable distance
        keeps the prior reference units.

        Raises:
            InvalidTransitionError: not on the confirm step.
            CalibrationError: no origin, a non-positive distance was typed, or
                no valid pixel or unit reference exists at all.
        """
        if self.step != WizardStep.CONFIRM:
            raise InvalidTransitionError("Calibration can only be saved from the confirm step.")
        if self.origin is None:
            raise CalibrationError("Origin is not set.")

        pixels = self.pixel_distance or self.prior.scale.reference_pixels
        if not (math.isfinite(pixels) and pixels > 0):
            raise CalibrationError("Reference line has zero length and no previous scale exists.")

        units = self.prior.scale.reference_units
        text = self.reference_distance_input.strip()
        if text:
            try:
                typed = float(text)
            except ValueError:
                logger.warning(f"Reference distance '{text}' is not a number, keeping {units:g}.")
            else:
                if not math.isfinite(typed):
                    logger.warning(f"Reference distance '{text}' is not finite, keeping {units:g}.")
                elif typed <= 0:
                    raise CalibrationError(f"Reference distance must be positive, got {typed:g}.")
                else:
                    units = typed
        if not (math.isfinite(units) and units > 0):
            raise CalibrationError("No valid reference distance given.")

        return CalibrationRecord(
            origin=self.origin,
            scale=ScaleReference(reference_pixels=pixels, reference_units=units, unit=self.unit),
        )


def submit_calibration(
    session: CalibrationSession,
    venture_id: str,
    saver: CalibrationSaver,
) -> tuple[Optional[CalibrationSession], SaveResult, CalibrationRecord]:
    """
    Validate, persist and close the session.

    Returns:
        (None on success or the unchanged session on failure, save result,
        the record that was submitted)
    """
    record = session.build_record()

    try:
        result = saver.save_calibration(venture_id, record)
    except PersistenceError as e:
        logger.warning(f"Saving calibration of venture '{venture_id}' failed: {e}")
        result = SaveResult(success=False, message=str(e))

    if not result.success:
        logger.warning(f"Calibration of venture '{venture_id}' not saved: {result.message}")
        return session, result, record

    logger.info(f"Calibration of venture '{venture_id}' saved: "
                f"{record.scale.reference_pixels:g}px = {record.scale.reference_units:g} {record.scale.unit}.")
    return None, result, record
