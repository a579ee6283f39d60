"""
Polygon Capture
===============
State machine that digitizes a plot boundary from canvas clicks.

The draft is an immutable value: every transition returns a new
`PolygonDraft` and leaves the old one untouched.

States:
    EMPTY             -> no vertices
    DRAWING           -> 1..2 vertices
    READY_TO_COMPLETE -> 3+ vertices
    AWAITING_DETAILS  -> completed, frozen until cleared or saved

Example:
    >>> draft = PolygonDraft().add_vertex(DisplayPoint(10, 10))
    >>> draft.state
    <CaptureState.DRAWING: 'drawing'>
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
import logging
from typing import Protocol, TYPE_CHECKING

from plotdigitizer.config import MIN_POLYGON_VERTICES
from plotdigitizer.model.codec import PlotGeometry, encode
from plotdigitizer.model.errors import InvalidTransitionError, TooFewVerticesError, PersistenceError
from plotdigitizer.model.geometry_primitives import DisplayPoint
from plotdigitizer.model.io import SaveResult
from plotdigitizer.model.plot import PlotAttributes, PlotRecord

if TYPE_CHECKING:
    from plotdigitizer.model.transform import CoordinateTransform

logger = logging.getLogger(__name__)


class CaptureState(StrEnum):
    EMPTY = "empty"
    DRAWING = "drawing"
    READY_TO_COMPLETE = "ready_to_complete"
    AWAITING_DETAILS = "awaiting_details"


class PlotSaver(Protocol):
    def save_plot(self, record: PlotRecord) -> SaveResult: ...


@dataclass(frozen=True)
class PolygonDraft:
    """Display-space vertices of one drawing session, in click order."""
    vertices: tuple[DisplayPoint, ...] = ()
    completed: bool = False

    def __len__(self) -> int:
        return len(self.vertices)

    @property
    def state(self) -> CaptureState:
        if self.completed:
            return CaptureState.AWAITING_DETAILS
        n = len(self.vertices)
        if n == 0:
            return CaptureState.EMPTY
        if n < MIN_POLYGON_VERTICES:
            return CaptureState.DRAWING
        return CaptureState.READY_TO_COMPLETE

    @property
    def can_complete(self) -> bool:
        return not self.completed and len(self.vertices) >= MIN_POLYGON_VERTICES

    # ---- transitions ----

    def add_vertex(self, point: DisplayPoint) -> PolygonDraft:
        """Append a click. Repeated clicks on the same spot are kept."""
        if self.completed:
            raise InvalidTransitionError("Polygon is completed; clear it before drawing again.")
        if not isinstance(point, DisplayPoint):
            raise TypeError(f"Expected a DisplayPoint, got {type(point).__name__}.")
        return replace(self, vertices=self.vertices + (point,))

    def undo(self) -> PolygonDraft:
        """Drop the last vertex. Undo on an empty draft stays empty."""
        if self.completed:
            raise InvalidTransitionError("Polygon is completed; vertices are frozen.")
        if not self.vertices:
            return self
        return replace(self, vertices=self.vertices[:-1])

    def clear(self) -> PolygonDraft:
        return PolygonDraft()

    def rescaled(self, old: CoordinateTransform, new: CoordinateTransform) -> PolygonDraft:
        """
        Carry the vertices over to a resized canvas. They pass through image
        space, so the ring that is eventually saved does not depend on the
        canvas size it was drawn on.
        """
        if not self.vertices:
            return self
        image_points = old.to_image_space_many(self.vertices)
        return replace(self, vertices=tuple(new.to_display_space_many(image_points)))

    def complete(self) -> PolygonDraft:
        """
        Freeze the draft and open the details form.

        Raises:
            TooFewVerticesError: fewer than 3 vertices. The draft is unchanged
                and drawing may continue.
        """
        if self.completed:
            raise InvalidTransitionError("Polygon is already completed.")
        if len(self.vertices) < MIN_POLYGON_VERTICES:
            raise TooFewVerticesError(
                f"Please click at least {MIN_POLYGON_VERTICES} points to create a polygon "
                f"({len(self.vertices)} so far)."
            )
        return replace(self, completed=True)

    # ---- saving ----

    def to_geometry(self, transform: CoordinateTransform) -> PlotGeometry:
        """The frozen draft as a closed image-space ring."""
        if not self.completed:
            raise InvalidTransitionError("Only a completed polygon can be converted for saving.")
        return encode(transform.to_image_space_many(self.vertices))

    def after_save(self, result: SaveResult) -> PolygonDraft:
        """Empty draft on success; unchanged on failure so the user can retry."""
        return self.clear() if result.success else self


def submit_draft(
    draft: PolygonDraft,
    transform: CoordinateTransform,
    attributes: PlotAttributes,
    venture_id: str,
    saver: PlotSaver,
) -> tuple[PolygonDraft, SaveResult, PlotRecord]:
    """
    Convert a completed draft, hand it to the persistence collaborator and
    advance the state machine according to the outcome.

    Returns:
        (next draft, save result, the record that was submitted with the id
        assigned by the collaborator, if any)
    """
    attributes.validate()
    record = PlotRecord(venture_id=venture_id, geometry=draft.to_geometry(transform), attributes=attributes)

    try:
        result = saver.save_plot(record)
    except PersistenceError as e:
        logger.warning(f"Saving plot '{attributes.plot_no}' failed: {e}")
        result = SaveResult(success=False, message=str(e))

    if result.success:
        record = replace(record, id=result.id)
        logger.info(f"Plot '{attributes.plot_no}' saved (id={result.id}).")
    else:
        logger.warning(f"Plot '{attributes.plot_no}' not saved: {result.message}")
    return draft.after_save(result), result, record
