from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, Signal

from plotdigitizer.config import DRAWER_MAX_BOX, CALIBRATION_MAX_BOX
from plotdigitizer.controller.image_loader import read_image_dimensions
from plotdigitizer.model.calibration import LengthUnit
from plotdigitizer.model.capture import PolygonDraft, submit_draft
from plotdigitizer.model.errors import InvalidTransitionError, PersistenceError, ValidationError
from plotdigitizer.model.geometry_primitives import DisplayPoint, ImageDimensions, MaxBox
from plotdigitizer.model.io import PlotRepository, SaveResult
from plotdigitizer.model.plot import PlotAttributes
from plotdigitizer.model.render import (
    CalibrationMarkers, DraftShape, PlotShape, calibration_markers, draft_shape, plot_shapes
)
from plotdigitizer.model.state import VentureState
from plotdigitizer.model.transform import CoordinateTransform
from plotdigitizer.model.wizard import CalibrationSession, WizardStep, submit_calibration

logger = logging.getLogger(__name__)


class Store(QObject):
    """
    Central state store with signals for canvas/panel sync.

    Owns the active venture and at most one open session: either a polygon
    draft or a calibration wizard. Every transition runs synchronously inside
    the UI event that triggered it.
    """
    image_changed = Signal(object)
    draft_changed = Signal(object)
    plots_changed = Signal(object)
    calibration_changed = Signal(object)
    session_changed = Signal(object)
    error_occurred = Signal(str)
    status_message = Signal(str)

    def __init__(
        self,
        repository: PlotRepository,
        drawer_box: MaxBox = MaxBox.from_tuple(DRAWER_MAX_BOX),
        calibration_box: MaxBox = MaxBox.from_tuple(CALIBRATION_MAX_BOX),
    ) -> None:
        super().__init__()
        self.repository = repository
        self.drawer_box = drawer_box
        self.calibration_box = calibration_box

        self.venture = VentureState()
        self.draft = PolygonDraft()
        self.calibration_session: Optional[CalibrationSession] = None

    # ---- helpers ----

    def _report(self, error: Exception) -> None:
        logger.warning(f"{type(error).__name__}: {error}")
        self.error_occurred.emit(str(error))

    def _set_draft(self, draft: PolygonDraft) -> None:
        self.draft = draft
        self.draft_changed.emit(draft)

    def _set_session(self, session: Optional[CalibrationSession]) -> None:
        self.calibration_session = session
        self.session_changed.emit(session)

    def _require_transform(self, max_box: MaxBox) -> CoordinateTransform:
        transform = self.venture.transform(max_box)
        if transform is None:
            raise InvalidTransitionError("No image loaded.")
        return transform

    @property
    def drawer_transform(self) -> Optional[CoordinateTransform]:
        return self.venture.transform(self.drawer_box)

    @property
    def calibration_transform(self) -> Optional[CoordinateTransform]:
        return self.venture.transform(self.calibration_box)

    # ---- venture / image ----

    def open_venture(
        self,
        venture_id: str,
        name: str = "",
        image_path: Optional[str] = None,
        image: Optional[ImageDimensions] = None,
    ) -> None:
        """Switch venture: open sessions are discarded, plots and calibration reloaded."""
        self.discard_sessions()
        self.venture.reset()
        self.venture.venture_id = venture_id
        self.venture.name = name or venture_id
        self.venture.image_path = image_path
        self.venture.image = image if image is not None else read_image_dimensions(image_path)
        self.image_changed.emit(self.venture.image)

        try:
            self.venture.calibration = self.repository.load_calibration(venture_id)
            self.venture.plots = self.repository.load_plots(venture_id)
        except PersistenceError as e:
            self._report(e)
        self.calibration_changed.emit(self.venture.calibration)
        self.plots_changed.emit(self.venture.plots)
        logger.info(f"Opened venture '{self.venture.name}' with {len(self.venture.plots)} plots.")

    def set_image(self, image: Optional[ImageDimensions]) -> None:
        self.venture.image = image
        self.image_changed.emit(image)

    def set_drawer_box(self, box: MaxBox) -> None:
        """
        Viewport resized; transforms are rebuilt from the new bounds on next use.
        An open draft is remapped so its vertices keep their image positions.
        """
        old = self.drawer_transform
        self.drawer_box = box
        new = self.drawer_transform
        if old is not None and new is not None and self.draft.vertices:
            self._set_draft(self.draft.rescaled(old, new))
        self.image_changed.emit(self.venture.image)

    def discard_sessions(self) -> None:
        if self.draft.vertices or self.draft.completed:
            self._set_draft(PolygonDraft())
        if self.calibration_session is not None:
            self._set_session(None)

    # ---- polygon capture ----

    def add_vertex(self, point: DisplayPoint) -> bool:
        try:
            self._require_transform(self.drawer_box)
            if self.calibration_session is not None:
                raise InvalidTransitionError("Close the calibration wizard before drawing plots.")
            self._set_draft(self.draft.add_vertex(point))
        except InvalidTransitionError as e:
            self._report(e)
            return False
        return True

    def undo(self) -> bool:
        try:
            self._set_draft(self.draft.undo())
        except InvalidTransitionError as e:
            self._report(e)
            return False
        return True

    def clear(self) -> None:
        self._set_draft(self.draft.clear())

    def complete(self) -> bool:
        try:
            self._set_draft(self.draft.complete())
        except (ValidationError, InvalidTransitionError) as e:
            self._report(e)
            return False
        return True

    def save_plot(self, attributes: PlotAttributes) -> SaveResult:
        """Persist the completed draft; on failure the draft stays open for a retry."""
        try:
            transform = self._require_transform(self.drawer_box)
            draft, result, record = submit_draft(
                self.draft, transform, attributes, self.venture.venture_id, self.repository
            )
        except (ValidationError, InvalidTransitionError) as e:
            self._report(e)
            return SaveResult(success=False, message=str(e))

        if not result.success:
            self.error_occurred.emit(result.message or "Failed to save plot")
            return result

        self.venture.plots.append(record)
        self.plots_changed.emit(self.venture.plots)
        self._set_draft(draft)
        self.status_message.emit(f"Plot {attributes.plot_no} saved successfully!")
        return result

    # ---- calibration wizard ----

    def start_calibration(self) -> bool:
        if not self.venture.has_image:
            self._report(InvalidTransitionError("No image loaded."))
            return False
        self.discard_sessions()
        self._set_session(CalibrationSession.start(self.venture.calibration))
        return True

    def _update_session(self, transition) -> bool:
        if self.calibration_session is None:
            self._report(InvalidTransitionError("Calibration wizard is not open."))
            return False
        try:
            self._set_session(transition(self.calibration_session))
        except (ValidationError, InvalidTransitionError) as e:
            self._report(e)
            return False
        return True

    def calibration_click(self, point: DisplayPoint) -> bool:
        transform = self.calibration_transform
        if transform is None:
            self._report(InvalidTransitionError("No image loaded."))
            return False
        return self._update_session(lambda s: s.click(point, transform))

    def calibration_next(self) -> bool:
        return self._update_session(lambda s: s.next())

    def calibration_back(self) -> bool:
        return self._update_session(lambda s: s.back())

    def calibration_go_to(self, step: WizardStep) -> bool:
        return self._update_session(lambda s: s.go_to(step))

    def reset_origin(self) -> bool:
        return self._update_session(lambda s: s.reset_origin())

    def clear_scale_points(self) -> bool:
        return self._update_session(lambda s: s.clear_scale_points())

    def set_reference_distance(self, text: str) -> bool:
        return self._update_session(lambda s: s.set_reference_distance(text))

    def set_unit(self, unit: LengthUnit | str) -> bool:
        return self._update_session(lambda s: s.set_unit(unit))

    def save_calibration(self) -> SaveResult:
        if self.calibration_session is None:
            self._report(InvalidTransitionError("Calibration wizard is not open."))
            return SaveResult(success=False, message="Calibration wizard is not open.")
        try:
            session, result, record = submit_calibration(
                self.calibration_session, self.venture.venture_id, self.repository
            )
        except (ValidationError, InvalidTransitionError) as e:
            self._report(e)
            return SaveResult(success=False, message=str(e))

        if not result.success:
            self.error_occurred.emit(result.message or "Failed to save calibration")
            return result

        self.venture.apply_calibration(record)
        self.calibration_changed.emit(self.venture.calibration)
        self._set_session(session)
        self.status_message.emit("Calibration saved successfully!")
        return result

    def close_calibration(self) -> None:
        """Close the wizard without saving."""
        self._set_session(None)

    # ---- rendering ----

    def draft_shape(self) -> DraftShape:
        return draft_shape(self.draft)

    def plot_shapes(self) -> list[PlotShape]:
        transform = self.drawer_transform
        if transform is None:
            return []
        return plot_shapes(self.venture.plots, transform)

    def calibration_markers(self) -> CalibrationMarkers:
        transform = self.calibration_transform
        if transform is None:
            return CalibrationMarkers()
        return calibration_markers(transform, self.calibration_session, self.venture.calibration)
