"""
Main Application Window
=======================
The primary GUI container: the site-plan canvas with the plot drawer
controls and the calibration wizard panel.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects buttons and forms to the Store.
"""
from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel, QLineEdit,
    QComboBox, QDialog, QDialogButtonBox, QFormLayout, QGroupBox, QMessageBox, QTextEdit
)

from plotdigitizer.app.state import Store
from plotdigitizer.model.calibration import LengthUnit
from plotdigitizer.model.capture import CaptureState
from plotdigitizer.model.plot import PlotAttributes, PlotStatus
from plotdigitizer.model.wizard import CalibrationSession, WizardStep
from plotdigitizer.view.canvas import SitePlanCanvas, CanvasMode

VISIBLE_APP_NAME = "Plot Layout Designer"

STEP_HINTS = {
    WizardStep.ORIGIN: "Step 1: Click on the image to set the origin point.",
    WizardStep.SCALE: "Step 2: Click two points to draw a reference line, then enter the real-world distance.",
    WizardStep.CONFIRM: "Step 3: Review your calibration settings before saving.",
}


class PlotDetailsDialog(QDialog):
    """The details form opened after a polygon is completed."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Enter Plot Details")
        form = QFormLayout(self)

        self._edits: dict[str, QLineEdit] = {}
        for key, label in [("plotNo", "Plot Number *"), ("facing", "Facing"), ("area", "Area (sq ft) *"),
                           ("price", "Price *"), ("surveyNo", "Survey Number"), ("locationPin", "Location Pin"),
                           ("plotTypes", "Plot Type"), ("measurements", "Measurements")]:
            edit = QLineEdit()
            form.addRow(label, edit)
            self._edits[key] = edit

        self.status_combo = QComboBox()
        self.status_combo.addItems([str(s) for s in PlotStatus])
        form.addRow("Status", self.status_combo)

        self._texts: dict[str, QTextEdit] = {}
        for key, label in [("address", "Address"), ("boundaries", "Boundaries"), ("notes", "Notes")]:
            text = QTextEdit()
            text.setFixedHeight(48)
            form.addRow(label, text)
            self._texts[key] = text

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        form.addRow(buttons)

    def attributes(self) -> PlotAttributes:
        values = {key: edit.text() for key, edit in self._edits.items()}
        values.update({key: text.toPlainText() for key, text in self._texts.items()})
        values["status"] = self.status_combo.currentText()
        return PlotAttributes.from_dict(values)


class MainWindow(QMainWindow):
    def __init__(self, store: Store) -> None:
        super().__init__()
        self.store = store
        self.setWindowTitle(VISIBLE_APP_NAME)

        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        layout = QHBoxLayout(main_widget)

        self.canvas = SitePlanCanvas(store)
        layout.addWidget(self.canvas, stretch=1, alignment=Qt.AlignmentFlag.AlignTop)

        side = QVBoxLayout()
        layout.addLayout(side)

        # --- Plot drawer ---
        grp_draw = QGroupBox("Plot Drawer")
        draw_layout = QVBoxLayout(grp_draw)
        self.btn_complete = QPushButton("Complete Polygon")
        self.btn_complete.clicked.connect(self.on_complete_clicked)
        self.btn_undo = QPushButton("Undo Point")
        self.btn_undo.clicked.connect(store.undo)
        self.btn_reset = QPushButton("Cancel/Reset")
        self.btn_reset.clicked.connect(store.clear)
        for btn in (self.btn_complete, self.btn_undo, self.btn_reset):
            draw_layout.addWidget(btn)
        side.addWidget(grp_draw)

        # --- Calibration wizard ---
        grp_cal = QGroupBox("Calibration")
        cal_layout = QVBoxLayout(grp_cal)
        self.btn_calibrate = QPushButton("Calibrate…")
        self.btn_calibrate.clicked.connect(self.on_calibrate_clicked)
        self.lbl_step = QLabel("")
        self.lbl_step.setWordWrap(True)
        self.lbl_summary = QLabel("")
        self.lbl_summary.setWordWrap(True)
        self.edit_distance = QLineEdit()
        self.edit_distance.setPlaceholderText("e.g., 50")
        self.edit_distance.textEdited.connect(store.set_reference_distance)
        self.combo_unit = QComboBox()
        for unit in LengthUnit:
            self.combo_unit.addItem(unit.label, str(unit))
        self.combo_unit.currentIndexChanged.connect(
            lambda i: store.set_unit(self.combo_unit.itemData(i)) if store.calibration_session else None
        )
        self.btn_reset_origin = QPushButton("Reset Origin")
        self.btn_reset_origin.clicked.connect(store.reset_origin)
        self.btn_clear_line = QPushButton("Clear Line")
        self.btn_clear_line.clicked.connect(store.clear_scale_points)

        nav = QHBoxLayout()
        self.btn_prev = QPushButton("← Previous")
        self.btn_prev.clicked.connect(store.calibration_back)
        self.btn_next = QPushButton("Next →")
        self.btn_next.clicked.connect(store.calibration_next)
        self.btn_save_cal = QPushButton("Save Calibration")
        self.btn_save_cal.clicked.connect(store.save_calibration)
        self.btn_close_cal = QPushButton("Close")
        self.btn_close_cal.clicked.connect(store.close_calibration)
        for btn in (self.btn_prev, self.btn_next, self.btn_save_cal, self.btn_close_cal):
            nav.addWidget(btn)

        for w in (self.btn_calibrate, self.lbl_step, self.btn_reset_origin, self.btn_clear_line,
                  self.edit_distance, self.combo_unit, self.lbl_summary):
            cal_layout.addWidget(w)
        cal_layout.addLayout(nav)
        side.addWidget(grp_cal)
        side.addStretch()

        store.draft_changed.connect(self.refresh)
        store.session_changed.connect(self.refresh)
        store.image_changed.connect(self.refresh)
        store.error_occurred.connect(lambda msg: QMessageBox.warning(self, VISIBLE_APP_NAME, msg))
        store.status_message.connect(lambda msg: self.statusBar().showMessage(msg, 3000))

        self.refresh()

    # --- SLOTS ---

    def on_complete_clicked(self) -> None:
        if not self.store.complete():
            return
        dialog = PlotDetailsDialog(self)
        while dialog.exec() == QDialog.DialogCode.Accepted:
            if self.store.save_plot(dialog.attributes()).success:
                return
        # Cancelled: drop the polygon, like the drawer's Cancel button
        self.store.clear()

    def on_calibrate_clicked(self) -> None:
        if self.store.start_calibration():
            self.edit_distance.clear()
            session = self.store.calibration_session
            self.combo_unit.setCurrentIndex(self.combo_unit.findData(str(session.unit)))

    def refresh(self, *_) -> None:
        draft = self.store.draft
        has_image = self.store.venture.has_image
        session: Optional[CalibrationSession] = self.store.calibration_session

        self.canvas.set_mode(CanvasMode.CALIBRATE if session else CanvasMode.DRAW)
        self.btn_complete.setText(f"Complete Polygon ({len(draft)} points)")
        self.btn_complete.setEnabled(draft.state == CaptureState.READY_TO_COMPLETE)
        self.btn_undo.setEnabled(bool(draft.vertices) and not draft.completed)
        self.btn_calibrate.setEnabled(has_image and session is None)

        in_wizard = session is not None
        for w in (self.btn_prev, self.btn_next, self.btn_save_cal, self.btn_close_cal,
                  self.btn_reset_origin, self.btn_clear_line, self.edit_distance, self.combo_unit):
            w.setEnabled(in_wizard)
        if session is None:
            self.lbl_step.setText("")
            self.lbl_summary.setText("")
            return

        self.lbl_step.setText(STEP_HINTS[session.step])
        self.btn_prev.setEnabled(session.step > WizardStep.ORIGIN)
        self.btn_next.setEnabled(session.step < WizardStep.CONFIRM and session.can_advance)
        self.btn_save_cal.setEnabled(session.step == WizardStep.CONFIRM)
        self.btn_reset_origin.setEnabled(session.step == WizardStep.ORIGIN)
        self.btn_clear_line.setEnabled(session.step == WizardStep.SCALE)
        self.edit_distance.setEnabled(session.step == WizardStep.SCALE and len(session.scale_points) == 2)
        self.lbl_summary.setText(str(session.summary()))
