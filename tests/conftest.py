import os

import pytest

# Qt must not try to open a display on CI machines
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from plotdigitizer.model.calibration import CalibrationRecord
from plotdigitizer.model.errors import PersistenceError
from plotdigitizer.model.io import SaveResult


class FakeRepository:
    """In-memory PlotRepository whose saves can be made to fail."""

    def __init__(self):
        self.plots = {}
        self.calibrations = {}
        self.fail_with = None  # None | "result" | "error"
        self.saved_plots = []
        self.saved_calibrations = []

    def _failure(self):
        if self.fail_with == "error":
            raise PersistenceError("Network error. Please check your connection and try again.")
        if self.fail_with == "result":
            return SaveResult(success=False, message="backend said no")
        return None

    def save_plot(self, record):
        failure = self._failure()
        if failure is not None:
            return failure
        plot_id = f"plot-{len(self.saved_plots) + 1}"
        self.saved_plots.append(record)
        self.plots.setdefault(record.venture_id, []).append(record)
        return SaveResult(success=True, id=plot_id)

    def load_plots(self, venture_id):
        return list(self.plots.get(venture_id, []))

    def save_calibration(self, venture_id, record):
        failure = self._failure()
        if failure is not None:
            return failure
        self.saved_calibrations.append((venture_id, record))
        self.calibrations[venture_id] = record
        return SaveResult(success=True, id=venture_id)

    def load_calibration(self, venture_id):
        return self.calibrations.get(venture_id, CalibrationRecord())


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication([])
    yield app
