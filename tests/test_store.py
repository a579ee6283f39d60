import pytest

from plotdigitizer.app.state import Store
from plotdigitizer.model.calibration import CalibrationRecord, LengthUnit, ScaleReference
from plotdigitizer.model.capture import CaptureState
from plotdigitizer.model.geometry_primitives import DisplayPoint, ImageDimensions, ImagePoint, MaxBox
from plotdigitizer.model.plot import PlotAttributes
from plotdigitizer.model.wizard import WizardStep

CLICKS = [DisplayPoint(10, 10), DisplayPoint(110, 10), DisplayPoint(110, 110), DisplayPoint(10, 110)]


@pytest.fixture
def store(qapp, repository):
    s = Store(repository)
    s.open_venture("v1", image=ImageDimensions(2000, 1200))
    return s


def _record(signal):
    received = []
    signal.connect(lambda *args: received.append(args))
    return received


def _draw(store, points=CLICKS):
    for p in points:
        assert store.add_vertex(p)


def test_open_venture_loads_saved_data(qapp, repository):
    calibration = CalibrationRecord(ImagePoint(1, 2), ScaleReference(200, 20, LengthUnit.FEET))
    repository.calibrations["v1"] = calibration
    store = Store(repository)
    store.open_venture("v1", name="Green Acres", image=ImageDimensions(2000, 1200))

    assert store.venture.name == "Green Acres"
    assert store.venture.calibration == calibration
    assert store.drawer_transform is not None


def test_no_image_blocks_capture(qapp, repository):
    store = Store(repository)
    errors = _record(store.error_occurred)
    assert not store.add_vertex(DisplayPoint(1, 1))
    assert not store.start_calibration()
    assert store.draft.state == CaptureState.EMPTY
    assert len(errors) == 2


def test_draw_complete_and_save(store, repository):
    changes = _record(store.draft_changed)
    plots = _record(store.plots_changed)
    _draw(store)
    assert len(changes) == 4
    assert store.complete()

    result = store.save_plot(PlotAttributes(plot_no="12"))

    assert result.success
    assert store.draft.state == CaptureState.EMPTY
    assert [p.id for p in store.venture.plots] == ["plot-1"]
    assert plots
    saved = repository.saved_plots[0].geometry.coordinates
    # 1000x600 display for a 2000x1200 image
    assert saved[0] == ImagePoint(20, 20)
    assert saved[2] == ImagePoint(220, 220)
    assert len(store.plot_shapes()) == 1


def test_failed_save_keeps_draft(store, repository):
    repository.fail_with = "error"
    errors = _record(store.error_occurred)
    _draw(store)
    store.complete()

    assert not store.save_plot(PlotAttributes(plot_no="12")).success
    assert store.draft.state == CaptureState.AWAITING_DETAILS
    assert store.venture.plots == []
    assert errors == [("Network error. Please check your connection and try again.",)]


def test_missing_plot_number_keeps_draft(store):
    _draw(store)
    store.complete()
    assert not store.save_plot(PlotAttributes(plot_no="")).success
    assert store.draft.completed


def test_complete_too_early_reports(store):
    errors = _record(store.error_occurred)
    _draw(store, CLICKS[:2])
    assert not store.complete()
    assert store.draft.state == CaptureState.DRAWING
    assert len(errors) == 1


def test_undo_and_clear(store):
    _draw(store, CLICKS[:2])
    assert store.undo()
    assert len(store.draft) == 1
    store.clear()
    assert store.draft.state == CaptureState.EMPTY


def test_calibration_flow(store, repository):
    _draw(store, CLICKS[:2])
    assert store.start_calibration()
    # Only one session at a time
    assert store.draft.state == CaptureState.EMPTY
    assert not store.add_vertex(DisplayPoint(1, 1))

    store.calibration_click(DisplayPoint(35, 35))
    assert store.calibration_next()
    store.calibration_click(DisplayPoint(0, 0))
    store.calibration_click(DisplayPoint(105, 0))
    store.set_reference_distance("30")
    store.set_unit("meters")
    assert store.calibration_next()
    assert store.calibration_session.step == WizardStep.CONFIRM

    changed = _record(store.calibration_changed)
    assert store.save_calibration().success

    assert store.calibration_session is None
    assert changed
    record = store.venture.calibration
    assert record.origin == ImagePoint(100, 100)
    assert record.scale == ScaleReference(300, 30, LengthUnit.METERS)
    assert repository.saved_calibrations == [("v1", record)]
    assert store.calibration_markers().origin is not None


def test_calibration_failure_keeps_session(store, repository):
    repository.fail_with = "result"
    store.start_calibration()
    store.calibration_click(DisplayPoint(35, 35))
    store.calibration_next()
    store.calibration_next()

    assert not store.save_calibration().success
    assert store.calibration_session is not None
    assert store.venture.calibration == CalibrationRecord()


def test_wizard_errors_are_reported(store):
    errors = _record(store.error_occurred)
    assert not store.calibration_next()
    store.start_calibration()
    assert not store.calibration_next()
    assert not store.calibration_back()
    assert len(errors) == 3


def test_close_calibration(store):
    store.start_calibration()
    store.close_calibration()
    assert store.calibration_session is None
    assert store.add_vertex(DisplayPoint(1, 1))


def test_resizing_changes_transform(store):
    before = store.drawer_transform.scale
    store.set_drawer_box(MaxBox(500, 500))
    assert store.drawer_transform.scale != before


def test_plot_area_uses_venture_calibration(store):
    _draw(store)
    store.complete()
    store.save_plot(PlotAttributes(plot_no="1"))
    # 200x200 image px at the placeholder scale of 100 px = 10 units
    assert store.venture.plot_area(store.venture.plots[0]) == pytest.approx(400)


@pytest.mark.parametrize("completed", [False, True])
def test_resizing_keeps_open_draft_in_image_space(store, repository, completed):
    _draw(store, CLICKS[:3])
    if completed:
        store.complete()
    store.set_drawer_box(MaxBox(500, 500))

    # 500x300 display now, scale 4
    assert store.draft.vertices[0] == DisplayPoint(5, 5)
    assert store.draft.completed is completed
    if not completed:
        store.complete()
    assert store.save_plot(PlotAttributes(plot_no="9")).success

    saved = repository.saved_plots[0].geometry.coordinates
    assert saved[:3] == (ImagePoint(20, 20), ImagePoint(220, 20), ImagePoint(220, 220))
