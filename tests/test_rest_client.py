from unittest.mock import MagicMock

import pytest
import requests

from plotdigitizer.controller.rest_client import RestRepository
from plotdigitizer.model.calibration import CalibrationRecord, LengthUnit, ScaleReference
from plotdigitizer.model.codec import encode
from plotdigitizer.model.errors import PersistenceError
from plotdigitizer.model.geometry_primitives import ImagePoint
from plotdigitizer.model.plot import PlotAttributes, PlotRecord

RING = [ImagePoint(0, 0), ImagePoint(10, 0), ImagePoint(10, 10)]


def _response(status=200, payload=None):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture
def repo(session):
    return RestRepository(base_url="http://api.test/", token="t0k", session=session)


def test_headers(repo, session):
    assert session.headers["Authorization"] == "Bearer t0k"
    assert session.headers["Content-Type"] == "application/json"


def test_save_plot(repo, session):
    session.request.return_value = _response(201, {"success": True, "data": {"_id": "p1"}})
    record = PlotRecord("v1", encode(RING), PlotAttributes(plot_no="4"))

    result = repo.save_plot(record)

    assert result.success and result.id == "p1"
    method, url = session.request.call_args.args
    assert (method, url) == ("POST", "http://api.test/api/v1/plots")
    assert session.request.call_args.kwargs["json"] == record.to_request()


def test_save_plot_rejected(repo, session):
    session.request.return_value = _response(400, {"success": False, "message": "Plot number already exists"})
    result = repo.save_plot(PlotRecord("v1", encode(RING), PlotAttributes(plot_no="4")))
    assert not result.success
    assert result.message == "Plot number already exists"


def test_network_error(repo, session):
    session.request.side_effect = requests.ConnectionError("boom")
    with pytest.raises(PersistenceError, match="Network error"):
        repo.load_plots("v1")


def test_session_expired(repo, session):
    session.request.return_value = _response(401, {"success": False})
    with pytest.raises(PersistenceError, match="Session expired"):
        repo.save_calibration("v1", CalibrationRecord(origin=ImagePoint(0, 0)))


def test_invalid_json(repo, session):
    session.request.return_value = _response(500, ValueError("no json"))
    with pytest.raises(PersistenceError):
        repo.load_calibration("v1")


def test_load_plots_skips_broken_documents(repo, session):
    good = dict(PlotRecord("v1", encode(RING), PlotAttributes(plot_no="1")).to_request(), _id="a")
    too_small = {"_id": "b", "plotNo": "2", "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]}}
    not_a_ring = {"_id": "c", "plotNo": "3", "geometry": {"type": "Polygon", "coordinates": [None]}}
    session.request.return_value = _response(200, {"success": True, "data": [too_small, good, not_a_ring, "d"]})

    plots = repo.load_plots("v1")

    assert [p.id for p in plots] == ["a"]
    assert session.request.call_args.args[1] == "http://api.test/api/v1/plots/venture/v1"


def test_save_calibration(repo, session):
    session.request.return_value = _response(200, {"success": True, "data": {}})
    record = CalibrationRecord(ImagePoint(5, 6), ScaleReference(300, 50, LengthUnit.METERS))

    assert repo.save_calibration("v9", record).success
    method, url = session.request.call_args.args
    assert (method, url) == ("PUT", "http://api.test/api/v1/ventures/v9/calibration")
    assert session.request.call_args.kwargs["json"] == record.to_dict()


def test_load_calibration(repo, session):
    calibration = {"origin": {"x": 5, "y": 6},
                   "scale": {"referencePixels": 300, "referenceUnits": 50, "unit": "meters"},
                   "isCalibrated": True}
    session.request.return_value = _response(200, {"success": True, "data": {"_id": "v9", "calibration": calibration}})
    assert repo.load_calibration("v9") == CalibrationRecord(ImagePoint(5, 6), ScaleReference(300, 50, LengthUnit.METERS))
