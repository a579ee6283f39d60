"""
REST Persistence
================
`PlotRepository` implementation talking to the site-plan backend.

Endpoints:
    POST /api/v1/plots                        save a plot
    GET  /api/v1/plots/venture/<ventureId>    plots of a venture
    PUT  /api/v1/ventures/<id>/calibration    save a calibration
    GET  /api/v1/ventures/<id>                venture document (with calibration)

Every response is a JSON envelope `{success, data?, message?}`.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from plotdigitizer.config import API_BASE_URL, API_TOKEN, REQUEST_TIMEOUT
from plotdigitizer.model.calibration import CalibrationRecord
from plotdigitizer.model.errors import PersistenceError, ValidationError
from plotdigitizer.model.io import SaveResult
from plotdigitizer.model.plot import PlotRecord

logger = logging.getLogger(__name__)

PLOTS = "/api/v1/plots"
PLOTS_BY_VENTURE = "/api/v1/plots/venture/{venture_id}"
VENTURE = "/api/v1/ventures/{venture_id}"
VENTURE_CALIBRATION = "/api/v1/ventures/{venture_id}/calibration"


class RestRepository:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: Optional[str] = API_TOKEN,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, endpoint: str, body: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        url = endpoint if endpoint.startswith("http") else f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Connection error for {method} {url}: {e}")
            raise PersistenceError("Network error. Please check your connection and try again.") from e

        if response.status_code == 401:
            raise PersistenceError("Session expired. Please login again.")

        try:
            data = response.json()
        except ValueError as e:
            raise PersistenceError(f"Invalid response from {url} (status {response.status_code}).") from e

        if not response.ok:
            message = data.get("message") if isinstance(data, dict) else None
            logger.warning(f"{method} {url} failed with status {response.status_code}: {message}")
            return {"success": False, "message": message or f"Request failed with status {response.status_code}"}
        return data

    # ---- plots ----

    def save_plot(self, record: PlotRecord) -> SaveResult:
        data = self._request("POST", PLOTS, record.to_request())
        if not data.get("success"):
            return SaveResult(success=False, message=data.get("message") or "Failed to save plot")
        created = data.get("data") or {}
        return SaveResult(success=True, id=created.get("_id") or created.get("id"))

    def load_plots(self, venture_id: str) -> list[PlotRecord]:
        data = self._request("GET", PLOTS_BY_VENTURE.format(venture_id=venture_id))
        if not data.get("success") or not isinstance(data.get("data"), list):
            raise PersistenceError(data.get("message") or "Failed to load existing plots")

        plots: list[PlotRecord] = []
        for doc in data["data"]:
            try:
                plots.append(PlotRecord.from_dict(doc, venture_id=venture_id))
            except ValidationError as e:
                # One broken document must not hide the rest of the site plan
                logger.warning(f"Skipping invalid plot document: {e}")
        logger.debug(f"Loaded {len(plots)} plots of venture '{venture_id}'.")
        return plots

    # ---- calibration ----

    def save_calibration(self, venture_id: str, record: CalibrationRecord) -> SaveResult:
        data = self._request("PUT", VENTURE_CALIBRATION.format(venture_id=venture_id), record.to_dict())
        if not data.get("success"):
            return SaveResult(success=False, message=data.get("message") or "Failed to save calibration")
        return SaveResult(success=True, id=venture_id)

    def load_calibration(self, venture_id: str) -> CalibrationRecord:
        data = self._request("GET", VENTURE.format(venture_id=venture_id))
        if not data.get("success"):
            raise PersistenceError(data.get("message") or "Failed to load venture")
        venture = data.get("data") or {}
        return CalibrationRecord.from_dict(venture.get("calibration"))
