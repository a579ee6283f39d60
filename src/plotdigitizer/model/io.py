"""
Input/Output Manager (HDF5)
Persistence collaborator contract and a local HDF5-backed implementation.

File layout:
    /ventures/<venture_id>/calibration        attrs: origin_x, origin_y, reference_pixels, reference_units, unit
    /ventures/<venture_id>/plots/<plot_id>    dataset (N, 2) float64 closed ring, attrs: attributes_json
"""
from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
import uuid
from importlib.metadata import version, PackageNotFoundError
from typing import Optional, Protocol

import h5py
import numpy as np

from plotdigitizer.model.calibration import CalibrationRecord, LengthUnit, ScaleReference
from plotdigitizer.model.codec import encode
from plotdigitizer.model.errors import PersistenceError
from plotdigitizer.model.geometry_primitives import ImagePoint, points_to_array, array_to_points
from plotdigitizer.model.plot import PlotAttributes, PlotRecord

# Get module logger
logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("plotdigitizer")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a save call, as reported by the collaborator."""
    success: bool
    id: Optional[str] = None
    message: Optional[str] = None


class PlotRepository(Protocol):
    """What the engine needs from a persistence backend."""

    def save_plot(self, record: PlotRecord) -> SaveResult: ...

    def load_plots(self, venture_id: str) -> list[PlotRecord]: ...

    def save_calibration(self, venture_id: str, record: CalibrationRecord) -> SaveResult: ...

    def load_calibration(self, venture_id: str) -> CalibrationRecord: ...


class HDF5Repository:
    """Stores ventures, plots and calibrations in a single .h5 file."""

    def __init__(self, filepath: str) -> None:
        self.filepath = filepath

    def _open(self, mode: str) -> h5py.File:
        if mode != "r":
            directory = os.path.dirname(self.filepath)
            if directory:
                os.makedirs(directory, exist_ok=True)
        f = h5py.File(self.filepath, mode)
        if mode != "r" and "version" not in f.attrs:
            f.attrs["version"] = APP_VERSION
        return f

    def _exists(self) -> bool:
        return os.path.exists(self.filepath)

    # ---- plots ----

    def save_plot(self, record: PlotRecord) -> SaveResult:
        plot_id = record.id or uuid.uuid4().hex
        logger.info(f"Saving plot '{record.attributes.plot_no}' of venture '{record.venture_id}' to: {self.filepath}")
        try:
            with self._open("a") as f:
                grp_plots = f.require_group(f"ventures/{record.venture_id}").require_group("plots")
                if plot_id in grp_plots:
                    # Re-saving a plot keeps its place in the list
                    order = int(grp_plots[plot_id].attrs.get("order", 0))
                    del grp_plots[plot_id]
                else:
                    order = 1 + max((int(d.attrs.get("order", 0)) for d in grp_plots.values()), default=0)
                dset = grp_plots.create_dataset(plot_id, data=points_to_array(record.geometry.coordinates))
                dset.attrs["attributes_json"] = json.dumps(record.attributes.to_dict())
                dset.attrs["order"] = order
        except (OSError, ValueError, KeyError) as e:
            logger.exception(f"Failed to save plot: {e}")
            raise PersistenceError(f"Could not write '{self.filepath}': {e}") from e

        return SaveResult(success=True, id=plot_id)

    def load_plots(self, venture_id: str) -> list[PlotRecord]:
        if not self._exists():
            logger.debug(f"No data file at '{self.filepath}', no plots.")
            return []

        plots: list[tuple[int, PlotRecord]] = []
        try:
            with self._open("r") as f:
                path = f"ventures/{venture_id}/plots"
                if path not in f:
                    return []
                for plot_id, dset in f[path].items():
                    ring = array_to_points(dset[()], ImagePoint)
                    attributes = PlotAttributes.from_dict(json.loads(dset.attrs.get("attributes_json", "{}")))
                    record = PlotRecord(
                        venture_id=venture_id,
                        geometry=encode(ring),
                        attributes=attributes,
                        id=plot_id,
                    )
                    plots.append((int(dset.attrs.get("order", 0)), record))
        except (OSError, ValueError, KeyError) as e:
            logger.exception(f"Failed to load plots: {e}")
            raise PersistenceError(f"Could not read '{self.filepath}': {e}") from e

        logger.debug(f"Loaded {len(plots)} plots of venture '{venture_id}'.")
        return [record for _, record in sorted(plots, key=lambda item: item[0])]

    # ---- calibration ----

    def save_calibration(self, venture_id: str, record: CalibrationRecord) -> SaveResult:
        logger.info(f"Saving calibration of venture '{venture_id}' to: {self.filepath}")
        try:
            with self._open("a") as f:
                grp_venture = f.require_group(f"ventures/{venture_id}")
                if "calibration" in grp_venture:
                    del grp_venture["calibration"]
                grp_cal = grp_venture.create_group("calibration")
                if record.origin is not None:
                    grp_cal.attrs["origin_x"] = record.origin.x
                    grp_cal.attrs["origin_y"] = record.origin.y
                grp_cal.attrs["reference_pixels"] = record.scale.reference_pixels
                grp_cal.attrs["reference_units"] = record.scale.reference_units
                grp_cal.attrs["unit"] = str(record.scale.unit)
        except (OSError, ValueError, KeyError) as e:
            logger.exception(f"Failed to save calibration: {e}")
            raise PersistenceError(f"Could not write '{self.filepath}': {e}") from e

        return SaveResult(success=True, id=venture_id)

    def load_calibration(self, venture_id: str) -> CalibrationRecord:
        if not self._exists():
            return CalibrationRecord()

        try:
            with self._open("r") as f:
                path = f"ventures/{venture_id}/calibration"
                if path not in f:
                    return CalibrationRecord()
                attrs = {key: _native(val) for key, val in f[path].attrs.items()}
        except (OSError, ValueError, KeyError) as e:
            logger.exception(f"Failed to load calibration: {e}")
            raise PersistenceError(f"Could not read '{self.filepath}': {e}") from e

        origin = None
        if "origin_x" in attrs and "origin_y" in attrs:
            origin = ImagePoint(float(attrs["origin_x"]), float(attrs["origin_y"]))
        scale = ScaleReference.from_dict({
            "referencePixels": attrs.get("reference_pixels"),
            "referenceUnits": attrs.get("reference_units"),
            "unit": attrs.get("unit", str(LengthUnit.SQYD)),
        })
        return CalibrationRecord(origin=origin, scale=scale)


def _native(val):
    # HDF5 often saves as numpy types, convert to native python
    if isinstance(val, bytes):
        return val.decode('utf-8')
    if isinstance(val, np.generic):
        return val.item()
    return val
