"""
Plot Entity
===========
A saved plot: its closed image-space ring plus the attributes entered in the
details form.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from enum import StrEnum
import logging
from typing import Any, Dict, Mapping, Optional

from plotdigitizer.model.codec import PlotGeometry
from plotdigitizer.model.errors import ValidationError

logger = logging.getLogger(__name__)


class PlotStatus(StrEnum):
    AVAILABLE = "Available"
    SOLD = "Sold"
    RESERVED = "Reserved"


# Python field name -> wire name
_WIRE_NAMES: Dict[str, str] = {
    "plot_no": "plotNo",
    "status": "status",
    "facing": "facing",
    "area": "area",
    "price": "price",
    "survey_no": "surveyNo",
    "location_pin": "locationPin",
    "boundaries": "boundaries",
    "notes": "notes",
    "plot_types": "plotTypes",
    "address": "address",
    "measurements": "measurements",
}


def _to_float(value: Any) -> float:
    """Numeric form input; blanks and garbage count as 0."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class PlotAttributes:
    plot_no: str
    status: PlotStatus = PlotStatus.AVAILABLE
    facing: str = ""
    area: float = 0.0
    price: float = 0.0
    survey_no: str = ""
    location_pin: str = ""
    boundaries: str = ""
    notes: str = ""
    plot_types: str = ""
    address: str = ""
    measurements: str = ""

    def validate(self) -> None:
        if not self.plot_no.strip():
            raise ValidationError("Plot number is required.")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[_WIRE_NAMES[f.name]] = str(value) if isinstance(value, PlotStatus) else value
        return out

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> PlotAttributes:
        """Build from form values or a backend document (wire names)."""
        kwargs: Dict[str, Any] = {}
        for name, wire in _WIRE_NAMES.items():
            if wire in data and data[wire] is not None:
                kwargs[name] = data[wire]

        kwargs["plot_no"] = str(kwargs.get("plot_no", ""))
        kwargs["area"] = _to_float(kwargs.get("area"))
        kwargs["price"] = _to_float(kwargs.get("price"))
        try:
            kwargs["status"] = PlotStatus(kwargs.get("status", PlotStatus.AVAILABLE))
        except ValueError:
            logger.warning(f"Unknown plot status '{kwargs['status']}', using '{PlotStatus.AVAILABLE}'.")
            kwargs["status"] = PlotStatus.AVAILABLE
        for name in _WIRE_NAMES:
            if name not in ("area", "price", "status") and name in kwargs:
                kwargs[name] = str(kwargs[name])
        return PlotAttributes(**kwargs)


@dataclass(frozen=True)
class PlotRecord:
    venture_id: str
    geometry: PlotGeometry
    attributes: PlotAttributes
    id: Optional[str] = None

    def to_request(self) -> Dict[str, Any]:
        """Body of the save-plot call."""
        body: Dict[str, Any] = {"ventureId": self.venture_id, "geometry": self.geometry.to_dict()}
        body.update(self.attributes.to_dict())
        return body

    @staticmethod
    def from_dict(data: Mapping[str, Any], venture_id: Optional[str] = None) -> PlotRecord:
        if not isinstance(data, Mapping):
            raise ValidationError(f"Plot document must be a mapping, got {type(data).__name__}.")
        return PlotRecord(
            venture_id=str(data.get("ventureId") or venture_id or ""),
            geometry=PlotGeometry.from_dict(data.get("geometry") or {}),
            attributes=PlotAttributes.from_dict(data),
            id=data.get("_id") or data.get("id"),
        )
