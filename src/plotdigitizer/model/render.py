"""
Render Model
============
Pure functions that turn engine state into display-space shapes for the
canvas. Nothing here is stored: everything is derived from image-space data
and the current transform on every redraw.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from plotdigitizer.model.calibration import CalibrationRecord
from plotdigitizer.model.capture import PolygonDraft
from plotdigitizer.model.codec import decode
from plotdigitizer.model.geometry_primitives import DisplayPoint
from plotdigitizer.model.geometry_utils import polygon_centroid
from plotdigitizer.model.plot import PlotRecord
from plotdigitizer.model.transform import CoordinateTransform
from plotdigitizer.model.wizard import CalibrationSession


@dataclass(frozen=True)
class DraftShape:
    points: tuple[DisplayPoint, ...]
    closed: bool


@dataclass(frozen=True)
class PlotShape:
    plot_id: Optional[str]
    label: str
    points: tuple[DisplayPoint, ...]
    label_anchor: DisplayPoint


@dataclass(frozen=True)
class CalibrationMarkers:
    origin: Optional[DisplayPoint] = None
    scale_points: tuple[DisplayPoint, ...] = ()
    scale_label: Optional[str] = None
    scale_label_anchor: Optional[DisplayPoint] = None

    @property
    def scale_line(self) -> Optional[tuple[DisplayPoint, DisplayPoint]]:
        if len(self.scale_points) < 2:
            return None
        return self.scale_points[0], self.scale_points[1]


def draft_shape(draft: PolygonDraft) -> DraftShape:
    """The in-progress polyline; drawn closed once the polygon is completed."""
    return DraftShape(points=draft.vertices, closed=draft.completed)


def plot_shapes(plots: Iterable[PlotRecord], transform: CoordinateTransform) -> list[PlotShape]:
    """Saved plots mapped into the current display space, labelled at their centroid."""
    shapes: list[PlotShape] = []
    for plot in plots:
        points = transform.to_display_space_many(decode(plot.geometry))
        shapes.append(PlotShape(
            plot_id=plot.id,
            label=f"Plot {plot.attributes.plot_no}",
            points=tuple(points),
            label_anchor=polygon_centroid(points),
        ))
    return shapes


def calibration_markers(
    transform: CoordinateTransform,
    session: Optional[CalibrationSession] = None,
    record: Optional[CalibrationRecord] = None,
) -> CalibrationMarkers:
    """
    Origin marker and scale reference line.

    An open session wins over the saved record; without a session only the
    saved origin is shown.
    """
    if session is None:
        if record is None or record.origin is None:
            return CalibrationMarkers()
        return CalibrationMarkers(origin=transform.to_display_space(record.origin))

    origin = transform.to_display_space(session.origin) if session.origin is not None else None
    points = tuple(p.display for p in session.scale_points)

    label = None
    anchor = None
    if len(points) == 2:
        label = f"{session.pixel_distance} px"
        anchor = DisplayPoint((points[0].x + points[1].x) / 2, (points[0].y + points[1].y) / 2)

    return CalibrationMarkers(origin=origin, scale_points=points, scale_label=label, scale_label_anchor=anchor)
