from __future__ import annotations

from typing import Sequence, TypeVar, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy import typing as npt

from plotdigitizer.model.calibration import CalibrationRecord
from plotdigitizer.model.codec import PlotGeometry
from plotdigitizer.model.geometry_primitives import _Point2D, points_to_array

P = TypeVar("P", bound=_Point2D)


def _open_ring(points: Sequence[_Point2D]) -> npt.NDArray[np.float64]:
    """(N, 2) array of a ring with any closing duplicate removed."""
    pts = points_to_array(points)
    if len(pts) > 1 and np.array_equal(pts[0], pts[-1]):
        pts = pts[:-1]
    return pts


def signed_area(points: Sequence[_Point2D]) -> float:
    """
    Shoelace area of a polygon, positive for counter-clockwise rings in a
    y-up frame (clockwise on screen, where y grows downwards).

    Args:
        points: Open or closed ring.

    Returns:
        Signed area in squared units of the input space.
    """
    pts = _open_ring(points)
    if len(pts) < 3:
        return 0.0
    x, y = pts[:, 0], pts[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def polygon_area(points: Sequence[_Point2D]) -> float:
    return abs(signed_area(points))


def polygon_centroid(points: Sequence[P]) -> P:
    """
    Area-weighted centroid of a polygon, used as the anchor of plot labels.

    A degenerate (zero-area) polygon gives the origin of its space, matching
    how labels of collapsed plots have always been placed.

    Args:
        points: Open or closed ring, all in one coordinate space.

    Returns:
        The centroid, in the same space as the input.
    """
    point_type = type(points[0])
    pts = _open_ring(points)
    x, y = pts[:, 0], pts[:, 1]
    x_next, y_next = np.roll(x, -1), np.roll(y, -1)

    cross = x * y_next - x_next * y
    area3 = 3.0 * float(cross.sum())
    if area3 == 0.0:
        return point_type(0.0, 0.0)

    cx = float(((x + x_next) * cross).sum()) / area3
    cy = float(((y + y_next) * cross).sum()) / area3
    return point_type(cx, cy)


def perimeter(points: Sequence[_Point2D]) -> float:
    """Length of the closed boundary."""
    pts = _open_ring(points)
    if len(pts) < 2:
        return 0.0
    return float(np.linalg.norm(np.roll(pts, -1, axis=0) - pts, axis=1).sum())


def plot_area_in_units(geometry: PlotGeometry, calibration: CalibrationRecord) -> float:
    """Real-world area of a saved plot (squared calibration units)."""
    return calibration.area_to_units(polygon_area(geometry.coordinates))
