"""
Geometry Codec
==============
Converts between an open ring of image-space vertices (what editing works on)
and the closed `PlotGeometry` ring (what is persisted and exchanged).

Both directions are pure and independent of the current viewport.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Any, Mapping, Sequence, Union

from plotdigitizer.config import MIN_POLYGON_VERTICES
from plotdigitizer.model.errors import GeometryError, TooFewVerticesError
from plotdigitizer.model.geometry_primitives import ImagePoint

logger = logging.getLogger(__name__)

GEOMETRY_TYPE = "Polygon"


@dataclass(frozen=True)
class PlotGeometry:
    """
    A closed ring in image-pixel space: the first and last vertex are identical.
    Edits produce a new ring; a saved ring is never mutated.
    """
    coordinates: tuple[ImagePoint, ...]

    def __post_init__(self) -> None:
        if len(self.coordinates) < MIN_POLYGON_VERTICES + 1:
            raise TooFewVerticesError(
                f"A closed ring needs at least {MIN_POLYGON_VERTICES + 1} entries, "
                f"got {len(self.coordinates)}."
            )
        if self.coordinates[0] != self.coordinates[-1]:
            raise GeometryError("Ring is not closed: first and last vertex differ.")

    def __len__(self) -> int:
        return len(self.coordinates)

    @property
    def vertices(self) -> tuple[ImagePoint, ...]:
        """The open ring, without the closing duplicate."""
        return self.coordinates[:-1]

    def to_dict(self) -> dict[str, Any]:
        """GeoJSON-like structure handed to the persistence collaborator."""
        return {
            "type": GEOMETRY_TYPE,
            "coordinates": [[[p.x, p.y] for p in self.coordinates]],
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> PlotGeometry:
        """Parse a persisted structure; an open ring is closed on the way in."""
        return encode(_parse_ring(data))


GeometryLike = Union[PlotGeometry, Mapping[str, Any]]


def _distinct_count(ring: Sequence[ImagePoint]) -> int:
    return len({(p.x, p.y) for p in ring})


def encode(ring: Sequence[ImagePoint], close_ring: bool = True) -> PlotGeometry:
    """
    Turn an image-space ring into the persisted closed form.

    Args:
        ring: Vertices in image space, open or already closed.
        close_ring: If True, a closing duplicate of the first vertex is appended
            when missing. If False, the ring must already be closed.

    Raises:
        TooFewVerticesError: Fewer than 3 distinct vertices.
        GeometryError: `close_ring` is False and the ring is open.
    """
    points = list(ring)
    for p in points:
        if not isinstance(p, ImagePoint):
            raise TypeError(f"Only ImagePoints can be encoded, got {type(p).__name__}.")

    if _distinct_count(points) < MIN_POLYGON_VERTICES:
        raise TooFewVerticesError(
            f"A polygon needs at least {MIN_POLYGON_VERTICES} distinct vertices, "
            f"got {_distinct_count(points)}."
        )

    is_closed = len(points) > 1 and points[0] == points[-1]
    if not is_closed:
        if not close_ring:
            raise GeometryError("Ring is open and close_ring is False.")
        # Reuse the very same object so the closure is bit-identical
        points.append(points[0])

    return PlotGeometry(coordinates=tuple(points))


def decode(geometry: GeometryLike) -> list[ImagePoint]:
    """
    Return the open ring of a persisted geometry, ready for editing or display.

    Accepts a `PlotGeometry` or its dict form. Already-open input is returned
    as-is.
    """
    if isinstance(geometry, PlotGeometry):
        return list(geometry.vertices)

    points = _parse_ring(geometry)
    if len(points) > 1 and points[0] == points[-1]:
        points = points[:-1]
    return points


def _parse_ring(data: Mapping[str, Any]) -> list[ImagePoint]:
    """Extract the outer ring of a GeoJSON-like polygon."""
    if not isinstance(data, Mapping):
        raise GeometryError(f"Geometry must be a mapping, got {type(data).__name__}.")

    geo_type = data.get("type", GEOMETRY_TYPE)
    if geo_type != GEOMETRY_TYPE:
        raise GeometryError(f"Unsupported geometry type '{geo_type}'.")

    rings = data.get("coordinates")
    if not rings:
        raise GeometryError("Geometry has no coordinates.")
    if not isinstance(rings, (list, tuple)) or not isinstance(rings[0], (list, tuple)):
        raise GeometryError(f"Coordinates must be a list of rings, got {rings!r}.")

    points: list[ImagePoint] = []
    for pair in rings[0]:
        try:
            x, y = float(pair[0]), float(pair[1])
        except (TypeError, ValueError, IndexError) as e:
            raise GeometryError(f"Invalid coordinate pair {pair!r}: {e}") from e
        if not (math.isfinite(x) and math.isfinite(y)):
            raise GeometryError(f"Non-finite coordinate pair {pair!r}.")
        points.append(ImagePoint(x, y))
    return points
