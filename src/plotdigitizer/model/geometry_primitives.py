"""
Geometric Primitives for the site-plan canvas.

Points are typed by the coordinate space they live in. A `DisplayPoint` is a
transient on-screen position; an `ImagePoint` is measured in the intrinsic
pixel grid of the site-plan image and is the only kind that is ever stored.
Only `CoordinateTransform` converts between the two.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, TypeVar, TYPE_CHECKING
import math

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class _Point2D:
    """Shared behaviour of the space-tagged points. Not used directly."""
    x: float
    y: float

    def __add__(self, other: Offset) -> _Point2D:
        # Point + Offset = Point (Translation)
        if isinstance(other, Offset):
            return type(self)(self.x + other.dx, self.y + other.dy)
        return NotImplemented

    def __sub__(self, other: _Point2D) -> Offset:
        # Point - Point = Offset, but only inside one coordinate space
        if type(other) is type(self):
            return Offset(self.x - other.x, self.y - other.y)
        if isinstance(other, _Point2D):
            raise TypeError(
                f"Cannot subtract {type(other).__name__} from {type(self).__name__}; "
                f"convert through CoordinateTransform first."
            )
        return NotImplemented

    def distance_to(self, other: _Point2D) -> float:
        return (self - other).magnitude

    def rounded(self) -> _Point2D:
        """Snap to the nearest integer pixel."""
        return type(self)(float(round(self.x)), float(round(self.y)))

    def to_tuple(self) -> tuple[float, float]:
        return self.x, self.y


@dataclass(frozen=True)
class DisplayPoint(_Point2D):
    """A position on the rendered, possibly scaled-down canvas."""


@dataclass(frozen=True)
class ImagePoint(_Point2D):
    """A position in the intrinsic pixel grid of the site-plan image."""


@dataclass(frozen=True)
class Offset:
    """A 2D displacement between two points of the same space."""
    dx: float
    dy: float

    @property
    def magnitude(self) -> float:
        return math.hypot(self.dx, self.dy)


@dataclass(frozen=True)
class ImageDimensions:
    """Intrinsic size of a loaded image, in image pixels."""
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}.")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class DisplaySize:
    """Rendered canvas size, in display pixels. Zero while layout is unsettled."""
    width: int
    height: int

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class MaxBox:
    """The bounding box the canvas must fit into."""
    max_width: int
    max_height: int

    @classmethod
    def from_tuple(cls, size: tuple[int, int]) -> MaxBox:
        return cls(max_width=size[0], max_height=size[1])


P = TypeVar("P", bound=_Point2D)


def points_to_array(points: Sequence[_Point2D]) -> npt.NDArray[np.float64]:
    """Stack points into an (N, 2) array. An empty sequence gives shape (0, 2)."""
    if not points:
        return np.empty((0, 2), dtype=np.float64)
    return np.array([(p.x, p.y) for p in points], dtype=np.float64)


def array_to_points(array: npt.NDArray[np.float64], point_type: type[P]) -> list[P]:
    return [point_type(float(x), float(y)) for x, y in np.asarray(array).reshape(-1, 2)]
