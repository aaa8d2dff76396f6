"""Outlines drawn around point clusters: axis-aligned boxes and extruded hulls."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union

from depthclust.cloud_projection import Point

_log = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]

DEFAULT_COLOR: Vector3 = (1.0, 0.5, 0.2)
_OVERSIZED_COLOR: Vector3 = (0.3, 0.3, 0.3)
_MIN_HEIGHT = 0.3
_MAX_VOLUME = 20.0
_MAX_SIDE = 5.0

# Corners of the unit cube as the outline visits them.
_UNIT_STRIP: tuple[Vector3, ...] = (
    (-0.5, -0.5, -0.5),
    (-0.5, -0.5, 0.5),
    (0.5, -0.5, 0.5),
    (0.5, -0.5, -0.5),
    (-0.5, -0.5, -0.5),
    (-0.5, 0.5, -0.5),
    (-0.5, 0.5, 0.5),
    (0.5, 0.5, 0.5),
    (0.5, 0.5, -0.5),
    (-0.5, 0.5, -0.5),
)
_UNIT_SIDES: tuple[tuple[Vector3, Vector3], ...] = (
    ((-0.5, 0.5, -0.5), (-0.5, -0.5, -0.5)),
    ((-0.5, -0.5, 0.5), (-0.5, 0.5, 0.5)),
    ((0.5, -0.5, 0.5), (0.5, 0.5, 0.5)),
    ((0.5, -0.5, -0.5), (0.5, 0.5, -0.5)),
)


class OutlineType(Enum):
    """Shape used to outline a cluster."""

    BOX = "box"
    POLYGON3D = "polygon3d"


@dataclass(frozen=True)
class Cube:
    """An axis-aligned box given by its center and its extent along each axis."""

    center: Vector3
    scale: Vector3
    color: Vector3 = DEFAULT_COLOR

    def is_visible(self) -> bool:
        """Boxes flatter than the minimal height are not drawn."""
        return self.scale[2] >= _MIN_HEIGHT

    def display_color(self) -> Vector3:
        """Colour to draw with; implausibly large boxes are greyed out."""
        volume = math.prod(self.scale)
        if volume > _MAX_VOLUME or any(side > _MAX_SIDE for side in self.scale):
            return _OVERSIZED_COLOR
        return self.color

    def _place(self, unit: Vector3) -> Vector3:
        return (
            self.center[0] + self.scale[0] * unit[0],
            self.center[1] + self.scale[1] * unit[1],
            self.center[2] + self.scale[2] * unit[2],
        )

    def line_strip(self) -> list[Vector3]:
        """Connected vertices tracing the bottom and then the top face."""
        return [self._place(v) for v in _UNIT_STRIP]

    def side_lines(self) -> list[tuple[Vector3, Vector3]]:
        """Separate segments for the vertical edges not covered by the strip."""
        return [(self._place(a), self._place(b)) for a, b in _UNIT_SIDES]


@dataclass(frozen=True)
class Polygon3d:
    """A horizontal polygon extruded upwards by a height."""

    polygon: tuple[Vector3, ...]
    height: float
    color: Vector3 = DEFAULT_COLOR

    def _raised(self, point: Vector3) -> Vector3:
        return (point[0], point[1], point[2] + self.height)

    def line_strip(self) -> list[Vector3]:
        """Closed bottom outline followed by the closed top outline."""
        if not self.polygon:
            return []
        start = self.polygon[0]
        bottom = [*self.polygon, start]
        top = [self._raised(p) for p in bottom]
        return bottom + top

    def side_lines(self) -> list[tuple[Vector3, Vector3]]:
        """One vertical segment per polygon vertex."""
        return [(p, self._raised(p)) for p in self.polygon]


Drawable = Union[Cube, Polygon3d]


class Viewer(Protocol):
    def add_drawable(self, drawable: Drawable) -> None: ...

    def update(self) -> None: ...


def _cross(o: Sequence[float], a: Sequence[float], b: Sequence[float]) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull_indices(points: Sequence[Sequence[float]]) -> list[int]:
    """Indices of the 2D convex hull vertices, counter-clockwise, no collinear points."""
    order = sorted(range(len(points)), key=lambda i: (points[i][0], points[i][1]))
    unique: list[int] = []
    for index in order:
        if unique and tuple(points[unique[-1]][:2]) == tuple(points[index][:2]):
            continue
        unique.append(index)
    if len(unique) <= 2:
        return unique

    def half(indices: Iterable[int]) -> list[int]:
        chain: list[int] = []
        for i in indices:
            while len(chain) >= 2 and _cross(points[chain[-2]], points[chain[-1]], points[i]) <= 0:
                chain.pop()
            chain.append(i)
        return chain

    lower = half(unique)
    upper = half(reversed(unique))
    return lower[:-1] + upper[:-1]


def cube_from_points(points: Sequence[Point]) -> Cube:
    """Box centered on the mean of the points and spanning their bounds."""
    if not points:
        raise ValueError("cannot build a box from no points")
    count = len(points)
    center = (
        sum(p.x for p in points) / count,
        sum(p.y for p in points) / count,
        sum(p.z for p in points) / count,
    )
    low = (min(p.x for p in points), min(p.y for p in points), min(p.z for p in points))
    high = (max(p.x for p in points), max(p.y for p in points), max(p.z for p in points))
    if low[0] < high[0]:
        extent = (high[0] - low[0], high[1] - low[1], high[2] - low[2])
    else:
        extent = (0.0, 0.0, 0.0)
    return Cube(center, extent)


def polygon_from_points(points: Sequence[Point]) -> Polygon3d | None:
    """Convex hull of the points on their lowest level, extruded to their top.

    Returns None when the points are too flat to be worth outlining.
    """
    if not points:
        return None
    min_z = min(p.z for p in points)
    max_z = max(p.z for p in points)
    height = max_z - min_z
    if height < _MIN_HEIGHT:
        return None
    flat = [(p.x, p.y) for p in points]
    hull = tuple((flat[i][0], flat[i][1], min_z) for i in convex_hull_indices(flat))
    return Polygon3d(hull, height)


class ObjectPainter:
    """Turns every received cluster into an outline and hands it to a viewer."""

    def __init__(self, viewer: Viewer | None, outline_type: OutlineType = OutlineType.BOX) -> None:
        self.viewer = viewer
        self.outline_type = outline_type

    def _outline(self, cluster: Sequence[Point]) -> Drawable | None:
        if self.outline_type is OutlineType.BOX:
            return cube_from_points(cluster) if cluster else None
        return polygon_from_points(cluster)

    def on_new_object_received(
        self, clusters: Mapping[int, Sequence[Point]], client_id: int = 0
    ) -> list[Drawable]:
        """Add outlines of all clusters to the viewer and return them."""
        if self.viewer is None:
            return []
        started = time.perf_counter()
        drawables = [d for d in map(self._outline, clusters.values()) if d is not None]
        for drawable in drawables:
            self.viewer.add_drawable(drawable)
        _log.debug("adding all outlines took %d us", int((time.perf_counter() - started) * 1e6))
        self.viewer.update()
        _log.debug("viewer updated in %d us", int((time.perf_counter() - started) * 1e6))
        return drawables