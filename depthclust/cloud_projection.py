"""Projection of 3D point clouds into a depth image and back."""

from __future__ import annotations

import copy
import logging
import math
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import numpy as np

from depthclust.projection_params import ProjectionParams

_log = logging.getLogger(__name__)

_MIN_DIST_TO_SENSOR = 0.01
_MIN_CORRECTABLE_DEPTH = 0.001


@dataclass
class Point:
    """A 3D point as measured by a laser scanner, with the ring it came from."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    ring: int = 0

    def dist_to_sensor_2d(self) -> float:
        return math.hypot(self.x, self.y)

    def dist_to_sensor_3d(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)


class ProjectionType(Enum):
    SPHERICAL = "spherical"
    CYLINDRICAL = "cylindrical"


class CloudProjection(ABC):
    """A depth image of a cloud plus, per pixel, the indices of the points in it."""

    def __init__(self, params: ProjectionParams) -> None:
        if not params.valid():
            raise ValueError("params not valid for projection.")
        self.params = params
        self._data: list[list[list[int]]] = [
            [[] for _ in range(params.rows)] for _ in range(params.cols)
        ]
        self.depth_image = np.zeros((params.rows, params.cols), dtype=np.float32)
        self.corrections: list[float] = []

    @abstractmethod
    def init_from_points(self, points: Sequence[Point]) -> None:
        """Fill the depth image and point containers from a cloud."""

    def clone(self) -> "CloudProjection":
        """Return an independent copy of this projection."""
        return copy.deepcopy(self)

    def clone_depth_image(self, image: np.ndarray) -> None:
        self.depth_image = np.array(image, copy=True)

    @property
    def rows(self) -> int:
        return self.params.rows

    @property
    def cols(self) -> int:
        return self.params.cols

    @property
    def size(self) -> int:
        return self.params.size

    @property
    def matrix(self) -> list[list[list[int]]]:
        """Point indices stored column-major: ``matrix[col][row]``."""
        return self._data

    def at(self, row: int, col: int) -> list[int]:
        """Indices of the points that fell into the given pixel."""
        return self._data[col][row]

    def check_image_and_storage(self, image: np.ndarray) -> None:
        if image.dtype != np.float32:
            raise ValueError("wrong image format")
        if not self._data:
            raise ValueError("data size is < 1")
        if image.shape != (self.rows, self.cols):
            raise ValueError("data dimensions do not correspond to image ones")

    def check_cloud_and_storage(self, points: Sequence[Point]) -> None:
        if not self._data:
            raise ValueError("data size is < 1")
        if not points:
            raise ValueError("cannot fill from cloud: no points")

    def unproject_point(self, image: np.ndarray, row: int, col: int) -> Point:
        """Recover the 3D point that a pixel of a depth image stands for."""
        depth = float(image[row, col])
        angle_z = self.params.angle_from_row(row)
        angle_xy = self.params.angle_from_col(col)
        return Point(
            depth * math.cos(angle_z) * math.cos(angle_xy),
            depth * math.cos(angle_z) * math.sin(angle_xy),
            depth * math.sin(angle_z),
        )

    def set_corrections(self, corrections: Sequence[float]) -> None:
        """Set a per-beam depth correction for a dataset's systematic error."""
        self.corrections = list(corrections)

    def fix_depth_systematic_error_if_needed(self) -> None:
        """Subtract the per-row correction from every measured pixel."""
        rows = self.depth_image.shape[0] if self.depth_image.ndim else 0
        if rows < 1:
            _log.info("image of wrong size, not correcting depth")
            return
        if len(self.corrections) != rows:
            _log.info("not correcting depth data")
            return
        correction = np.asarray(self.corrections, dtype=self.depth_image.dtype)[:, None]
        measured = self.depth_image >= _MIN_CORRECTABLE_DEPTH
        self.depth_image -= np.where(measured, correction, 0).astype(self.depth_image.dtype)

    def _store(self, index: int, row: int, col: int, dist: float) -> None:
        self._data[col][row].append(index)
        if self.depth_image[row, col] < dist:
            self.depth_image[row, col] = dist


class SphericalProjection(CloudProjection):
    """Projection onto a sphere: rows from elevation, columns from azimuth."""

    def init_from_points(self, points: Sequence[Point]) -> None:
        self.check_cloud_and_storage(points)
        for index, point in enumerate(points):
            dist = point.dist_to_sensor_3d()
            if dist < _MIN_DIST_TO_SENSOR:
                continue
            angle_rows = math.asin(point.z / dist)
            angle_cols = math.atan2(point.y, point.x)
            row = self.params.row_from_angle(angle_rows)
            col = self.params.col_from_angle(angle_cols)
            self._store(index, row, col, dist)
        self.fix_depth_systematic_error_if_needed()


class RingProjection(CloudProjection):
    """Projection whose rows are taken from the laser ring of each point."""

    def init_from_points(self, points: Sequence[Point]) -> None:
        _log.debug("projecting cloud with %d points", len(points))
        started = time.perf_counter()
        self.check_cloud_and_storage(points)
        for index, point in enumerate(points):
            dist = point.dist_to_sensor_2d()
            if dist < _MIN_DIST_TO_SENSOR:
                continue
            col = self.params.col_from_angle(math.atan2(point.y, point.x))
            self._store(index, point.ring, col, dist)
        _log.debug(
            "cloud projected in %d us", int((time.perf_counter() - started) * 1e6)
        )

    def unproject_point(self, image: np.ndarray, row: int, col: int) -> Point:
        point = super().unproject_point(image, row, col)
        point.ring = row
        return point