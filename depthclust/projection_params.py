"""Angular layout of a range image: which beam angle each row and column covers."""

from __future__ import annotations

import logging
import math
from bisect import bisect_right
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from os import PathLike

_log = logging.getLogger(__name__)


class Direction(Enum):
    """Direction in which a span of beams is laid out."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class SpanParams:
    """An angular span, in radians, split into a number of equal beams."""

    start_angle: float = 0.0
    end_angle: float = 0.0
    num_beams: int = 0
    step: float = field(init=False)
    span: float = field(init=False)

    def __post_init__(self) -> None:
        delta = self.end_angle - self.start_angle
        step = delta / self.num_beams if self.num_beams else 0.0
        object.__setattr__(self, "step", step)
        object.__setattr__(self, "span", abs(delta))

    @classmethod
    def from_step(cls, start_angle: float, end_angle: float, step: float) -> "SpanParams":
        """Build a span whose beam count follows from a fixed angular step."""
        num_beams = math.floor((end_angle - start_angle) / step)
        params = cls(start_angle, end_angle, num_beams)
        object.__setattr__(params, "step", step)
        return params

    def valid(self) -> bool:
        return self.num_beams > 0 and self.span > 0.0


def _fill_angles(spans: Iterable[SpanParams]) -> list[float]:
    return [
        span.start_angle + i * span.step
        for span in spans
        for i in range(span.num_beams)
    ]


def _find_closest(angles: Sequence[float], value: float) -> int:
    if not angles:
        raise ValueError("no angles to search")
    if angles[0] < angles[-1]:
        found = bisect_right(angles, value)
    else:
        found = len(angles) - bisect_right(angles[::-1], value)
    if found == 0:
        return 0
    if found == len(angles):
        return found - 1
    diff_next = abs(angles[found] - value)
    diff_prev = abs(value - angles[found - 1])
    return found if diff_next < diff_prev else found - 1


class ProjectionParams:
    """Row and column angles of a projection together with their sines and cosines."""

    def __init__(self) -> None:
        self.v_span_params = SpanParams()
        self.h_span_params = SpanParams()
        self.col_angles: list[float] = []
        self.row_angles: list[float] = []
        self.col_angle_sines: list[float] = []
        self.col_angle_cosines: list[float] = []
        self.row_angle_sines: list[float] = []
        self.row_angle_cosines: list[float] = []

    def set_span(
        self,
        span_params: SpanParams | Sequence[SpanParams],
        direction: Direction,
    ) -> None:
        """Set the angles of one direction from one span or consecutive spans."""
        spans = [span_params] if isinstance(span_params, SpanParams) else list(span_params)
        if not spans:
            raise ValueError("at least one span is required")
        num_beams = sum(span.num_beams for span in spans)
        combined = SpanParams(spans[0].start_angle, spans[-1].end_angle, num_beams)
        if direction is Direction.HORIZONTAL:
            self.h_span_params = combined
            self.col_angles = _fill_angles(spans)
        else:
            self.v_span_params = combined
            self.row_angles = _fill_angles(spans)
        self._fill_cos_sin()

    def _fill_cos_sin(self) -> None:
        self.row_angle_sines = [math.sin(a) for a in self.row_angles]
        self.row_angle_cosines = [math.cos(a) for a in self.row_angles]
        self.col_angle_sines = [math.sin(a) for a in self.col_angles]
        self.col_angle_cosines = [math.cos(a) for a in self.col_angles]

    @property
    def v_start_angle(self) -> float:
        return self.v_span_params.start_angle

    @property
    def v_end_angle(self) -> float:
        return self.v_span_params.end_angle

    @property
    def v_span(self) -> float:
        return self.v_span_params.span

    @property
    def h_start_angle(self) -> float:
        return self.h_span_params.start_angle

    @property
    def h_end_angle(self) -> float:
        return self.h_span_params.end_angle

    @property
    def h_span(self) -> float:
        return self.h_span_params.span

    @property
    def rows(self) -> int:
        return len(self.row_angles)

    @property
    def cols(self) -> int:
        return len(self.col_angles)

    @property
    def size(self) -> int:
        return self.rows * self.cols

    def angle_from_row(self, row: int) -> float:
        """Angle of a row; an out-of-range row is logged and gives 0."""
        if 0 <= row < len(self.row_angles):
            return self.row_angles[row]
        _log.error("row %d is wrong", row)
        return 0.0

    def angle_from_col(self, col: int) -> float:
        """Angle of a column, wrapping one full turn in either direction."""
        count = len(self.col_angles)
        actual = col
        if col < 0:
            actual = col + count
        elif col >= count:
            actual = col - count
        if not 0 <= actual < count:
            raise IndexError(f"column {col} is out of range")
        return self.col_angles[actual]

    def row_from_angle(self, angle: float) -> int:
        return _find_closest(self.row_angles, angle)

    def col_from_angle(self, angle: float) -> int:
        return _find_closest(self.col_angles, angle)

    def valid(self) -> bool:
        """Return True, or raise ValueError describing what is missing."""
        if not (self.v_span_params.valid() and self.h_span_params.valid()):
            raise ValueError("Projection parameters invalid.")
        if not self.row_angles and not self.col_angles:
            raise ValueError("Projection parameters arrays not filled.")
        if not (
            self.row_angle_sines
            or self.row_angle_cosines
            or self.col_angle_sines
            or self.col_angle_cosines
        ):
            raise ValueError("Projection parameters sin and cos arrays not filled.")
        return True

    @classmethod
    def _from_spans(
        cls,
        horizontal: SpanParams | Sequence[SpanParams],
        vertical: SpanParams | Sequence[SpanParams],
    ) -> "ProjectionParams":
        params = cls()
        params.set_span(horizontal, Direction.HORIZONTAL)
        params.set_span(vertical, Direction.VERTICAL)
        params.valid()
        return params

    @staticmethod
    def _full_circle(num_beams: int) -> SpanParams:
        return SpanParams(math.radians(-180.0), math.radians(180.0), num_beams)

    @classmethod
    def vlp_16(cls) -> "ProjectionParams":
        """Layout of a 16 beam sensor."""
        return cls._from_spans(
            cls._full_circle(870),
            SpanParams(math.radians(15.0), math.radians(-15.0), 16),
        )

    @classmethod
    def hdl_32(cls) -> "ProjectionParams":
        """Layout of a 32 beam sensor."""
        return cls._from_spans(
            cls._full_circle(870),
            SpanParams(math.radians(10.0), math.radians(-30.0), 32),
        )

    @classmethod
    def hdl_64(cls) -> "ProjectionParams":
        """Layout of a 64 beam sensor with two differently spaced laser blocks."""
        top = SpanParams(math.radians(2.0), math.radians(-8.5), 32)
        bottom = SpanParams(math.radians(-8.87), math.radians(-24.87), 32)
        return cls._from_spans(cls._full_circle(870), [top, bottom])

    @classmethod
    def hdl_64_equal(cls) -> "ProjectionParams":
        """Layout of a 64 beam sensor assuming equal spacing between lasers."""
        return cls._from_spans(
            cls._full_circle(870),
            SpanParams(math.radians(2.0), math.radians(-24.0), 64),
        )

    @classmethod
    def full_sphere(cls, discretization: float = math.radians(5.0)) -> "ProjectionParams":
        """Layout covering the whole sphere with the given angular step."""
        return cls._from_spans(
            SpanParams.from_step(math.radians(-180.0), math.radians(180.0), discretization),
            SpanParams.from_step(math.radians(-90.0), math.radians(90.0), discretization),
        )

    @classmethod
    def from_config_file(cls, path: str | PathLike[str]) -> "ProjectionParams":
        """Read a layout from a text file.

        Each non-comment line reads ``cols;rows;h_start;h_end;row_angle;...``
        with all angles in degrees.
        """
        params = cls()
        with open(path, encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.rstrip("\n")
                if line.startswith("#"):
                    _log.info("skipping comment: %s", line)
                    continue
                fields = line.split(";")
                if len(fields) < 5:
                    raise ValueError("format of line is wrong")
                cols = int(fields[0])
                rows = int(fields[1])
                params.h_span_params = SpanParams(
                    math.radians(float(fields[2])),
                    math.radians(float(fields[3])),
                    cols,
                )
                h_span = params.h_span_params
                params.col_angles.extend(
                    h_span.start_angle + h_span.step * c for c in range(cols)
                )
                params.v_span_params = SpanParams(
                    math.radians(float(fields[4])),
                    math.radians(float(fields[-1])),
                    rows,
                )
                params.row_angles.extend(math.radians(float(f)) for f in fields[4:])
                if len(params.row_angles) != rows:
                    raise ValueError("wrong config: row count does not match row angles")
        params._fill_cos_sin()
        params.valid()
        return params