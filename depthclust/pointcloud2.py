"""Decoding of packed point cloud messages as published by laser scanner drivers."""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass, field

from depthclust.cloud_projection import Point

_FLOAT32 = struct.Struct("<f")
_UINT16 = struct.Struct("<H")

# Positions, in the message's field list, of the fields that are decoded.
_X_FIELD = 0
_Y_FIELD = 1
_Z_FIELD = 2
_RING_FIELD = 4


@dataclass(frozen=True)
class PointField:
    """Description of one field inside every packed point."""

    name: str
    offset: int
    datatype: int = 7
    count: int = 1


@dataclass
class PointCloudMessage:
    """A cloud of points packed one after another into a byte buffer."""

    fields: Sequence[PointField]
    data: bytes
    point_step: int
    height: int = 1
    width: int = 0
    row_step: int = 0
    is_bigendian: bool = False
    is_dense: bool = True
    seq: int = 0
    extra: dict[str, object] = field(default_factory=dict)


def _read(layout: struct.Struct, data: bytes, start: int) -> float | int:
    try:
        return layout.unpack_from(data, start)[0]
    except struct.error as exc:
        raise ValueError(f"point data truncated at byte {start}") from exc


def decode_points(message: PointCloudMessage) -> list[Point]:
    """Read x, y, z and ring of every point in the message.

    The x, y and z values are taken from the first three fields and the ring
    from the fifth, as the scanner driver lays them out. Values are always read
    little-endian.
    """
    if len(message.fields) <= _RING_FIELD:
        raise ValueError(
            f"message needs at least {_RING_FIELD + 1} fields, got {len(message.fields)}"
        )
    if message.point_step <= 0:
        raise ValueError("point step must be positive")
    x_offset = message.fields[_X_FIELD].offset
    y_offset = message.fields[_Y_FIELD].offset
    z_offset = message.fields[_Z_FIELD].offset
    ring_offset = message.fields[_RING_FIELD].offset
    data = bytes(message.data)
    return [
        Point(
            x=_read(_FLOAT32, data, start + x_offset),
            y=_read(_FLOAT32, data, start + y_offset),
            z=_read(_FLOAT32, data, start + z_offset),
            ring=_read(_UINT16, data, start + ring_offset),
        )
        for start in range(0, len(data), message.point_step)
    ]


def describe_message(message: PointCloudMessage) -> str:
    """Human readable summary of a message's layout."""
    lines = [
        "<<<<<<<<<<<<<<< new cloud >>>>>>>>>>>>>>>",
        f"received msg   {message.seq}",
        f"height:        {message.height}",
        f"width:         {message.width}",
        f"num of fields: {len(message.fields)}",
        "fields of each point:",
    ]
    for point_field in message.fields:
        lines.extend(
            [
                f"\tname:     {point_field.name}",
                f"\toffset:   {point_field.offset}",
                f"\tdatatype: {point_field.datatype}",
                f"\tcount:    {point_field.count}",
                "",
            ]
        )
    lines.extend(
        [
            f"is bigendian:  {'true' if message.is_bigendian else 'false'}",
            f"point step:    {message.point_step}",
            f"row step:      {message.row_step}",
            f"data size:     {len(message.data)}",
            f"is dense:      {'true' if message.is_dense else 'false'}",
            "=========================================",
        ]
    )
    return "\n".join(lines)