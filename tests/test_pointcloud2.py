import struct

import pytest

from depthclust.pointcloud2 import (
    PointCloudMessage,
    PointField,
    decode_points,
    describe_message,
)

FIELDS = [
    PointField("x", 0, 7, 1),
    PointField("y", 4, 7, 1),
    PointField("z", 8, 7, 1),
    PointField("intensity", 12, 7, 1),
    PointField("ring", 16, 4, 1),
]
STEP = 20


def pack_point(x, y, z, intensity, ring, padding=b"\x00\x00"):
    return struct.pack("<ffffH", x, y, z, intensity, ring) + padding


def make_message(points, point_step=STEP):
    pad = b"\x00" * (point_step - 18)
    data = b"".join(pack_point(*p, padding=pad) for p in points)
    return PointCloudMessage(
        fields=FIELDS,
        data=data,
        point_step=point_step,
        width=len(points),
        row_step=len(data),
    )


def test_decode_round_trip():
    raw = [(1.5, -2.25, 0.5, 10.0, 3), (0.0, 4.0, -1.0, 1.0, 15)]
    points = decode_points(make_message(raw))
    assert [(p.x, p.y, p.z, p.ring) for p in points] == [
        (x, y, z, ring) for x, y, z, _, ring in raw
    ]


def test_decode_respects_larger_point_step():
    raw = [(1.0, 2.0, 3.0, 0.0, 1), (4.0, 5.0, 6.0, 0.0, 2), (7.0, 8.0, 9.0, 0.0, 3)]
    points = decode_points(make_message(raw, point_step=32))
    assert len(points) == 3
    assert [p.ring for p in points] == [1, 2, 3]
    assert points[2].z == 9.0


def test_ring_is_unsigned_16_bit():
    points = decode_points(make_message([(0.0, 0.0, 0.0, 0.0, 65535)]))
    assert points[0].ring == 65535


def test_empty_data_gives_no_points():
    assert decode_points(make_message([])) == []


def test_too_few_fields_rejected():
    message = PointCloudMessage(fields=FIELDS[:4], data=b"\x00" * STEP, point_step=STEP)
    with pytest.raises(ValueError):
        decode_points(message)


def test_zero_point_step_rejected():
    message = PointCloudMessage(fields=FIELDS, data=b"\x00" * STEP, point_step=0)
    with pytest.raises(ValueError):
        decode_points(message)


def test_truncated_data_rejected():
    message = make_message([(1.0, 2.0, 3.0, 0.0, 1)])
    message.data = message.data + b"\x00\x00\x00"
    with pytest.raises(ValueError):
        decode_points(message)


def test_describe_lists_fields_and_layout():
    message = make_message([(1.0, 2.0, 3.0, 0.0, 1)])
    text = describe_message(message)
    lines = text.split("\n")
    assert lines[0] == "<<<<<<<<<<<<<<< new cloud >>>>>>>>>>>>>>>"
    assert lines[-1] == "========================================="
    assert "num of fields: 5" in lines
    assert "\tname:     ring" in lines
    assert "\toffset:   16" in lines
    assert f"point step:    {STEP}" in lines
    assert "is bigendian:  false" in lines
    assert "is dense:      true" in lines