import pytest

from depthclust.cloud_projection import Point
from depthclust.outlines import (
    Cube,
    ObjectPainter,
    OutlineType,
    Polygon3d,
    convex_hull_indices,
    cube_from_points,
    polygon_from_points,
)


class RecordingViewer:
    def __init__(self):
        self.drawables = []
        self.updates = 0

    def add_drawable(self, drawable):
        self.drawables.append(drawable)

    def update(self):
        self.updates += 1


def _signed_area(points):
    n = len(points)
    return sum(
        points[i][0] * points[(i + 1) % n][1] - points[(i + 1) % n][0] * points[i][1]
        for i in range(n)
    )


def test_cube_visibility_threshold():
    assert Cube((0.0, 0.0, 0.0), (1.0, 1.0, 0.3)).is_visible()
    assert not Cube((0.0, 0.0, 0.0), (1.0, 1.0, 0.29)).is_visible()


def test_cube_default_color_and_grey_when_oversized():
    small = Cube((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    assert small.display_color() == (1.0, 0.5, 0.2)
    wide = Cube((0.0, 0.0, 0.0), (6.0, 1.0, 1.0))
    assert wide.display_color() == (0.3, 0.3, 0.3)
    bulky = Cube((0.0, 0.0, 0.0), (3.0, 3.0, 3.0))
    assert bulky.display_color() == (0.3, 0.3, 0.3)


def test_unit_cube_outline_starts_at_corner():
    cube = Cube((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    strip = cube.line_strip()
    assert len(strip) == 10
    assert strip[0] == (-0.5, -0.5, -0.5)
    assert strip[0] == strip[4]


def test_cube_vertices_lie_on_corners():
    center, scale = (1.0, 2.0, 3.0), (2.0, 4.0, 6.0)
    cube = Cube(center, scale)
    vertices = cube.line_strip() + [v for pair in cube.side_lines() for v in pair]
    assert len(cube.side_lines()) == 4
    for vertex in vertices:
        for axis in range(3):
            assert abs(vertex[axis] - center[axis]) == pytest.approx(scale[axis] / 2)


def test_cube_from_symmetric_points():
    points = [Point(-1.0, -2.0, -3.0), Point(1.0, 2.0, 3.0), Point(0.0, 0.0, 0.0)]
    cube = cube_from_points(points)
    assert cube.center == pytest.approx((0.0, 0.0, 0.0))
    assert cube.scale == pytest.approx((2.0, 4.0, 6.0))


def test_cube_without_x_extent_has_zero_scale():
    cube = cube_from_points([Point(1.0, 0.0, 0.0), Point(1.0, 5.0, 5.0)])
    assert cube.scale == (0.0, 0.0, 0.0)
    assert not cube.is_visible()


def test_cube_from_no_points_raises():
    with pytest.raises(ValueError):
        cube_from_points([])


def test_hull_excludes_interior_point():
    points = [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0), (1.0, 1.0)]
    hull = convex_hull_indices(points)
    assert sorted(hull) == [0, 1, 2, 3]
    assert _signed_area([points[i] for i in hull]) > 0


def test_hull_drops_collinear_and_duplicate_points():
    points = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (1.0, 3.0), (2.0, 0.0)]
    hull = convex_hull_indices(points)
    assert len(hull) == 3
    assert 1 not in hull
    assert {tuple(points[i]) for i in hull} == {(0.0, 0.0), (2.0, 0.0), (1.0, 3.0)}


def test_hull_of_few_points():
    assert convex_hull_indices([]) == []
    assert convex_hull_indices([(3.0, 4.0)]) == [0]


def test_polygon_from_points_uses_lowest_level_and_height():
    points = [
        Point(0.0, 0.0, 1.0),
        Point(2.0, 0.0, 2.0),
        Point(2.0, 2.0, 1.5),
        Point(0.0, 2.0, 1.0),
        Point(1.0, 1.0, 1.2),
    ]
    polygon = polygon_from_points(points)
    assert polygon.height == pytest.approx(1.0)
    assert len(polygon.polygon) == 4
    assert all(vertex[2] == 1.0 for vertex in polygon.polygon)


def test_flat_polygon_is_skipped():
    points = [Point(0.0, 0.0, 0.0), Point(1.0, 0.0, 0.1), Point(0.0, 1.0, 0.0)]
    assert polygon_from_points(points) is None
    assert polygon_from_points([]) is None


def test_polygon_outline_shape():
    base = ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
    polygon = Polygon3d(base, 2.0)
    strip = polygon.line_strip()
    assert len(strip) == 2 * (len(base) + 1)
    assert strip[len(base)] == base[0]
    assert strip[len(base) + 1] == (0.0, 0.0, 2.0)
    sides = polygon.side_lines()
    assert [bottom for bottom, _ in sides] == list(base)
    assert all(top[2] - bottom[2] == 2.0 for bottom, top in sides)


def test_empty_polygon_draws_nothing():
    polygon = Polygon3d((), 1.0)
    assert polygon.line_strip() == []
    assert polygon.side_lines() == []


def test_painter_adds_boxes_and_updates_once():
    viewer = RecordingViewer()
    painter = ObjectPainter(viewer, OutlineType.BOX)
    clusters = {
        1: [Point(0.0, 0.0, 0.0), Point(1.0, 1.0, 1.0)],
        2: [Point(5.0, 5.0, 0.0), Point(6.0, 6.0, 2.0)],
    }
    drawn = painter.on_new_object_received(clusters, 0)
    assert len(drawn) == 2
    assert viewer.drawables == drawn
    assert viewer.updates == 1


def test_painter_skips_flat_polygons():
    viewer = RecordingViewer()
    painter = ObjectPainter(viewer, OutlineType.POLYGON3D)
    clusters = {
        1: [Point(0.0, 0.0, 0.0), Point(1.0, 0.0, 0.0), Point(0.0, 1.0, 0.0)],
        2: [Point(0.0, 0.0, 0.0), Point(1.0, 0.0, 1.0), Point(0.0, 1.0, 0.5)],
    }
    drawn = painter.on_new_object_received(clusters, 0)
    assert len(drawn) == 1
    assert drawn[0].height == pytest.approx(1.0)
    assert viewer.updates == 1


def test_painter_without_viewer_does_nothing():
    painter = ObjectPainter(None, OutlineType.BOX)
    assert painter.on_new_object_received({1: [Point(1.0, 1.0, 1.0)]}, 0) == []