# depthclust

A library for LiDAR point clouds. It covers four jobs:

- describing the angular layout of a range image (`depthclust.projection_params`)
- projecting clouds into a depth image and recovering points from it
  (`depthclust.cloud_projection`)
- computing box and extruded-hull outlines for clusters of points
  (`depthclust.outlines`)
- decoding points packed into a byte buffer (`depthclust.pointcloud2`)

numpy is the only runtime dependency. All angles are in radians unless a
section says otherwise.

## Projection parameters

A `ProjectionParams` maps the rows and columns of a range image to beam angles.
It also keeps the sines and cosines of those angles.

```python
import math
from depthclust.projection_params import ProjectionParams

params = ProjectionParams.hdl_64()
params.rows, params.cols               # 64, 870
row = params.row_from_angle(math.radians(-5.0))
col = params.col_from_angle(0.0)
params.angle_from_row(row)
params.angle_from_col(-1)              # wraps around one full turn
```

Presets:

- `vlp_16()`
- `hdl_32()`
- `hdl_64()`
- `hdl_64_equal()`
- `full_sphere(discretization=math.radians(5.0))`

`row_from_angle` and `col_from_angle` return the index of the closest angle.
`angle_from_row` returns `0.0` for a row that is out of range and logs an error.
`angle_from_col` raises `IndexError` when a column is more than one turn out of
range.

`valid()` returns `True` when the layout is complete. Otherwise it raises
`ValueError` and says what is missing.

### Custom layouts

Build a custom layout from `SpanParams`. A span has a start angle, an end angle
and a beam count. `SpanParams.from_step(start, end, step)` derives the beam
count from a fixed step. Pass a span, or a list of consecutive spans, to
`set_span` together with `Direction.HORIZONTAL` or `Direction.VERTICAL`:

```python
from depthclust.projection_params import Direction, SpanParams

params = ProjectionParams()
params.set_span(SpanParams(-math.pi, math.pi, 870), Direction.HORIZONTAL)
params.set_span(SpanParams(math.radians(15), math.radians(-15), 16), Direction.VERTICAL)
```

### Reading a layout from a file

`ProjectionParams.from_config_file(path)` reads a text file. Lines that start
with `#` are skipped. Every other line has this form, with all angles in
degrees:

```
cols;rows;h_start;h_end;row_angle_1;...;row_angle_n
```

It raises `ValueError` in three cases:

- a line is malformed
- the number of row angles does not equal `rows`
- the resulting layout is not valid

## Cloud projections

A `Point` has `x`, `y`, `z` and a laser `ring`. It provides
`dist_to_sensor_2d()` and `dist_to_sensor_3d()`.

```python
from depthclust.cloud_projection import Point, SphericalProjection

projection = SphericalProjection(params)
projection.init_from_points([Point(10.0, 0.0, 0.0), Point(0.0, 5.0, 1.0)])
projection.depth_image                 # numpy float32 array, rows x cols
projection.at(row, col)                # indices of the points in that pixel
```

The two projections place points differently:

- `SphericalProjection` chooses a row from each point's elevation and a column
  from its azimuth. Its depth is the 3D distance to the sensor.
- `RingProjection` takes the row from the point's `ring`. Its depth is the
  distance in the horizontal plane.

Both projections follow the same rules:

- Points closer than 0.01 to the sensor are skipped.
- When several points fall into one pixel, the pixel keeps the largest
  distance.
- `init_from_points` raises `ValueError` for an empty cloud.

Other methods on both projections:

- `unproject_point(image, row, col)` turns a pixel of a depth image back into a
  `Point`. `RingProjection` also sets the point's ring to the row.
- `set_corrections(corrections)` gives one depth correction per row.
  `fix_depth_systematic_error_if_needed()` subtracts it from every measured
  pixel. `SphericalProjection` does this at the end of `init_from_points`.
- `check_image_and_storage(image)` and `check_cloud_and_storage(points)` raise
  `ValueError` when their input does not fit the projection.
- `clone()` returns an independent deep copy.
- `clone_depth_image(image)` replaces the depth image with a copy of `image`.

## Object outlines

`depthclust.outlines` computes the geometry of outlines around clusters. It
does not draw them.

### Boxes

`cube_from_points(points)` returns a `Cube`:

- Its center is the mean of the points.
- Its `scale` is the extent of their bounding box. The scale is zero when all
  points share one x value.

Methods on `Cube`:

- `is_visible()` is false for boxes lower than 0.3.
- `display_color()` greys out boxes larger than 20 in volume or 5 along any
  side.
- `line_strip()` gives the vertices that trace the box.
- `side_lines()` gives the remaining vertical edges.

### Extruded hulls

`polygon_from_points(points)` returns a `Polygon3d`:

- The base is the 2D convex hull of the points, placed at their lowest z.
- The height is their z range.

It returns `None` when the points are flatter than 0.3. `line_strip()` and
`side_lines()` give the outline's vertices and edges.

`convex_hull_indices(points)` returns the indices of the hull's vertices in
counter-clockwise order.

### ObjectPainter

`ObjectPainter(viewer, outline_type)` builds an outline for every cluster
passed to `on_new_object_received(clusters, client_id)`. `outline_type` is
`OutlineType.BOX` or `OutlineType.POLYGON3D`, and `clusters` maps ids to lists
of points.

Each outline goes to `viewer.add_drawable(...)`. `viewer.update()` is called
once at the end. The method returns the outlines it built. With no viewer it
does nothing and returns an empty list.

## Packed point buffers

A `PointCloudMessage` holds the data of a packed cloud:

- a list of `PointField` entries (name, offset, datatype, count)
- the raw `data` bytes
- the `point_step`

`decode_points(message)` reads every point as follows:

- x, y and z are little-endian 32-bit floats at the offsets of the first three
  fields.
- The ring is a little-endian 16-bit unsigned integer at the offset of the
  fifth field.

It raises `ValueError` when:

- there are fewer than five fields
- the step is not positive
- the data is truncated

`describe_message(message)` returns a multi-line summary of the message's
layout.

```python
from depthclust.pointcloud2 import decode_points, describe_message

points = decode_points(message)
print(describe_message(message))
```

## What the package does not do

- It has no command-line program and no graphical viewer. The outline classes
  only compute geometry; showing it is up to the caller's viewer.
- It does not subscribe to any message bus. `pointcloud2` only decodes
  messages it is handed, and it does not read odometry or poses.
- It does not segment clouds or remove the ground.

## Running the tests

```
pip install depthclust[test]
pytest
```