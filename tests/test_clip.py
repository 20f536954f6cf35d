"""Tests for plane intersection and half-plane clipping."""

import math

import pytest

from perspsvg.arc import EndpointArc
from perspsvg.clip import (ClippedArc, HalfPlane, Line3, Plane, ViewBox, as_plane,
                           clip_ellipse, clip_polygon_to_line, clip_viewport_polygon,
                           half_plane_in_xy, intersect_planes, line_intersect_xy,
                           line_plane_intersection, side_of_point, sort_ccw,
                           transformed_xy_plane)
from perspsvg.conic import StandardEllipse
from perspsvg.geom import Vector
from perspsvg.projection import Perspective
from perspsvg.xform import Rotation, identity


def approx_points(points, expected, tol=1e-9):
    assert len(points) == len(expected)
    for p, q in zip(points, expected):
        assert p == pytest.approx(q, abs=tol)


class TestPlanes:

    def test_as_plane(self):
        p = as_plane(((0, 0, 0), (0, 0, 1)))
        assert isinstance(p, Plane)
        assert p == as_plane({'point': [0, 0, 0], 'normal': [0, 0, 1]})
        assert p == as_plane({'plane': {'point': {'x': 0, 'y': 0, 'z': 0},
                                        'normal': [0, 0, 1]}})

    def test_intersect_planes(self):
        line = intersect_planes({'point': [0, 0, 0], 'normal': [1, 0, 0]},
                                {'point': [0, 0, 0], 'normal': [0, 1, 0]})
        assert isinstance(line, Line3)
        assert line.point == pytest.approx([0, 0, 0])
        assert [abs(c) for c in line.direction] == pytest.approx([0, 0, 1])

    def test_intersect_offset_planes(self):
        line = intersect_planes(Plane([1, 0, 0], [1, 0, 0]), Plane([0, 2, 0], [0, 1, 0]))
        assert line.point == pytest.approx([1, 2, 0])
        line = intersect_planes(Plane([0, 0, 3], [0, 0, 1]), Plane([5, 0, 0], [1, 0, 0]))
        assert line.point == pytest.approx([5, 0, 3])
        assert line.direction == pytest.approx([0, 1, 0])

    def test_intersect_oblique_planes(self):
        p1 = Plane([1, 2, 3], [1, 1, 0])
        p2 = Plane([0, 0, -1], [0, 1, 2])
        line = intersect_planes(p1, p2)
        assert math.isclose(sum(d*d for d in line.direction), 1.0)
        for t in (0.0, 2.5, -7.0):
            q = [line.point[i] + t*line.direction[i] for i in range(3)]
            for plane in (p1, p2):
                off = sum(n*(a - b) for n, a, b in zip(plane.normal, q, plane.point))
                assert off == pytest.approx(0.0, abs=1e-9)

    def test_parallel_planes(self):
        assert intersect_planes({'point': [0, 0, 0], 'normal': [0, 0, 1]},
                                {'point': [0, 0, 5], 'normal': [0, 0, 1]}) is None

    def test_line_plane_intersection(self):
        p = line_plane_intersection([0, 0, 10], [1, 0, 0], Plane([0, 0, 5], [0, 0, 1]))
        assert p == pytest.approx([0.5, 0, 5])
        assert line_plane_intersection([0, 0, 1], [1, 0, 1], Plane([0, 0, 0], [0, 0, 1])) is None

    def test_transformed_xy_plane(self):
        plane = transformed_xy_plane(identity(4))
        assert plane.point == [0, 0, 0]
        assert plane.normal == [0, 0, 1]
        plane = transformed_xy_plane(Rotation('X', math.pi/2))
        assert plane.normal == pytest.approx([0, -1, 0])


class TestLines:

    def test_side_of_point(self):
        assert side_of_point((0, 0), (1, 0), (0.5, 1)) == 1
        assert side_of_point((0, 0), (1, 0), (0.5, -1)) == -1
        assert side_of_point((0, 0), (1, 0), (3, 0)) == 0

    def test_line_intersect_xy(self):
        p = line_intersect_xy((0, 0), (2, 2), (0, 2), (2, 0))
        assert p == pytest.approx((1, 1))
        assert line_intersect_xy((0, 0), (1, 0), (0, 1), (1, 1)) is None

    def test_sort_ccw(self):
        pts = sort_ccw([(1, 1), (-1, -1), (1, -1), (-1, 1)])
        assert pts == [(-1, -1), (1, -1), (1, 1), (-1, 1)]
        assert sort_ccw([]) == []

    def test_clip_square(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        clipped = clip_polygon_to_line((2, 0), (2, 4), 1, square)
        assert clipped == [(0, 0), (2, 0), (2, 4), (0, 4)]

    def test_clip_other_side(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        clipped = clip_polygon_to_line((2, 0), (2, 4), -1, square)
        assert clipped == [(2, 0), (4, 0), (4, 4), (2, 4)]

    def test_clip_corner(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        clipped = clip_polygon_to_line((2, 0), (4, 2), 1, square)
        assert len(clipped) == 5
        assert Vector(4.0, 0.0) not in clipped
        assert Vector(2.0, 0.0) in clipped and Vector(4.0, 2.0) in clipped

    def test_vertices_on_line_are_kept(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        clipped = clip_polygon_to_line((0, 0), (4, 4), 1, square)
        approx_points(clipped, [(0, 0), (4, 4), (0, 4)])

    def test_polygon_entirely_hidden(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        assert clip_polygon_to_line((10, 0), (10, 1), -1, square) == []


def clipped_perspective(point, normal, transform=None):
    return Perspective([0, 0, 10], identity(4) if transform is None else transform,
                       clip={'point': point, 'normal': normal})


class TestHalfPlane:

    def test_requires_clip_plane(self):
        with pytest.raises(ValueError):
            half_plane_in_xy(Perspective([0, 0, 10], identity(4)))

    def test_side_between_eye_and_surface(self):
        half = half_plane_in_xy(clipped_perspective([1, 0, 0], [1, 0, 0]))
        p0, p1 = half.points
        assert p0 == pytest.approx((1, 0))
        assert p1.x == pytest.approx(1)
        ## points with x < 1 see the surface before the clip plane
        assert side_of_point(p0, p1, (0, 0)) == half.side
        assert side_of_point(p0, p1, (3, 0)) == -half.side

    def test_side_does_not_depend_on_normal(self):
        a = half_plane_in_xy(clipped_perspective([1, 0, 0], [1, 0, 0]))
        b = half_plane_in_xy(clipped_perspective([1, 0, 0], [-1, 0, 0]))
        assert side_of_point(a.points[0], a.points[1], (0, 0)) == a.side
        assert side_of_point(b.points[0], b.points[1], (0, 0)) == b.side

    def test_parallel_clip_plane(self):
        behind = half_plane_in_xy(clipped_perspective([0, 0, -5], [0, 0, 1]))
        assert behind == HalfPlane(None, 1)
        between = half_plane_in_xy(clipped_perspective([0, 0, 5], [0, 0, 1]))
        assert between == HalfPlane(None, -1)

    def test_boundary_through_eye(self):
        ## the surface is turned edge-on and the boundary runs through the eye
        p = clipped_perspective([0, 0, 0], [1, 0, 0], Rotation('X', math.pi/2))
        assert half_plane_in_xy(p) == HalfPlane(None, 1)
        box = (0, 0, 10, 5)
        assert clip_viewport_polygon(box, p) == [(0, 0), (10, 0), (10, 5), (0, 5)]


class TestViewport:

    def test_no_clip_plane(self):
        assert clip_viewport_polygon((0, 0, 10, 10), Perspective([0, 0, 10], identity(4))) is None

    def test_clipped_viewport(self):
        polygon = clip_viewport_polygon(ViewBox(-4, -4, 8, 8),
                                        clipped_perspective([1, 0, 0], [1, 0, 0]))
        approx_points(polygon, [(-4, -4), (1, -4), (1, 4), (-4, 4)])

    def test_parallel_planes(self):
        box = (0, 0, 10, 5)
        visible = clip_viewport_polygon(box, clipped_perspective([0, 0, -5], [0, 0, 1]))
        assert visible == [(0, 0), (10, 0), (10, 5), (0, 5)]
        hidden = clip_viewport_polygon(box, clipped_perspective([0, 0, 5], [0, 0, 1]))
        assert hidden == []


class TestClipEllipse:

    def test_crossing_line(self):
        ellipse = StandardEllipse(0, 0, 2, 1, 0)
        half = HalfPlane([Vector(1, 0), Vector(1, -1)], -1)
        clipped = clip_ellipse(ellipse, half)
        assert isinstance(clipped, ClippedArc)
        h = math.sqrt(3)/2
        assert clipped.start == pytest.approx((1, h))
        assert clipped.end == pytest.approx((1, -h))
        assert isinstance(clipped.arc, EndpointArc)
        assert (clipped.arc.rx, clipped.arc.ry) == (2, 1)
        assert (clipped.arc.large_arc, clipped.arc.sweep) == (1, 1)
        assert (clipped.arc.x, clipped.arc.y) == pytest.approx((1, -h))

    def test_visible_side_selects_arc(self):
        ellipse = StandardEllipse(0, 0, 2, 1, 0)
        clipped = clip_ellipse(ellipse, HalfPlane([Vector(1, 0), Vector(1, -1)], 1))
        h = math.sqrt(3)/2
        assert clipped.start == pytest.approx((1, -h))
        assert clipped.end == pytest.approx((1, h))
        assert clipped.arc.large_arc == 0

    def test_rotated_ellipse(self):
        ellipse = StandardEllipse(1, 1, 2, 1, math.pi/2)
        clipped = clip_ellipse(ellipse, HalfPlane([Vector(0, 1), Vector(1, 1)], 1))
        ## the horizontal line through the center meets the minor axis ends
        points = sorted([tuple(clipped.start), tuple(clipped.end)])
        approx_points(points, [(0, 1), (2, 1)])
        assert clipped.arc.x_axis_rotation == pytest.approx(90.0)

    def test_miss_and_tangent(self):
        ellipse = StandardEllipse(0, 0, 2, 1, 0)
        assert clip_ellipse(ellipse, HalfPlane([Vector(5, 0), Vector(5, 1)], 1)) is None
        assert clip_ellipse(ellipse, HalfPlane([Vector(2, 0), Vector(2, 1)], 1)) is None
        assert clip_ellipse(ellipse, HalfPlane(None, 1)) is None
