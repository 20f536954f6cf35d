"""Tests for shape rendering and path walking."""

import math

import pytest

from perspsvg.clip import ViewBox
from perspsvg.geom import Vector
from perspsvg.projection import Perspective
from perspsvg.shapes import (Circle, Ellipse, EllipseElement, Group, GroupElement,
                             LineElement, Path, PathCommand, PathElement,
                             RenderContext, absolute_commands, render)
from perspsvg.xform import Rotation, Translation, identity

FLAT = Perspective([0, 0, 10], identity(4))
HALF = Perspective([0, 0, 10], Translation([0, 0, -10]))


class TestAbsoluteCommands:

    def test_relative_to_absolute(self):
        walked = list(absolute_commands([('M', (1, 1)), ('l', (2, 0)), ('v', (3,)),
                                         ('h', (-2,)), ('z',)]))
        commands = [c for c, _ in walked]
        currents = [cur for _, cur in walked]
        assert commands == [PathCommand('M', (1, 1)), PathCommand('L', (3, 1)),
                            PathCommand('V', (4,)), PathCommand('H', (1,)),
                            PathCommand('Z', ())]
        assert currents == [(0, 0), (1, 1), (3, 1), (3, 4), (1, 4)]

    def test_close_returns_to_subpath_start(self):
        walked = list(absolute_commands([('M', (1, 1)), ('L', (5, 1)), ('Z',),
                                         ('m', (1, 1)), ('l', (1, 0))]))
        assert walked[3][0] == PathCommand('M', (2, 2))
        assert walked[4] == (PathCommand('L', (3, 2)), (2, 2))

    def test_curves_offset_every_point(self):
        walked = list(absolute_commands([('M', (10, 10)), ('c', (1, 2, 3, 4, 5, 6)),
                                         ('q', (1, 1, 2, 0))]))
        assert walked[1][0] == PathCommand('C', (11, 12, 13, 14, 15, 16))
        assert walked[2][0] == PathCommand('Q', (16, 17, 17, 16))

    def test_arc_offsets_only_end_point(self):
        walked = list(absolute_commands([('M', (10, 10)), ('a', (2, 1, 30, 0, 1, 4, 5))]))
        assert walked[1][0] == PathCommand('A', (2, 1, 30, 0, 1, 14, 15))

    def test_bad_commands(self):
        with pytest.raises(ValueError):
            list(absolute_commands([('X', (1, 2))]))
        with pytest.raises(ValueError):
            list(absolute_commands([('L', (1, 2, 3))]))


class TestRenderFlat:
    """rendering without a perspective returns the plain records"""

    def test_circle(self):
        el = render(Circle(1, 2, 3, attrs={'fill': 'red'}))
        assert el == EllipseElement(1, 2, 3, 3, 0.0, None, {'fill': 'red'})

    def test_ellipse(self):
        el = render(Ellipse(1, 2, 3, 4), RenderContext())
        assert (el.rx, el.ry) == (3, 4)

    def test_path(self):
        el = render(Path([('M', (0, 0)), ('l', (1, 1))]))
        assert isinstance(el, PathElement)
        assert el.commands == [PathCommand('M', (0, 0)), PathCommand('l', (1, 1))]
        assert el.clip_polygon is None

    def test_unknown_shape(self):
        with pytest.raises(ValueError):
            render('circle')


class TestRenderWithPerspective:

    def test_circle_in_flat_view(self):
        el = render(Circle(0, 0, 3), RenderContext(FLAT))
        assert isinstance(el, EllipseElement)
        assert (el.cx, el.cy) == pytest.approx((0, 0), abs=1e-6)
        assert (el.rx, el.ry) == pytest.approx((3, 3), abs=1e-6)

    def test_ellipse_is_scaled(self):
        el = render(Ellipse(2, 0, 4, 2, attrs={'id': 'e'}), RenderContext(HALF))
        assert (el.cx, el.cy) == pytest.approx((1, 0), abs=1e-6)
        assert (el.rx, el.ry) == pytest.approx((2, 1), abs=1e-6)
        assert el.rotation == pytest.approx(0.0, abs=1e-6)
        assert el.attrs == {'id': 'e'}

    def test_edge_on_circle_is_a_line(self):
        p = Perspective([0, 0, 10], Rotation('X', math.pi/2))
        el = render(Circle(0, 0, 2), RenderContext(p))
        assert isinstance(el, LineElement)
        assert el.x1 == pytest.approx(-2, abs=1e-6)
        assert el.x2 == pytest.approx(2, abs=1e-6)

    def test_path_projection(self):
        path = Path([('M', (2, 2)), ('l', (2, 0)), ('C', (0, 0, 2, 2, 4, 4)), ('Z',)])
        el = render(path, RenderContext(HALF))
        assert el.commands[0] == PathCommand('M', (1, 1))
        assert el.commands[1] == PathCommand('L', (2, 1))
        assert el.commands[2] == PathCommand('C', (0, 0, 1, 1, 2, 2))
        assert el.commands[3] == PathCommand('Z', ())

    def test_horizontal_stays_horizontal_in_flat_view(self):
        el = render(Path([('M', (2, 2)), ('H', (6,)), ('V', (4,))]), RenderContext(HALF))
        assert el.commands[1] == PathCommand('H', (3,))
        assert el.commands[2] == PathCommand('V', (2,))

    def test_horizontal_becomes_line_when_tilted(self):
        p = Perspective([0, 0, 10], Rotation('Y', 0.5))
        el = render(Path([('M', (1, 2)), ('H', (4,))]), RenderContext(p))
        assert el.commands[1].op == 'L'
        assert len(el.commands[1].args) == 2

    def test_arc_in_path(self):
        el = render(Path([('M', (4, 0)), ('A', (4, 2, 0, 0, 1, 0, 2))]), RenderContext(HALF))
        arc = el.commands[1]
        assert arc.op == 'A'
        assert arc.args[5:] == pytest.approx((0, 1))

    def test_edge_on_arc_in_path(self):
        p = Perspective([0, 0, 10], Rotation('X', math.pi/2))
        el = render(Path([('M', (2, 0)), ('a', (2, 1, 0, 0, 1, -2, 1))]), RenderContext(p))
        assert el.commands[1].op == 'L'


class TestClipPolygons:

    def test_path_gets_clip_polygon(self):
        p = Perspective([0, 0, 10], identity(4), clip={'point': [1, 0, 0], 'normal': [1, 0, 0]})
        el = render(Path([('M', (0, 0)), ('L', (1, 1))]),
                    RenderContext(p, view_box=(-4, -4, 8, 8)))
        polygon = el.clip_polygon
        assert len(polygon) == 4
        assert max(q.x for q in polygon) == pytest.approx(1.0)

    def test_no_view_box_no_polygon(self):
        p = Perspective([0, 0, 10], identity(4), clip={'point': [1, 0, 0], 'normal': [1, 0, 0]})
        el = render(Circle(0, 0, 3), RenderContext(p))
        assert el.clip_polygon is None

    def test_polygon_in_ellipse_frame(self):
        p = Perspective([0, 0, 10], identity(4), clip={'point': [1, 0, 0], 'normal': [1, 0, 0]})
        el = render(Ellipse(0, 0, 1, 3), RenderContext(p, ViewBox(-4, -4, 8, 8)))
        ## the major axis is vertical, so the frame is turned a quarter turn
        assert abs(el.rotation) == pytest.approx(90.0, abs=1e-6)
        turn = math.radians(el.rotation)
        expected = [Vector(math.cos(turn)*x + math.sin(turn)*y,
                           -math.sin(turn)*x + math.cos(turn)*y)
                    for x, y in [(-4, -4), (1, -4), (1, 4), (-4, 4)]]
        for q in expected:
            assert any(abs(q.x - r.x) < 1e-6 and abs(q.y - r.y) < 1e-6
                       for r in el.clip_polygon)


class TestGroups:

    def test_group_sets_perspective(self):
        group = Group([Circle(2, 0, 4), Group([Ellipse(0, 0, 4, 2)])], perspective=HALF,
                      attrs={'id': 'g'})
        el = render(group)
        assert isinstance(el, GroupElement)
        assert el.attrs == {'id': 'g'}
        circle, inner = el.children
        assert (circle.cx, circle.rx) == pytest.approx((1, 2), abs=1e-6)
        ## nested groups inherit the perspective
        assert inner.children[0].rx == pytest.approx(2, abs=1e-6)

    def test_inner_group_overrides(self):
        group = Group([Group([Circle(2, 0, 2)], perspective=FLAT)], perspective=HALF)
        el = render(group)
        assert el.children[0].children[0].rx == pytest.approx(2, abs=1e-6)

    def test_context_is_not_mutated(self):
        context = RenderContext(FLAT, (0, 0, 10, 10))
        render(Group([Circle(2, 0, 2)], perspective=HALF), context)
        assert context.perspective is FLAT
        assert context.view_box == ViewBox(0, 0, 10, 10)
