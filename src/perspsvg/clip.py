## plane intersection and half-plane clipping for perspsvg
## Copyright (c) 2025 perspsvg contributors

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Clipping placed geometry against a single 3D plane.

The clip plane cuts the placed XY plane along a 3D line.  Projected
into the drawing, that line splits the view into a visible and a hidden
half.  A surface point is hidden when the clip plane lies between it
and the eye.

Planes and lines use plain 3-vectors; 2D points come back as
``Vector`` instances.
"""

import logging
from collections.abc import Mapping
from math import atan2, cos, degrees, inf, sin, sqrt
from typing import List, NamedTuple, Optional, Sequence

from perspsvg import geom
from perspsvg.arc import EndpointArc, center_to_endpoint
from perspsvg.geom import (Vector, coerce2, coerce3, cross, dist2, dot,
                           mag, sign, sub)
from perspsvg.projection import project
from perspsvg.xform import Matrix

logger = logging.getLogger(__name__)


class Plane(NamedTuple):
    """plane through ``point`` with normal ``normal``"""
    point: Sequence[float]
    normal: Sequence[float]


class Line3(NamedTuple):
    """3D line through ``point`` along the unit vector ``direction``"""
    point: List[float]
    direction: List[float]


class HalfPlane(NamedTuple):
    """Visible half of the drawing.

    ``points`` are two projected points on the boundary line, or
    ``None`` when the clip plane does not cut the placed surface; ``side``
    is the ``side_of_point`` sign of the visible half.  Without a
    boundary, ``side`` is +1 if everything is visible and -1 if nothing
    is.
    """
    points: Optional[List[Vector]]
    side: int


class ViewBox(NamedTuple):
    x: float
    y: float
    width: float
    height: float

    def polygon(self):
        return [Vector(self.x, self.y),
                Vector(self.x + self.width, self.y),
                Vector(self.x + self.width, self.y + self.height),
                Vector(self.x, self.y + self.height)]


class ClippedArc(NamedTuple):
    """Visible part of a projected ellipse cut by the clip line.

    ``start`` and ``end`` are the crossings, ``arc`` the SVG arc from
    ``start`` to ``end`` that runs through the visible half.
    """
    start: Vector
    end: Vector
    arc: EndpointArc
    side: int


def as_plane(p):
    """coerce a ``Plane``, ``(point, normal)`` pair or mapping to a ``Plane``"""
    if isinstance(p, Mapping):
        if 'plane' in p:
            return as_plane(p['plane'])
        return Plane(coerce3(p['point']), coerce3(p['normal'], 'normal'))
    point, normal = p
    return Plane(coerce3(point), coerce3(normal, 'normal'))


## 3D operations
## -------------

def intersect_planes(p1, p2, tol=None):
    """Line of intersection of two planes, or ``None`` if they are parallel.

    The direction is the normalized cross product of the normals.  A
    point on the line is found by setting the coordinate along the
    largest component of the direction to zero and solving the
    remaining 2x2 system, which is never singular for that choice.
    """
    if tol is None:
        tol = geom.PARALLEL_EPSILON
    p1 = as_plane(p1)
    p2 = as_plane(p2)
    n1 = p1.normal
    n2 = p2.normal
    d = cross(n1, n2)
    m = mag(d)
    if m < tol:
        return None
    direction = [c/m for c in d]

    d1 = dot(n1, p1.point)
    d2 = dot(n2, p2.point)
    k = max(range(3), key=lambda i: abs(d[i]))
    i, j = [c for c in range(3) if c != k]
    ## n1[i] x_i + n1[j] x_j = d1, n2[i] x_i + n2[j] x_j = d2; the
    ## determinant is +-d[k]
    det = n1[i]*n2[j] - n1[j]*n2[i]
    point = [0.0, 0.0, 0.0]
    point[i] = (d1*n2[j] - d2*n1[j])/det
    point[j] = (n1[i]*d2 - n2[i]*d1)/det
    return Line3(point, direction)


def line_plane_intersection(a, b, plane, tol=None):
    """Point where the line through ``a`` and ``b`` meets ``plane``, or
    ``None`` if the line is parallel to it."""
    plane = as_plane(plane)
    a = coerce3(a)
    b = coerce3(b)
    u = sub(b, a)
    denom = dot(plane.normal, u)
    if tol is None:
        tol = geom.PARALLEL_EPSILON
    if abs(denom) < tol:
        return None
    t = dot(plane.normal, sub(plane.point, a))/denom
    return [a[0] + t*u[0], a[1] + t*u[1], a[2] + t*u[2]]


def transformed_xy_plane(transform):
    """The local XY plane after placement by ``transform``."""
    o = transform.mul([0, 0, 0, 1])
    px = transform.mul([1, 0, 0, 1])
    py = transform.mul([0, 1, 0, 1])
    normal = cross(sub(px, o), sub(py, o))
    return Plane(o[:3], normal)


## 2D operations
## -------------

def side_of_point(p0, p1, p):
    """Sign of the cross product ``(p1 - p0) x (p - p0)``: +1 left of
    the directed line, -1 right, 0 on it."""
    x0, y0 = coerce2(p0)
    x1, y1 = coerce2(p1)
    x, y = coerce2(p)
    return sign((x1 - x0)*(y - y0) - (y1 - y0)*(x - x0))


def line_intersect_xy(p0, p1, q0, q1):
    """Intersection of the infinite lines ``p0 p1`` and ``q0 q1``, or
    ``None`` if they are parallel."""
    x1, y1 = coerce2(p0)
    x2, y2 = coerce2(p1)
    x3, y3 = coerce2(q0)
    x4, y4 = coerce2(q1)
    denom = (x1 - x2)*(y3 - y4) - (y1 - y2)*(x3 - x4)
    if denom == 0:
        return None
    t = ((x1 - x3)*(y3 - y4) - (y1 - y3)*(x3 - x4))/denom
    return Vector(x1 + t*(x2 - x1), y1 + t*(y2 - y1))


def sort_ccw(points):
    """Sort points counter-clockwise about their centroid."""
    pts = [Vector(coerce2(p)) for p in points]
    if not pts:
        return pts
    cx = sum(p.x for p in pts)/len(pts)
    cy = sum(p.y for p in pts)/len(pts)
    return sorted(pts, key=lambda p: atan2(p.y - cy, p.x - cx))


def clip_polygon_to_line(p0, p1, side, polygon):
    """Keep the part of a convex ``polygon`` on ``side`` of the line ``p0 p1``.

    Vertices on the kept side or on the line survive.  Every edge whose
    endpoints lie strictly on opposite sides contributes its crossing
    point.  The result is sorted counter-clockwise about its centroid.
    """
    verts = [Vector(coerce2(p)) for p in polygon]
    kept = []
    n = len(verts)
    for i in range(n):
        cur = verts[i]
        nxt = verts[(i + 1) % n]
        s_cur = side_of_point(p0, p1, cur)
        s_nxt = side_of_point(p0, p1, nxt)
        if s_cur == side or s_cur == 0:
            kept.append(cur)
        if s_cur != 0 and s_nxt != 0 and s_cur != s_nxt:
            crossing = line_intersect_xy(p0, p1, cur, nxt)
            if crossing is not None:
                kept.append(crossing)
    return sort_ccw(kept)


## visibility
## ----------

def _clip_is_nearer(eye, through, clip_plane, surface):
    ## along the ray from the eye through ``through``, does the clip
    ## plane come before the surface?
    hit_clip = line_plane_intersection(eye, through, clip_plane)
    hit_surface = line_plane_intersection(eye, through, surface)
    d0 = inf if hit_clip is None else dist2(eye, hit_clip)
    d1 = inf if hit_surface is None else dist2(eye, hit_surface)
    return d0 < d1


def half_plane_in_xy(perspective):
    """Visible half of the drawing for a perspective with a clip plane.

    The clip plane is intersected with the placed XY plane and two
    points of the intersection line are projected.  A test point is
    taken on the left of that line.  The ray from the eye through it is
    checked: if it meets the clip plane before the surface, the visible
    side is the right-hand one.

    If the intersection line passes through the eye it projects to a
    single point; the result is then ``HalfPlane(None, 1)``.
    """
    clip_plane = perspective.clip
    if clip_plane is None:
        raise ValueError('perspective has no clip plane')
    eye = [perspective.eye.x, perspective.eye.y, perspective.eye.z]
    surface = transformed_xy_plane(perspective.transform)

    line = intersect_planes(clip_plane, surface)
    if line is None:
        hidden = _clip_is_nearer(eye, surface.point, clip_plane, surface)
        logger.debug('clip plane parallel to surface, %s', 'hidden' if hidden else 'visible')
        return HalfPlane(None, -1 if hidden else 1)

    a = line.point
    b = [a[0] + line.direction[0], a[1] + line.direction[1], a[2] + line.direction[2]]
    pts = project(perspective.eye, Matrix([[a[0], b[0]],
                                           [a[1], b[1]],
                                           [a[2], b[2]],
                                           [1, 1]]))
    p0, p1 = pts
    if geom.close(p0.x, p1.x) and geom.close(p0.y, p1.y):
        ## the boundary line runs through the eye, so the surface is
        ## seen edge-on and there is no boundary to draw
        logger.debug('clip line seen end-on at (%g, %g)', p0.x, p0.y)
        return HalfPlane(None, 1)
    test = Vector(p0.x - (p1.y - p0.y), p0.y + (p1.x - p0.x))
    side = side_of_point(p0, p1, test)
    if _clip_is_nearer(eye, [test.x, test.y, 0.0], clip_plane, surface):
        side = -side
    return HalfPlane(pts, side)


def clip_viewport_polygon(view_box, perspective):
    """Visible part of the view box as a polygon.

    ``None`` when the perspective has no clip plane.  When the clip
    plane does not cut the surface the whole view box is visible or
    the polygon is empty.
    """
    if perspective.clip is None:
        return None
    if not isinstance(view_box, ViewBox):
        view_box = ViewBox(*view_box)
    half = half_plane_in_xy(perspective)
    if half.points is None:
        return view_box.polygon() if half.side > 0 else []
    p0, p1 = half.points
    return clip_polygon_to_line(p0, p1, half.side, view_box.polygon())


def clip_ellipse(ellipse, half_plane):
    """Cut a projected ellipse with the boundary of ``half_plane``.

    Returns the crossing points and the arc between them lying on the
    visible side, or ``None`` if there is no boundary or it misses (or
    only touches) the ellipse.
    """
    if half_plane.points is None:
        return None
    p0, p1 = half_plane.points
    c = cos(ellipse.theta)
    s = sin(ellipse.theta)

    def local(p):
        dx = p.x - ellipse.cx
        dy = p.y - ellipse.cy
        return (c*dx + s*dy)/ellipse.rx, (-s*dx + c*dy)/ellipse.ry

    ## in the ellipse's unit frame the curve is the unit circle
    u0, v0 = local(p0)
    u1, v1 = local(p1)
    du = u1 - u0
    dv = v1 - v0
    qa = du*du + dv*dv
    qb = 2*(u0*du + v0*dv)
    qc = u0*u0 + v0*v0 - 1
    disc = qb*qb - 4*qa*qc
    if qa == 0 or disc <= 0:
        return None
    root = sqrt(disc)
    angles = []
    for t in ((-qb - root)/(2*qa), (-qb + root)/(2*qa)):
        angles.append(atan2(v0 + t*dv, u0 + t*du))

    def world(angle):
        x = ellipse.rx*cos(angle)
        y = ellipse.ry*sin(angle)
        return Vector(ellipse.cx + c*x - s*y, ellipse.cy + s*x + c*y)

    a0, a1 = angles
    delta = (a1 - a0) % geom.pi2
    mid = world(a0 + delta/2)
    if side_of_point(p0, p1, mid) != half_plane.side:
        a0, a1 = a1, a0
        delta = geom.pi2 - delta
    ends = center_to_endpoint(ellipse.cx, ellipse.cy, ellipse.rx, ellipse.ry,
                              ellipse.theta, a0, delta)
    start = Vector(ends.x1, ends.y1)
    end = Vector(ends.x2, ends.y2)
    arc = EndpointArc(ellipse.rx, ellipse.ry, degrees(ellipse.theta),
                      ends.large_arc, ends.sweep, end.x, end.y)
    return ClippedArc(start, end, arc, half_plane.side)
