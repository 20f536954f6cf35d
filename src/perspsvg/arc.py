"""SVG elliptical arcs under perspective.

An SVG arc command ``A rx ry x-axis-rotation large-arc sweep x y`` is
described by its endpoints.  To project it, the arc is converted to its
center form, the underlying ellipse is projected with
:func:`perspsvg.conic.ellipse_with_perspective`, and the arc is
re-expressed on the projected ellipse and converted back to endpoint
form.

The two conversions follow the SVG implementation notes
(https://www.w3.org/TR/SVG/implnote.html#ArcImplementationNotes).
"""

from __future__ import annotations

import logging
from math import acos, atan2, cos, degrees, fmod, pi, radians, sin, sqrt
from typing import NamedTuple, Sequence, Union

from perspsvg import geom
from perspsvg.conic import ellipse_with_perspective
from perspsvg.errors import DegenerateInput
from perspsvg.projection import point_from, point_with_perspective

logger = logging.getLogger(__name__)


class EndpointArc(NamedTuple):
    """Arguments of an absolute SVG ``A`` command; rotation in degrees."""

    rx: float
    ry: float
    x_axis_rotation: float
    large_arc: int
    sweep: int
    x: float
    y: float


class CenterArc(NamedTuple):
    """Center parameterization of an elliptical arc; angles in radians."""

    cx: float
    cy: float
    rx: float
    ry: float
    phi: float
    theta1: float
    delta_theta: float


class ArcEndpoints(NamedTuple):
    """Endpoints and flags recovered from a center-form arc."""

    x1: float
    y1: float
    x2: float
    y2: float
    large_arc: int
    sweep: int


class Segment(NamedTuple):
    """Straight replacement for an arc that projects to a line."""

    x0: float
    y0: float
    x1: float
    y1: float


def _vector_angle(ux, uy, vx, vy):
    """signed angle from ``u`` to ``v``"""
    d = ux*vx + uy*vy
    length = sqrt((ux*ux + uy*uy)*(vx*vx + vy*vy))
    ang = acos(max(-1.0, min(1.0, d/length)))
    if ux*vy - uy*vx < 0:
        ang = -ang
    return ang


def endpoint_to_center(x1, y1, rx, ry, phi, fa, fs, x2, y2) -> CenterArc:
    """Convert an endpoint arc to center form (SVG notes F.6.5).

    ``phi`` is in radians.  Radii too small to span the chord are scaled
    up.  Negative radii are taken as absolute values.  Zero radii or
    coincident endpoints do not describe an ellipse and raise
    :class:`DegenerateInput`; SVG draws such arcs as a straight line or
    omits them.
    """
    rx = abs(rx)
    ry = abs(ry)
    if rx == 0 or ry == 0:
        raise DegenerateInput('arc with a zero radius is a straight line')
    if x1 == x2 and y1 == y2:
        raise DegenerateInput('arc endpoints coincide')

    ## step 1: (x1', y1')
    cos_phi = cos(phi)
    sin_phi = sin(phi)
    dx = (x1 - x2)/2
    dy = (y1 - y2)/2
    x1p = cos_phi*dx + sin_phi*dy
    y1p = -sin_phi*dx + cos_phi*dy

    ## radius correction
    lam = (x1p*x1p)/(rx*rx) + (y1p*y1p)/(ry*ry)
    if lam > 1:
        s = sqrt(lam)
        rx *= s
        ry *= s
    rx2 = rx*rx
    ry2 = ry*ry

    ## step 2: (cx', cy')
    sgn = -1.0 if bool(fa) == bool(fs) else 1.0
    num = rx2*ry2 - rx2*y1p*y1p - ry2*x1p*x1p
    den = rx2*y1p*y1p + ry2*x1p*x1p
    coef = sgn*sqrt(max(0.0, num/den))
    cxp = coef*(rx*y1p/ry)
    cyp = coef*(-(ry*x1p)/rx)

    ## step 3: (cx, cy)
    cx = cos_phi*cxp - sin_phi*cyp + (x1 + x2)/2
    cy = sin_phi*cxp + cos_phi*cyp + (y1 + y2)/2

    ## step 4: angles
    v1x = (x1p - cxp)/rx
    v1y = (y1p - cyp)/ry
    v2x = (-x1p - cxp)/rx
    v2y = (-y1p - cyp)/ry
    theta1 = _vector_angle(1.0, 0.0, v1x, v1y)
    delta = _vector_angle(v1x, v1y, v2x, v2y)
    if not fs and delta > 0:
        delta -= geom.pi2
    elif fs and delta < 0:
        delta += geom.pi2

    return CenterArc(cx, cy, rx, ry, phi, fmod(theta1, geom.pi2), fmod(delta, geom.pi2))


def center_to_endpoint(cx, cy, rx, ry, phi, theta1, delta_theta) -> ArcEndpoints:
    """Convert a center-form arc to endpoints and flags (SVG notes F.6.4)."""
    cos_phi = cos(phi)
    sin_phi = sin(phi)

    x1p = rx*cos(theta1)
    y1p = ry*sin(theta1)
    x2p = rx*cos(theta1 + delta_theta)
    y2p = ry*sin(theta1 + delta_theta)

    x1 = cos_phi*x1p - sin_phi*y1p + cx
    y1 = sin_phi*x1p + cos_phi*y1p + cy
    x2 = cos_phi*x2p - sin_phi*y2p + cx
    y2 = sin_phi*x2p + cos_phi*y2p + cy

    fa = 1 if abs(delta_theta) > pi else 0
    fs = 1 if delta_theta >= 0 else 0
    return ArcEndpoints(x1, y1, x2, y2, fa, fs)


def ellipse_angle(ellipse, x, y):
    """Parametric angle of ``(x, y)`` in the unit frame of ``ellipse``.

    The point is moved to the ellipse center, rotated by ``-theta`` and
    scaled by ``1/rx``, ``1/ry`` before taking ``atan2``.
    """
    c = cos(ellipse.theta)
    s = sin(ellipse.theta)
    dx = x - ellipse.cx
    dy = y - ellipse.cy
    u = (c*dx + s*dy)/ellipse.rx
    v = (-s*dx + c*dy)/ellipse.ry
    return atan2(v, u)


def _sweep(t0, t1, tm):
    """signed sweep from ``t0`` to ``t1`` whose span contains ``tm``"""
    ccw = (t1 - t0) % geom.pi2
    if (tm - t0) % geom.pi2 <= ccw:
        return ccw
    return ccw - geom.pi2


def _align_axes(ellipse, phi):
    """Relabel ``ellipse`` so ``rx`` lies on the axis nearest ``phi``.

    A fitted ellipse may come back with its radii swapped and a quarter
    turn of rotation; both labellings describe the same curve.
    """
    off = (ellipse.theta - phi) % pi
    if off <= pi/4 or off >= 3*pi/4:
        return ellipse
    theta = ellipse.theta - pi/2
    if theta <= -pi/2:
        theta += pi
    return ellipse._replace(rx=ellipse.ry, ry=ellipse.rx, theta=theta)


def arc_with_perspective(current, arc: Union[EndpointArc, Sequence[float]], perspective):
    """Project an SVG arc that starts at ``current``.

    Returns an :class:`EndpointArc` on the projected ellipse, ending at
    the projected end point, or a :class:`Segment` between the projected
    endpoints when the arc is degenerate or its ellipse is seen edge-on.
    """
    rx, ry, rotation, fa, fs, x, y = arc
    x0, y0 = point_from(current)
    eye = perspective.eye
    transform = perspective.transform

    pt0 = point_with_perspective(x0, y0, eye, transform)
    pt1 = point_with_perspective(x, y, eye, transform)

    try:
        el = endpoint_to_center(x0, y0, rx, ry, radians(rotation), fa, fs, x, y)
    except DegenerateInput as e:
        logger.debug('degenerate arc drawn as a line: %s', e)
        return Segment(pt0.x, pt0.y, pt1.x, pt1.y)

    ## the source ellipse is rotated by phi; fold that into the
    ## placement so the sampled ellipse can stay axis-aligned
    local = transform.rotate('Z', el.phi, center=(el.cx, el.cy))
    projected = ellipse_with_perspective(el.cx, el.cy, el.rx, el.ry, eye, local)
    if projected.is_edge_on:
        return Segment(pt0.x, pt0.y, pt1.x, pt1.y)

    ellipse = _align_axes(projected.ellipse, el.phi)
    mid = el.theta1 + el.delta_theta/2
    mx = el.cx + el.rx*cos(mid)*cos(el.phi) - el.ry*sin(mid)*sin(el.phi)
    my = el.cy + el.rx*cos(mid)*sin(el.phi) + el.ry*sin(mid)*cos(el.phi)
    ptm = point_with_perspective(mx, my, eye, transform)

    theta0 = ellipse_angle(ellipse, pt0.x, pt0.y)
    theta1 = ellipse_angle(ellipse, pt1.x, pt1.y)
    thetam = ellipse_angle(ellipse, ptm.x, ptm.y)
    delta = _sweep(theta0, theta1, thetam)

    ends = center_to_endpoint(ellipse.cx, ellipse.cy, ellipse.rx, ellipse.ry,
                              ellipse.theta, theta0, delta)
    return EndpointArc(ellipse.rx, ellipse.ry, degrees(ellipse.theta),
                       ends.large_arc, ends.sweep, pt1.x, pt1.y)
