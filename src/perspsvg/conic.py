"""Conic fitting and reduction to standard ellipse form.

A circle or ellipse seen in perspective is (to within the sampling
approximation described in :func:`ellipse_with_perspective`) another
ellipse.  This module samples the source ellipse, projects the samples,
fits the general conic ``Ax^2 + Bxy + Cy^2 + Dx + Ey = 1`` through them
by least squares and reduces it to center, radii and rotation.

When the shape is viewed edge-on the samples are collinear and the conic
is meaningless; the best-fit segment computed alongside tells the caller
to draw a line instead.
"""

from __future__ import annotations

import logging
from math import atan2, cos, pi, sin
from typing import List, NamedTuple, Optional, Sequence

from perspsvg import geom
from perspsvg.algebra import quadratic_roots
from perspsvg.errors import DegenerateInput, InsufficientPoints
from perspsvg.geom import Vector, coerce2, fdiv, fsqrt
from perspsvg.projection import points_with_perspective
from perspsvg.xform import Matrix

logger = logging.getLogger(__name__)


class ConicCoefficients(NamedTuple):
    """Coefficients of ``Ax^2 + Bxy + Cy^2 + Dx + Ey = 1``."""

    A: float
    B: float
    C: float
    D: float
    E: float


class StandardEllipse(NamedTuple):
    """Center, radii and rotation (radians, defined mod pi) of an ellipse."""

    cx: float
    cy: float
    rx: float
    ry: float
    theta: float


class SegmentFallback(NamedTuple):
    """Best-fit segment through a point set and its worst residual."""

    x0: float
    y0: float
    x1: float
    y1: float
    error_size: float

    def is_edge_on(self, threshold: Optional[float] = None) -> bool:
        if threshold is None:
            threshold = geom.EDGE_ON_THRESHOLD
        return self.error_size < threshold


class PerspectiveEllipse(NamedTuple):
    """Result of :func:`ellipse_with_perspective`.

    ``ellipse`` is ``None`` when the projected samples do not define a
    central conic.  ``threshold`` is the edge-on threshold the result
    was computed with (``None`` for the module default).
    """

    ellipse: Optional[StandardEllipse]
    segment: SegmentFallback
    points: List[Vector]
    threshold: Optional[float] = None

    @property
    def is_edge_on(self) -> bool:
        return self.ellipse is None or self.segment.is_edge_on(self.threshold)


def fit_conic(points: Sequence, tol: Optional[float] = None) -> ConicCoefficients:
    """Least-squares conic through ``points`` (at least five).

    Builds the design matrix with rows ``[x^2, xy, y^2, x, y]`` and
    solves ``M c = 1`` with the pseudo-inverse of its SVD; singular
    values at or below ``tol`` (default ``PINV_TOLERANCE``) are dropped.
    """
    if len(points) < 5:
        raise InsufficientPoints(5, len(points), 'conic fit')
    rows = []
    for p in points:
        x, y = coerce2(p)
        rows.append([x*x, x*y, y*y, x, y])
    M = Matrix(rows)
    solution = M.svd().solve([1.0]*len(rows), tol)
    return ConicCoefficients(*solution)


def to_standard_form(coefficients) -> StandardEllipse:
    """Reduce conic coefficients to center, radii and rotation.

    Uses the determinant form of the canonical reduction: with the
    conic matrix ``AQ`` and its quadratic-form block ``A33``, the
    eigenvalues ``l1 <= l2`` of ``A33`` and
    ``K = -det(AQ) / det(A33)``, the radii are ``sqrt(K/l1)`` and
    ``sqrt(K/l2)``.  ``theta = atan2(-B, C - A) / 2`` lies in
    ``(-pi/2, pi/2]`` and is the direction of the ``rx`` axis.

    Raises :class:`DegenerateInput` if the conic has no center.  Radii
    come back as nan if the coefficients describe a hyperbola.
    """
    A, B, C, D, E = coefficients
    F = -1.0  # normalized so the right-hand side is 1

    d0 = B*B - 4*A*C
    AQ = Matrix([[A, B/2, D/2],
                 [B/2, C, E/2],
                 [D/2, E/2, F]])
    A33 = Matrix([[A, B/2],
                  [B/2, C]])
    det33 = A33.det()
    if d0 == 0 or det33 == 0:
        raise DegenerateInput('conic has no center (B^2 - 4AC = {})'.format(d0))

    x0 = (2*C*D - B*E)/d0
    y0 = (2*A*E - B*D)/d0
    theta = 0.5*atan2(-B, C - A)
    if theta <= -pi/2:
        ## atan2(-0.0, negative) is -pi
        theta += pi

    l1, l2 = quadratic_roots(1.0, -(A + C), A*C - (B/2)**2, assume_real=True)
    K = -(AQ.det()/det33)

    rx = fsqrt(fdiv(K, l1))
    ry = fsqrt(fdiv(K, l2))
    return StandardEllipse(x0, y0, rx, ry, theta)


def segment_from_points(points: Sequence) -> SegmentFallback:
    """Fit a segment to ``points`` along a bounding-box diagonal.

    Both diagonals of the bounding box are tried; the one with the
    smaller worst perpendicular distance to the points wins, and that
    distance is reported as ``error_size``.
    """
    if len(points) < 2:
        raise InsufficientPoints(2, len(points), 'segment fit')
    xy = [coerce2(p) for p in points]
    xs = [p[0] for p in xy]
    ys = [p[1] for p in xy]
    xmin, xmax = min(xs), max(xs)
    ymin, ymax = min(ys), max(ys)
    if xmax - xmin == 0 and ymax - ymin == 0:
        raise DegenerateInput('all points coincide; no segment through them')

    best = None
    for x0, y0, x1, y1 in ((xmin, ymin, xmax, ymax), (xmin, ymax, xmax, ymin)):
        dx = x1 - x0
        dy = y1 - y0
        length = (dx*dx + dy*dy)**0.5
        worst = max(abs(dx*(y - y0) - dy*(x - x0))/length for x, y in xy)
        if best is None or worst < best.error_size:
            best = SegmentFallback(x0, y0, x1, y1, worst)
    return best


def sample_ellipse(cx, cy, rx, ry, count=None) -> Matrix:
    """Homogeneous 4 x count matrix of points evenly spaced in angle."""
    if count is None:
        count = geom.ELLIPSE_SAMPLES
    cols = []
    for i in range(count):
        angle = i*2*pi/count
        cols.append([cx + rx*cos(angle), cy + ry*sin(angle), 0.0, 1.0])
    return Matrix.fromcolumns(cols)


def ellipse_with_perspective(cx, cy, rx, ry, eye, transform, samples=None,
                             threshold=None) -> PerspectiveEllipse:
    """Perspective view of an axis-aligned ellipse in the local XY plane.

    The ellipse is sampled at ``samples`` (default 8) points, the
    samples are placed with ``transform`` and projected through
    ``eye``, and both a conic and a segment are fitted to the result.
    Callers draw the segment when ``segment.error_size`` is below the
    edge-on threshold (``threshold``, default ``EDGE_ON_THRESHOLD``).

    Re-fitting a conic through projected samples is exact only in the
    affine limit (eye at infinity); under strong perspective it is an
    approximation whose error grows with the distortion.
    """
    points = points_with_perspective(sample_ellipse(cx, cy, rx, ry, samples), eye, transform)
    segment = segment_from_points(points)
    try:
        ellipse = to_standard_form(fit_conic(points))
    except DegenerateInput:
        logger.debug('projected ellipse (%g, %g, %g, %g) is not central', cx, cy, rx, ry)
        ellipse = None
    if segment.is_edge_on(threshold):
        logger.debug('projected ellipse (%g, %g, %g, %g) is edge-on, residual %g',
                     cx, cy, rx, ry, segment.error_size)
    return PerspectiveEllipse(ellipse, segment, points, threshold)
