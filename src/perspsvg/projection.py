"""Perspective projection of placed XY-plane geometry.

A :class:`Perspective` places local XY-plane geometry in 3D with a 4x4
homogeneous ``transform`` and views it from ``eye``.  Points are
projected onto the plane z=0 along rays through the eye.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import List, Optional

from perspsvg.errors import DimensionMismatch, InvalidDimension
from perspsvg.geom import Vector, coerce3, fdiv
from perspsvg.xform import Matrix


def _eye(eye) -> Vector:
    return Vector(coerce3(eye, 'eye'))


def check_transform(transform) -> Matrix:
    """Return ``transform`` as a Matrix, raising unless it is 4x4."""

    if not isinstance(transform, Matrix):
        transform = Matrix(transform)
    if transform.shape != (4, 4):
        raise DimensionMismatch('transform matrix must be 4x4, got {}x{}'.format(*transform.shape))
    return transform


@dataclass(frozen=True)
class Perspective:
    """Eye point, placement transform and optional clip plane."""

    eye: Vector
    transform: Matrix
    clip: Optional[object] = None

    def __post_init__(self):
        object.__setattr__(self, 'eye', _eye(self.eye))
        object.__setattr__(self, 'transform', check_transform(self.transform))
        if self.clip is not None:
            from perspsvg.clip import as_plane
            object.__setattr__(self, 'clip', as_plane(self.clip))


def project(eye, points: Matrix) -> List[Vector]:
    """Project the homogeneous columns of a 4 x n matrix through ``eye``.

    Each column ``(x, y, z, w)`` maps to
    ``eye.xy + scale * ((x, y) - eye.xy)`` with
    ``scale = eye.z / (eye.z - z)``.  A point in the eye plane
    (``z == eye.z``) is not special-cased: the divide follows IEEE-754
    and yields infinite (or nan) coordinates.
    """
    if not isinstance(points, Matrix):
        points = Matrix(points)
    if points.m != 4:
        raise InvalidDimension('points matrix must have 4 rows, got {}'.format(points.m))
    ex, ey, ez = coerce3(eye, 'eye')
    xs = points.getrow(0)
    ys = points.getrow(1)
    zs = points.getrow(2)
    projected = []
    for x, y, z in zip(xs, ys, zs):
        scale = fdiv(ez, ez - z)
        projected.append(Vector(ex + scale*(x - ex), ey + scale*(y - ey)))
    return projected


def points_with_perspective(points: Matrix, eye, transform) -> List[Vector]:
    """Place the homogeneous columns of ``points`` with ``transform`` and project them."""

    transform = check_transform(transform)
    return project(eye, transform.mul(points))


def point_with_perspective(x, y, eye, transform) -> Vector:
    """Project a single local XY-plane point."""

    pts = Matrix([[x], [y], [0], [1]])
    return points_with_perspective(pts, eye, transform)[0]


def point_from(p) -> Vector:
    """Coerce a point-like (sequence or mapping) to a 2D Vector."""

    if isinstance(p, Mapping):
        return Vector(p.get('x', 0), p.get('y', 0))
    return Vector(p[0], p[1])
