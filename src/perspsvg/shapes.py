"""Shapes and their perspective renderings.

The shape set is closed: :class:`Circle`, :class:`Ellipse`,
:class:`Path` and :class:`Group`.  :func:`render` turns a shape into a
numeric element record, projecting it when the :class:`RenderContext`
carries a perspective.  A group with its own perspective renders its
children in a derived context; contexts are never mutated.

Every shape may carry an ``attrs`` mapping, which is handed through to
the element record untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import singledispatch
from math import degrees
from typing import Any, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from perspsvg import geom
from perspsvg.arc import Segment, arc_with_perspective
from perspsvg.clip import ViewBox, clip_viewport_polygon
from perspsvg.conic import ellipse_with_perspective
from perspsvg.geom import Vector
from perspsvg.projection import Perspective, point_with_perspective
from perspsvg.xform import Rotation

## number of arguments each path command takes
_ARITY = {'M': 2, 'L': 2, 'H': 1, 'V': 1, 'C': 6, 'S': 4,
          'Q': 4, 'T': 2, 'A': 7, 'Z': 0}

## argument positions holding x and y coordinates; the rest (arc radii,
## rotation and flags) are never offset
_XS = {'M': (0,), 'L': (0,), 'H': (0,), 'V': (), 'C': (0, 2, 4),
       'S': (0, 2), 'Q': (0, 2), 'T': (0,), 'A': (5,), 'Z': ()}
_YS = {'M': (1,), 'L': (1,), 'H': (), 'V': (0,), 'C': (1, 3, 5),
       'S': (1, 3), 'Q': (1, 3), 'T': (1,), 'A': (6,), 'Z': ()}


class PathCommand(NamedTuple):
    """One path command: a letter and its numeric arguments."""

    op: str
    args: Tuple[float, ...] = ()


def _command(c) -> PathCommand:
    if isinstance(c, PathCommand):
        op, args = c
    else:
        op, args = c[0], c[1] if len(c) > 1 else ()
    if not isinstance(op, str) or op.upper() not in _ARITY:
        raise ValueError('unknown path command: {}'.format(op))
    args = tuple(float(a) for a in args)
    if len(args) != _ARITY[op.upper()]:
        raise ValueError('path command {} takes {} arguments, got {}'.format(
            op, _ARITY[op.upper()], len(args)))
    return PathCommand(op, args)


## shapes
## ------

@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float
    attrs: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Ellipse:
    cx: float
    cy: float
    rx: float
    ry: float
    attrs: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Path:
    """Outline given as path commands; lower-case letters are relative."""

    commands: Sequence[PathCommand]
    attrs: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'commands', tuple(_command(c) for c in self.commands))


@dataclass(frozen=True)
class Group:
    children: Sequence[Any]
    perspective: Optional[Perspective] = None
    attrs: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'children', tuple(self.children))


@dataclass(frozen=True)
class RenderContext:
    """Perspective in force and the view box used for clipping."""

    perspective: Optional[Perspective] = None
    view_box: Optional[ViewBox] = None

    def __post_init__(self):
        if self.view_box is not None and not isinstance(self.view_box, ViewBox):
            object.__setattr__(self, 'view_box', ViewBox(*self.view_box))


## element records
## ---------------

class EllipseElement(NamedTuple):
    """Ellipse rotated by ``rotation`` degrees about ``(cx, cy)``.

    ``clip_polygon`` is in the ellipse's own rotated frame.
    """

    cx: float
    cy: float
    rx: float
    ry: float
    rotation: float
    clip_polygon: Optional[List[Vector]]
    attrs: Mapping[str, Any]


class LineElement(NamedTuple):
    x1: float
    y1: float
    x2: float
    y2: float
    attrs: Mapping[str, Any]


class PathElement(NamedTuple):
    commands: List[PathCommand]
    clip_polygon: Optional[List[Vector]]
    attrs: Mapping[str, Any]


class GroupElement(NamedTuple):
    children: List[Any]
    attrs: Mapping[str, Any]


## path walking
## ------------

def absolute_commands(commands: Sequence) -> Iterator[Tuple[PathCommand, Vector]]:
    """Walk path commands, yielding ``(absolute command, current point)``.

    Relative commands are offset by the current point, which is the
    point before the command is applied.  ``M`` starts a new subpath and
    ``Z`` returns the current point to its start.
    """
    cx = cy = 0.0
    sx = sy = 0.0
    for c in commands:
        op, args = _command(c)
        OP = op.upper()
        absolute = list(args)
        if op != OP:
            for i in _XS[OP]:
                absolute[i] += cx
            for i in _YS[OP]:
                absolute[i] += cy
        yield PathCommand(OP, tuple(absolute)), Vector(cx, cy)

        if OP == 'Z':
            cx, cy = sx, sy
        elif OP == 'H':
            cx = absolute[0]
        elif OP == 'V':
            cy = absolute[0]
        else:
            cx, cy = absolute[-2], absolute[-1]
        if OP == 'M':
            sx, sy = cx, cy


def _project_command(command: PathCommand, current: Vector, perspective: Perspective) -> PathCommand:
    op, args = command
    eye = perspective.eye
    transform = perspective.transform

    def proj(x, y):
        return point_with_perspective(x, y, eye, transform)

    if op in ('M', 'L', 'T', 'C', 'S', 'Q'):
        out = []
        for i in range(0, len(args), 2):
            p = proj(args[i], args[i+1])
            out += [p.x, p.y]
        return PathCommand(op, tuple(out))
    if op in ('H', 'V'):
        ## the projected segment stays axis-aligned only in special views
        start = proj(current.x, current.y)
        if op == 'H':
            end = proj(args[0], current.y)
            if geom.close(start.y, end.y):
                return PathCommand('H', (end.x,))
        else:
            end = proj(current.x, args[0])
            if geom.close(start.x, end.x):
                return PathCommand('V', (end.y,))
        return PathCommand('L', (end.x, end.y))
    if op == 'A':
        arc = arc_with_perspective(current, args, perspective)
        if isinstance(arc, Segment):
            return PathCommand('L', (arc.x1, arc.y1))
        return PathCommand('A', tuple(arc))
    return command


def _clip_polygon(context: RenderContext):
    if context.view_box is None:
        return None
    return clip_viewport_polygon(context.view_box, context.perspective)


## rendering
## ---------

@singledispatch
def render(shape, context: Optional[RenderContext] = None):
    """Render ``shape`` to an element record in ``context``."""
    raise ValueError('cannot render {!r}'.format(shape))


def _render_ellipse(cx, cy, rx, ry, attrs, context):
    perspective = context.perspective if context is not None else None
    if perspective is None:
        return EllipseElement(cx, cy, rx, ry, 0.0, None, attrs)

    projected = ellipse_with_perspective(cx, cy, rx, ry, perspective.eye, perspective.transform)
    if projected.is_edge_on:
        s = projected.segment
        return LineElement(s.x0, s.y0, s.x1, s.y1, attrs)

    e = projected.ellipse
    polygon = _clip_polygon(context)
    if polygon:
        ## express the visible polygon in the ellipse's rotated frame
        inverse = Rotation('Z', e.theta, center=(e.cx, e.cy), size=3).svd()
        polygon = [Vector(inverse.solve([p.x, p.y, 1.0])[:2]) for p in polygon]
    return EllipseElement(e.cx, e.cy, e.rx, e.ry, degrees(e.theta), polygon, attrs)


@render.register
def _(shape: Circle, context: Optional[RenderContext] = None):
    return _render_ellipse(shape.cx, shape.cy, shape.r, shape.r, shape.attrs, context)


@render.register
def _(shape: Ellipse, context: Optional[RenderContext] = None):
    return _render_ellipse(shape.cx, shape.cy, shape.rx, shape.ry, shape.attrs, context)


@render.register
def _(shape: Path, context: Optional[RenderContext] = None):
    perspective = context.perspective if context is not None else None
    if perspective is None:
        return PathElement(list(shape.commands), None, shape.attrs)
    commands = [_project_command(c, cur, perspective)
                for c, cur in absolute_commands(shape.commands)]
    return PathElement(commands, _clip_polygon(context), shape.attrs)


@render.register
def _(shape: Group, context: Optional[RenderContext] = None):
    if context is None:
        context = RenderContext()
    if shape.perspective is not None:
        context = replace(context, perspective=shape.perspective)
    return GroupElement([render(child, context) for child in shape.children], shape.attrs)
