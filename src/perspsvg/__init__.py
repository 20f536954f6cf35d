# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("perspsvg")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from perspsvg.arc import (ArcEndpoints, CenterArc, EndpointArc, Segment,
                          arc_with_perspective, center_to_endpoint,
                          endpoint_to_center)
from perspsvg.clip import (ClippedArc, HalfPlane, Line3, Plane, ViewBox,
                           clip_ellipse, clip_polygon_to_line,
                           clip_viewport_polygon, half_plane_in_xy,
                           intersect_planes)
from perspsvg.conic import (ConicCoefficients, PerspectiveEllipse,
                            SegmentFallback, StandardEllipse,
                            ellipse_with_perspective, fit_conic,
                            to_standard_form)
from perspsvg.errors import (DegenerateInput, DimensionMismatch,
                             InsufficientPoints, InvalidDimension,
                             PerspectiveError)
from perspsvg.geom import Vector
from perspsvg.projection import Perspective, project
from perspsvg.shapes import (Circle, Ellipse, EllipseElement, Group,
                             GroupElement, LineElement, Path, PathCommand,
                             PathElement, RenderContext, render)
from perspsvg.xform import (SVD, Matrix, Rotate, Rotation, Translate,
                            Translation, compose, identity)
