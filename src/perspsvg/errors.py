"""
Exceptions raised by perspsvg.

Structural problems (wrong shapes, too few points, degenerate input)
raise.  Geometric outcomes such as parallel planes or an edge-on
ellipse are reported with ``None`` or a fallback value instead.

All exceptions derive from ``ValueError`` so callers catching bad
geometry arguments the usual way keep working.
"""


class PerspectiveError(ValueError):
    """Base class for all perspsvg errors."""


class DimensionMismatch(PerspectiveError):
    """Matrix or vector operands have incompatible shapes."""


class InvalidDimension(DimensionMismatch):
    """A point matrix handed to the projector does not have 4 rows."""


class InsufficientPoints(PerspectiveError):
    """Too few points to fit a conic (5) or a segment (2)."""

    def __init__(self, needed, got, what='fit'):
        super().__init__('{} needs at least {} points, got {}'.format(what, needed, got))
        self.needed = needed
        self.got = got


class DegenerateInput(PerspectiveError):
    """Input collapses so the requested quantity is undefined."""
