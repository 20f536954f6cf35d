## foundational scalar and vector helpers for perspsvg
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

"""foundational scalar and vector helpers for **perspsvg**

====================
OVERVIEW
====================

The perspsvg.geom module holds the numeric configuration of the
library together with the small scalar and vector operations every
other module builds on.

constants
=========

``epsilon`` is the geometric closeness tolerance, ``pi2`` is 2*pi.
The remaining upper-case constants configure the numerical engine:

* ``SVD_EPSILON`` -- convergence threshold of the Jacobi SVD
* ``SVD_MAX_ITERATIONS`` -- rotation budget of the Jacobi SVD
* ``PINV_TOLERANCE`` -- singular values at or below this are treated
  as zero by the pseudo-inverse
* ``PARALLEL_EPSILON`` -- planes whose normals cross to less than this
  are parallel
* ``EDGE_ON_THRESHOLD`` -- a projected ellipse whose samples lie within
  this distance of a line is drawn as that line
* ``ELLIPSE_SAMPLES`` -- number of points sampled around an ellipse
  before projection

Redefine these at your peril; functions that use them also accept a
keyword override.

vectors
=======

Three-vectors are plain sequences of at least three numbers, and the
functions below return lists.  Points handed back to callers are
``Vector`` instances: immutable tuples with ``x``, ``y``, ``z`` and
``w`` accessors.

"""

from collections.abc import Mapping
from math import pi, sqrt, inf, nan, copysign, isnan

from perspsvg.errors import DimensionMismatch

## constants
epsilon = 0.000005
pi2 = 2.0*pi

SVD_EPSILON = 1e-10
SVD_MAX_ITERATIONS = 100
PINV_TOLERANCE = 1e-10
PARALLEL_EPSILON = 1e-10
EDGE_ON_THRESHOLD = 0.99
ELLIPSE_SAMPLES = 8

## operations on scalars
## -----------------------

## booleans are ints in python, but True and False are not numbers
## for our purposes
def isgoodnum(n):
    """ determine if an argument is actually a scalar number, and not boolean
    """
    return (not isinstance(n,bool)) and isinstance(n,(int,float))

def close(a,b):
    """ are two scalars the same within epsilon
    """
    return abs(a-b) < epsilon

def sign(a):
    """ -1, 0 or 1 according to the sign of ``a``"""
    if a > 0:
        return 1
    if a < 0:
        return -1
    return 0

## IEEE-754 division: python raises on x/0.0, floating point hardware
## returns a signed infinity (or nan for 0/0).  Projection through the
## eye plane depends on the latter.
def fdiv(a,b):
    """divide ``a`` by ``b`` with IEEE-754 semantics for a zero divisor"""
    if b != 0:
        return a/b
    if a == 0 or isnan(a):
        return nan
    return copysign(inf,a)*copysign(1.0,b)

def fsqrt(a):
    """square root that returns nan rather than raising for negative values"""
    if a < 0 or isnan(a):
        return nan
    return sqrt(a)

## operations on 3-vectors
## ------------------------

def add(a,b):
    """ 3 vector, `a + b`"""
    return [a[0]+b[0],a[1]+b[1],a[2]+b[2]]

def sub(a,b):
    """ 3 vector, `a - b`"""
    return [a[0]-b[0],a[1]-b[1],a[2]-b[2]]

def scale3(a,c):
    """ 3 vector, vector ``a`` times scalar ``c``"""
    return [a[0]*c,a[1]*c,a[2]*c]

def dot(a,b):
    """ 3 vector ``a`` dot ``b`` """
    return a[0]*b[0]+a[1]*b[1]+a[2]*b[2]

def cross(a,b):
    """ 3 vector ``a`` cross ``b``"""
    return [ a[1]*b[2] - a[2]*b[1],
             a[2]*b[0] - a[0]*b[2],
             a[0]*b[1] - a[1]*b[0] ]

def mag(a):
    """ magnitude of 3 vector ``a``"""
    return sqrt(a[0]*a[0]+a[1]*a[1]+a[2]*a[2])

def dist2(a,b):
    """ squared euclidean distance between 3 vector points ``a`` and ``b``"""
    d = sub(a,b)
    return dot(d,d)

def normalize(a):
    """ unit vector in the direction of ``a``; zero-length vectors raise"""
    m = mag(a)
    if m < epsilon*epsilon:
        raise ValueError('cannot normalize zero-length vector: {}'.format(a))
    return scale3(a,1.0/m)

def vclose(a,b):
    """ are two 3 vectors the same within epsilon"""
    return close(mag(sub(a,b)),0)


## Vector value type
## -----------------

_NAMES = ('x','y','z','w')

def _components_from_mapping(obj):
    dim = 0
    for i, name in enumerate(_NAMES):
        if obj.get(name) is not None:
            dim = i + 1
    comps = [0.0]*max(dim,2)
    for i, name in enumerate(_NAMES):
        value = obj.get(name)
        if value is not None:
            comps[i] = value
    return comps


class Vector(tuple):
    """Immutable 2 to 4 component vector with named accessors.

    ``Vector(1, 2)``, ``Vector([1, 2, 3])`` and ``Vector({'x': 1,
    'z': 3})`` are all accepted.  A partial mapping fills the missing
    lower components with zero.  Vectors compare equal to plain tuples
    holding the same values.
    """

    __slots__ = ()

    def __new__(cls, *args):
        if len(args) == 1 and isinstance(args[0], Mapping):
            comps = _components_from_mapping(args[0])
        elif len(args) == 1 and isinstance(args[0], (tuple, list)):
            comps = list(args[0])
        else:
            comps = list(args)
        if not 2 <= len(comps) <= 4:
            raise DimensionMismatch(
                'vector must have 2 to 4 components, got {}'.format(len(comps)))
        for c in comps:
            if not isgoodnum(c):
                raise ValueError('bad vector component: {}'.format(c))
        return super().__new__(cls, comps)

    def __repr__(self):
        return 'Vector({})'.format(', '.join(repr(c) for c in self))

    def _get(self, i):
        if i >= len(self):
            raise AttributeError(
                '{}-component vector has no {} component'.format(len(self), _NAMES[i]))
        return self[i]

    @property
    def x(self):
        return self[0]

    @property
    def y(self):
        return self[1]

    @property
    def z(self):
        return self._get(2)

    @property
    def w(self):
        return self._get(3)

    @property
    def dim(self):
        return len(self)

    def tolist(self):
        return list(self)

    def todict(self):
        return {name: value for name, value in zip(_NAMES, self)}


def coerce3(v, what='point'):
    """Return the XYZ components of a point-like value as a list.

    Accepts ``Vector`` instances, sequences and ``{x, y, z}`` mappings.
    """
    if isinstance(v, Mapping):
        v = Vector(v)
    if not isinstance(v, (tuple, list)) or len(v) < 3:
        raise DimensionMismatch('{} must have at least three components: {}'.format(what, v))
    return [float(v[0]), float(v[1]), float(v[2])]


def coerce2(v, what='point'):
    """Return the XY components of a point-like value as a list."""
    if isinstance(v, Mapping):
        v = Vector(v)
    if not isinstance(v, (tuple, list)) or len(v) < 2:
        raise DimensionMismatch('{} must have at least two components: {}'.format(what, v))
    return [float(v[0]), float(v[1])]
