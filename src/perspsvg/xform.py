## dense matrices, singular value decomposition and homogeneous
## transformations for perspsvg
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

## A Matrix is an m x n table of floats stored as a flat row-major
## list.  Matrices are values: nothing here mutates a Matrix after
## construction, every operation returns a new one.  As in the rest of
## perspsvg, Mx with a plain sequence x treats x as a column vector.
##
## Transformations are built as 4x4 homogeneous matrices (or 3x3 for
## 2D), either directly with Rotation() and Translation() or from a
## list of Rotate/Translate steps with compose().  Steps compose as
## successive right-multiplications in list order, M = S1 S2 ... Sk,
## so the last step is the first one applied to a point.

import logging
from dataclasses import dataclass
from math import cos, sin, sqrt
from typing import NamedTuple, Optional, Sequence, Union

from perspsvg import geom
from perspsvg.errors import DimensionMismatch

logger = logging.getLogger(__name__)


class Matrix:
    """m x n dense matrix of floats"""

    __slots__ = ('_m', '_n', '_a')

    def __init__(self, a):
        if isinstance(a, Matrix):
            self._m, self._n, self._a = a._m, a._n, list(a._a)
            return
        if not isinstance(a, (tuple, list)) or len(a) == 0:
            raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
        rows = [list(r) if isinstance(r, (tuple, list)) else None for r in a]
        if any(r is None for r in rows):
            raise ValueError('matrix rows must be sequences: {}'.format(a))
        n = len(rows[0])
        if n == 0:
            raise ValueError('matrix rows must not be empty')
        flat = []
        for r in rows:
            if len(r) != n:
                raise DimensionMismatch('ragged rows in matrix initialization: {}'.format(a))
            for x in r:
                if not geom.isgoodnum(x):
                    raise ValueError('bad element in matrix initialization: {}'.format(x))
                flat.append(float(x))
        self._m = len(rows)
        self._n = n
        self._a = flat

    @classmethod
    def _fromflat(cls, m, n, flat):
        mat = cls.__new__(cls)
        mat._m = m
        mat._n = n
        mat._a = flat
        return mat

    @classmethod
    def zeros(cls, m, n):
        if m < 1 or n < 1:
            raise DimensionMismatch('matrix dimensions must be positive: {}x{}'.format(m, n))
        return cls._fromflat(m, n, [0.0]*(m*n))

    @classmethod
    def fromcolumns(cls, cols):
        """build a matrix whose columns are the given sequences"""
        if len(cols) == 0:
            raise ValueError('no columns passed to fromcolumns')
        m = len(cols[0])
        for c in cols:
            if len(c) != m:
                raise DimensionMismatch('columns of unequal length passed to fromcolumns')
        return cls([[c[i] for c in cols] for i in range(m)])

    @property
    def m(self):
        return self._m

    @property
    def n(self):
        return self._n

    @property
    def shape(self):
        return (self._m, self._n)

    def __repr__(self):
        return 'Matrix({})'.format(self.tolist())

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and self._a == other._a

    def __hash__(self):
        return hash((self._m, self._n, tuple(self._a)))

    def _check(self, i, j):
        if i < 0 or i >= self._m or j < 0 or j >= self._n:
            raise IndexError('bad index for {}x{} matrix: {},{}'.format(self._m, self._n, i, j))

    # return value indexed by i,j
    def get(self, i, j):
        self._check(i, j)
        return self._a[i*self._n + j]

    def __getitem__(self, ij):
        i, j = ij
        return self.get(i, j)

    def getrow(self, i):
        self._check(i, 0)
        return self._a[i*self._n:(i+1)*self._n]

    def getcol(self, j):
        self._check(0, j)
        return self._a[j::self._n]

    def tolist(self):
        return [self.getrow(i) for i in range(self._m)]

    def diagonal(self):
        return [self._a[i*self._n + i] for i in range(min(self._m, self._n))]

    def close(self, other, tol=geom.epsilon):
        """are two matrices of the same shape equal to within ``tol``"""
        if not isinstance(other, Matrix):
            other = Matrix(other)
        if self.shape != other.shape:
            return False
        return all(abs(a - b) <= tol for a, b in zip(self._a, other._a))

    def transpose(self):
        m, n, a = self._m, self._n, self._a
        return Matrix._fromflat(n, m, [a[i*n + j] for j in range(n) for i in range(m)])

    # matrix multiply.  If x is a matrix, compute MX.  If x is a
    # vector, compute Mx. If x is a scalar, compute xM.
    def mul(self, x):
        m, n, a = self._m, self._n, self._a
        if isinstance(x, Matrix):
            if x._m != n:
                raise DimensionMismatch(
                    'cannot multiply {}x{} by {}x{} matrix'.format(m, n, x._m, x._n))
            p = x._n
            b = x._a
            flat = []
            for i in range(m):
                row = a[i*n:(i+1)*n]
                for j in range(p):
                    flat.append(sum(row[k]*b[k*p + j] for k in range(n)))
            return Matrix._fromflat(m, p, flat)
        elif isinstance(x, (tuple, list)):
            if len(x) != n:
                raise DimensionMismatch(
                    'cannot multiply {}x{} matrix by {}-vector'.format(m, n, len(x)))
            return [sum(a[i*n + k]*x[k] for k in range(n)) for i in range(m)]
        elif geom.isgoodnum(x):
            return Matrix._fromflat(m, n, [v*x for v in a])
        raise ValueError('bad thing passed to mul(): {}'.format(x))

    def det(self):
        """determinant by Gaussian elimination with partial pivoting"""
        if self._m != self._n:
            raise DimensionMismatch('determinant of non-square {}x{} matrix'.format(self._m, self._n))
        n = self._n
        rows = self.tolist()
        d = 1.0
        for c in range(n):
            p = max(range(c, n), key=lambda r: abs(rows[r][c]))
            if rows[p][c] == 0.0:
                return 0.0
            if p != c:
                rows[c], rows[p] = rows[p], rows[c]
                d = -d
            pivot = rows[c][c]
            d *= pivot
            for r in range(c+1, n):
                f = rows[r][c]/pivot
                if f != 0.0:
                    rr = rows[r]
                    rc = rows[c]
                    for k in range(c, n):
                        rr[k] -= f*rc[k]
        return d

    def svd(self, max_iterations=None, eps=None):
        """singular value decomposition, see ``svd()``"""
        return svd(self, max_iterations=max_iterations, eps=eps)

    ## transformation conveniences: each returns self times the new
    ## transform, the same stacking order as compose()
    def rotate(self, axis, angle, center=None):
        return self.mul(Rotation(axis, angle, center, size=self._n))

    def translate(self, vec):
        return self.mul(Translation(vec, size=self._n))

    def transform(self, steps):
        return self.mul(compose(steps, size=self._n))


def identity(n):
    """n x n identity matrix"""
    flat = [0.0]*(n*n)
    for i in range(n):
        flat[i*n + i] = 1.0
    return Matrix._fromflat(n, n, flat)


## singular value decomposition
## ----------------------------

class SVD(NamedTuple):
    """thin SVD of an m x n matrix: ``A ~ U diag(S) V^T``

    ``U`` is m x k, ``S`` the k = min(m, n) singular values in
    descending order, ``V`` is n x k.  ``converged`` is False if the
    Jacobi iteration ran out of budget; the factors are then the best
    approximation found.
    """
    U: Matrix
    S: list
    V: Matrix
    converged: bool
    iterations: int

    def solve(self, b, tol=None):
        """least-squares solution of ``A x = b`` via the pseudo-inverse,
        ``x = V S^+ U^T b``"""
        if tol is None:
            tol = geom.PINV_TOLERANCE
        if len(b) != self.U.m:
            raise DimensionMismatch(
                'right-hand side has {} entries, expected {}'.format(len(b), self.U.m))
        utb = self.U.transpose().mul(list(b))
        y = [u/s if s > tol else 0.0 for u, s in zip(utb, self.S)]
        return self.V.mul(y)

    def reconstruct(self):
        """``U diag(S) V^T``"""
        k = len(self.S)
        us = Matrix.fromcolumns([[v*self.S[j] for v in self.U.getcol(j)] for j in range(k)])
        return us.mul(self.V.transpose())


def svd(a, max_iterations=None, eps=None):
    """One-sided (Hestenes) Jacobi singular value decomposition.

    The columns of a working copy of ``a`` are rotated pairwise until
    they are mutually orthogonal.  Each iteration finds the column pair
    with the largest normalized off-diagonal entry of the implicit
    ``A^T A`` and zeroes it with a single plane rotation, which is also
    accumulated into ``V``.  The iteration stops once the largest entry
    falls below ``eps`` or after ``max_iterations`` rotations.  On exit
    the column norms are the singular values and the normalized columns
    form ``U``.
    """
    if max_iterations is None:
        max_iterations = geom.SVD_MAX_ITERATIONS
    if eps is None:
        eps = geom.SVD_EPSILON
    if not isinstance(a, Matrix):
        a = Matrix(a)

    m, n = a.m, a.n
    w = [a.getcol(j) for j in range(n)]
    v = identity(n).tolist()  # v[j] is column j of V
    frob2 = sum(x*x for col in w for x in col)
    tiny = eps*eps*frob2

    converged = False
    iterations = 0
    while True:
        worst = 0.0
        p = q = -1
        norms = [sum(x*x for x in col) for col in w]
        for i in range(n):
            if norms[i] <= tiny:
                continue
            for j in range(i+1, n):
                if norms[j] <= tiny:
                    continue
                gamma = sum(x*y for x, y in zip(w[i], w[j]))
                off = abs(gamma)/sqrt(norms[i]*norms[j])
                if off > worst:
                    worst = off
                    p, q = i, j
        if worst < eps:
            converged = True
            break
        if iterations >= max_iterations:
            break
        iterations += 1

        alpha = norms[p]
        beta = norms[q]
        gamma = sum(x*y for x, y in zip(w[p], w[q]))
        zeta = (beta - alpha)/(2.0*gamma)
        t = (1.0 if zeta >= 0 else -1.0)/(abs(zeta) + sqrt(1.0 + zeta*zeta))
        c = 1.0/sqrt(1.0 + t*t)
        s = c*t
        for cols in (w, v):
            cp = cols[p]
            cq = cols[q]
            cols[p] = [c*x - s*y for x, y in zip(cp, cq)]
            cols[q] = [s*x + c*y for x, y in zip(cp, cq)]

    if not converged:
        logger.warning('Jacobi SVD of %dx%d matrix stopped after %d rotations '
                       '(largest off-diagonal %.3g)', m, n, iterations, worst)

    sigma = [sqrt(sum(x*x for x in col)) for col in w]
    order = sorted(range(n), key=lambda j: -sigma[j])[:min(m, n)]
    ucols = []
    for j in order:
        s = sigma[j]
        if s > 0.0:
            ucols.append([x/s for x in w[j]])
        else:
            ucols.append([0.0]*m)
    return SVD(U=Matrix.fromcolumns(ucols),
               S=[sigma[j] for j in order],
               V=Matrix.fromcolumns([v[j] for j in order]),
               converged=converged,
               iterations=iterations)


## homogeneous transformations
## ---------------------------

## rotations inside a coordinate plane, expressed as the axis normal
## to it; the reversed pair turns the other way
_AXES = {
    'X': (1.0, 0.0, 0.0),
    'Y': (0.0, 1.0, 0.0),
    'Z': (0.0, 0.0, 1.0),
    'YZ': (1.0, 0.0, 0.0),
    'ZX': (0.0, 1.0, 0.0),
    'XY': (0.0, 0.0, 1.0),
    'ZY': (-1.0, 0.0, 0.0),
    'XZ': (0.0, -1.0, 0.0),
    'YX': (0.0, 0.0, -1.0),
}

def _axis(spec):
    if isinstance(spec, str):
        u = _AXES.get(spec.upper())
        if u is None:
            raise ValueError('bad rotation axis specification: {}'.format(spec))
        return list(u)
    if isinstance(spec, (tuple, list)) and len(spec) >= 3:
        return geom.normalize(spec)
    raise ValueError('bad rotation axis specification: {}'.format(spec))


def _about(m, center, size):
    ## T(c) M T(-c); a 2D center is taken to lie in the z=0 plane
    c = list(center)[:size-1]
    c += [0.0]*(size - 1 - len(c))
    neg = [-x for x in c]
    return Translation(c, size).mul(m).mul(Translation(neg, size))


def Rotation(axis, angle, center=None, size=4):
    """Rotation by ``angle`` radians about ``axis``.

    ``axis`` is ``'X'``, ``'Y'``, ``'Z'``, a coordinate-plane pair such
    as ``'XY'``, or an explicit 3-vector.  With ``size=3`` the result is
    a 2D homogeneous rotation, which only exists about Z.  If
    ``center`` is given, the rotation is about that point.
    """
    if not geom.isgoodnum(angle):
        raise ValueError('bad rotation angle: {}'.format(angle))
    u = _axis(axis)
    ca = cos(angle)
    sa = sin(angle)

    if size == 3:
        if abs(u[0]) > geom.epsilon or abs(u[1]) > geom.epsilon:
            raise ValueError('2D rotations must be about Z, got {}'.format(axis))
        if u[2] < 0:
            sa = -sa
        R = Matrix([[ca, -sa, 0],
                    [sa, ca, 0],
                    [0, 0, 1]])
    elif size == 4:
        ux, uy, uz = u
        cmin = 1.0 - ca
        R = Matrix([[ca + ux*ux*cmin, ux*uy*cmin - uz*sa, ux*uz*cmin + uy*sa, 0],
                    [uy*ux*cmin + uz*sa, ca + uy*uy*cmin, uy*uz*cmin - ux*sa, 0],
                    [uz*ux*cmin - uy*sa, uz*uy*cmin + ux*sa, ca + uz*uz*cmin, 0],
                    [0, 0, 0, 1]])
    else:
        raise DimensionMismatch('transforms are 3x3 or 4x4, not {}x{}'.format(size, size))

    if center is not None:
        return _about(R, center, size)
    return R


def Translation(delta, size=4):
    """Translation by ``delta`` (2 components for size 3, 3 for size 4)"""
    k = size - 1
    if size not in (3, 4):
        raise DimensionMismatch('transforms are 3x3 or 4x4, not {}x{}'.format(size, size))
    if len(delta) < k:
        raise DimensionMismatch('translation for a {}x{} transform needs {} components'.format(size, size, k))
    T = identity(size).tolist()
    for i in range(k):
        T[i][k] = delta[i]
    return Matrix(T)


## transform steps
## ---------------

@dataclass(frozen=True)
class Rotate:
    """rotate by ``angle`` radians about ``axis``, optionally about ``center``"""
    axis: Union[str, Sequence[float]]
    angle: float
    center: Optional[Sequence[float]] = None

    def matrix(self, size=4):
        return Rotation(self.axis, self.angle, self.center, size=size)


@dataclass(frozen=True)
class Translate:
    """translate by ``vec``"""
    vec: Sequence[float]

    def matrix(self, size=4):
        return Translation(self.vec, size=size)


TransformStep = Union[Rotate, Translate]


def compose(steps, size=4):
    """Compose ``steps`` into one homogeneous matrix.

    Steps are right-multiplied in list order, ``M = S1 S2 ... Sk``.
    """
    M = identity(size)
    for step in steps:
        if not isinstance(step, (Rotate, Translate)):
            raise ValueError('unknown transformation step: {}'.format(step))
        M = M.mul(step.matrix(size))
    return M
