## algebraic helpers for perspsvg
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

import mpmath as mpm

from perspsvg.geom import isgoodnum


def quadratic_roots(a, b, c, assume_real=False):
    """Real roots of ``a*x**2 + b*x + c = 0``, sorted ascending.

    The discriminant is evaluated in extended precision and the roots
    are formed with the branch on the sign of ``b`` that avoids
    subtracting nearly equal quantities.  A double root is returned
    twice.  If the discriminant is negative the result is empty, unless
    ``assume_real`` is set, in which case the discriminant is clamped to
    zero (useful when the roots are known to be real and the negative
    value is rounding noise).
    """
    for v in (a, b, c):
        if not isgoodnum(v):
            raise ValueError('bad coefficient passed to quadratic_roots: {}'.format(v))
    if a == 0:
        raise ValueError('leading coefficient of a quadratic must be non-zero')

    mpa = mpm.mpf(a)
    mpb = mpm.mpf(b)
    mpc = mpm.mpf(c)
    d = mpb*mpb - 4*mpa*mpc
    if d < 0:
        if not assume_real:
            return []
        d = mpm.mpf(0)
    sd = mpm.sqrt(d)

    ## -b and the square root have the same sign on each branch, so
    ## the first root never cancels and the second comes from Vieta
    if b >= 0:
        q = -mpb - sd
    else:
        q = -mpb + sd
    if q == 0:
        # b == 0 and c == 0
        return [0.0, 0.0]
    x1 = q/(2*mpa)
    x2 = (2*mpc)/q
    return sorted([float(x1), float(x2)])
