"""
Natural cubic spline basis for splinede.

Reproduces the basis of R's ``splines::ns()``: a cubic B-spline basis on
the boundary and interior knots, projected onto the subspace whose
second derivative vanishes at both boundary knots, and extended linearly
outside them. The knots, boundary knots and intercept flag are retained
so that new timepoints (e.g. a dense plotting grid) map through the
identical basis.
"""

import numpy as np
import pandas as pd
from scipy.interpolate import BSpline


_ORDER = 4  # cubic


def _as_finite_vector(x, name='x'):
    x = np.asarray(x, dtype=np.float64).ravel()
    if x.size == 0:
        raise ValueError(f"'{name}' must contain at least one value")
    if not np.all(np.isfinite(x)):
        raise ValueError(f"'{name}' contains missing or infinite values")
    return x


class NaturalSplineBasis:
    """Natural cubic spline basis with retained parameters.

    Parameters
    ----------
    x : array-like
        Predictor values (e.g. timepoints in hours).
    knots : array-like, optional
        Interior knots. If omitted, ``df - 1 - intercept`` knots are
        placed at evenly spaced quantiles of ``x``.
    df : int, optional
        Degrees of freedom, used only when ``knots`` is omitted.
    intercept : bool
        Include the constant-spanning column. The default (False) gives
        ``len(knots) + 1`` columns.
    boundary_knots : tuple of float, optional
        Defaults to ``(min(x), max(x))``.

    Attributes
    ----------
    knots : ndarray
    boundary_knots : ndarray
    intercept : bool
    basis : ndarray
        Basis evaluated at ``x`` (len(x) x n_basis).

    Examples
    --------
    >>> b = NaturalSplineBasis([0, 2, 4, 8, 12, 24], knots=[4, 12])
    >>> b.basis.shape
    (6, 3)
    >>> dense = b.predict(np.linspace(0, 24, 100))
    """

    def __init__(self, x, knots=None, df=None, intercept=False,
                 boundary_knots=None):
        x = _as_finite_vector(x)
        self.intercept = bool(intercept)

        if boundary_knots is None:
            boundary = np.array([np.min(x), np.max(x)])
        else:
            boundary = np.sort(_as_finite_vector(boundary_knots, 'boundary_knots'))
            if boundary.size != 2:
                raise ValueError("'boundary_knots' must have length 2")
        if not boundary[0] < boundary[1]:
            raise ValueError(
                f"Boundary knots must differ; got {boundary[0]:g} and {boundary[1]:g}. "
                "At least two distinct timepoints are required."
            )

        if knots is None:
            if df is None:
                raise ValueError("Either 'knots' or 'df' must be given")
            n_inner = int(df) - 1 - int(self.intercept)
            if n_inner < 0:
                raise ValueError(f"'df' = {df} is too small")
            if n_inner > 0:
                inside = x[(x >= boundary[0]) & (x <= boundary[1])]
                probs = np.linspace(0.0, 1.0, n_inner + 2)[1:-1]
                knots = np.quantile(inside, probs)
            else:
                knots = np.array([])
        knots = np.sort(np.asarray(knots, dtype=np.float64).ravel())
        if not np.all(np.isfinite(knots)):
            raise ValueError("'knots' contains missing or infinite values")
        if np.any(knots <= boundary[0]) or np.any(knots >= boundary[1]):
            raise ValueError(
                f"Interior knots {knots.tolist()} must lie strictly inside the "
                f"boundary knots [{boundary[0]:g}, {boundary[1]:g}]"
            )

        self.knots = knots
        self.boundary_knots = boundary
        self.basis = self.predict(x)

    @property
    def n_basis(self):
        return len(self.knots) + 1 + int(self.intercept)

    @property
    def params(self):
        return {
            'knots': self.knots.tolist(),
            'boundary_knots': self.boundary_knots.tolist(),
            'intercept': self.intercept,
        }

    def __repr__(self):
        p = self.params
        return (f"NaturalSplineBasis(knots={p['knots']}, "
                f"boundary_knots={p['boundary_knots']}, intercept={p['intercept']})")

    def predict(self, newx):
        """Evaluate the identical basis at new predictor values.

        Returns
        -------
        ndarray (len(newx) x n_basis)
        """
        x = _as_finite_vector(newx, 'newx')
        b0, b1 = self.boundary_knots
        t = np.concatenate([np.repeat(b0, _ORDER), self.knots, np.repeat(b1, _ORDER)])
        nb = len(t) - _ORDER
        spl = BSpline(t, np.eye(nb), _ORDER - 1, extrapolate=True)

        basis = np.empty((len(x), nb))
        inside = (x >= b0) & (x <= b1)
        if np.any(inside):
            basis[inside] = spl(x[inside])
        # Linear continuation beyond the boundary knots
        below = x < b0
        if np.any(below):
            basis[below] = spl(b0) + (x[below] - b0)[:, None] * spl(b0, nu=1)
        above = x > b1
        if np.any(above):
            basis[above] = spl(b1) + (x[above] - b1)[:, None] * spl(b1, nu=1)

        const = spl(self.boundary_knots, nu=2)
        if not self.intercept:
            basis = basis[:, 1:]
            const = const[:, 1:]
        q, _ = np.linalg.qr(const.T, mode='complete')
        return basis @ q[:, 2:]

    def check_compatible(self, other):
        """Raise ``ValueError`` unless ``other`` has identical parameters."""
        if not isinstance(other, NaturalSplineBasis):
            raise ValueError(f"Expected a NaturalSplineBasis, got {type(other).__name__}")
        diffs = []
        if not np.array_equal(self.knots, other.knots):
            diffs.append(f"knots {self.knots.tolist()} != {other.knots.tolist()}")
        if not np.array_equal(self.boundary_knots, other.boundary_knots):
            diffs.append(f"boundary knots {self.boundary_knots.tolist()} != "
                         f"{other.boundary_knots.tolist()}")
        if self.intercept != other.intercept:
            diffs.append(f"intercept {self.intercept} != {other.intercept}")
        if diffs:
            raise ValueError("Spline basis mismatch: " + "; ".join(diffs))

    def column_names(self, prefix='fun'):
        return [f"{prefix}{k + 1}" for k in range(self.n_basis)]

    def to_frame(self, x=None, prefix='fun', index=None):
        """Basis as a DataFrame with columns ``fun1 .. funK``.

        Uses the fit-time matrix when ``x`` is None.
        """
        mat = self.basis if x is None else self.predict(x)
        return pd.DataFrame(mat, columns=self.column_names(prefix), index=index)


def ns(x, knots=None, df=None, intercept=False, boundary_knots=None):
    """Natural cubic spline basis, mirroring R's ``ns()``.

    See :class:`NaturalSplineBasis`.
    """
    return NaturalSplineBasis(x, knots=knots, df=df, intercept=intercept,
                              boundary_knots=boundary_knots)
