"""
Fitted spline curves from GLM coefficients.

Rebuilds the linear predictor of the full model
``~ donor + donor:fun1 + ... + donor:funK`` for one donor on a dense
time grid:

    Intercept + donor[T.g] (non-reference donors only)
              + sum_k donor[g]:funk * B_k(t)

where ``B`` is the spline basis of the fit evaluated at ``t``. Term names
follow patsy's treatment coding so they index the coefficient table
directly.
"""

import numpy as np
import pandas as pd

from .design import intercept_term, group_offset_term, group_interaction_terms


def reconstruct_curve(coefficients, group, basis_matrix, reference,
                      factor='donor', prefix='fun'):
    """Linear predictor of one group at the rows of a basis matrix.

    Parameters
    ----------
    coefficients : Series or dict
        Term name -> coefficient for a single gene.
    group : str
        Level of ``factor`` to reconstruct.
    basis_matrix : array-like (n_points x n_basis)
        Spline basis rows at the evaluation points.
    reference : str
        Reference level, which has no offset term.
    factor, prefix : str
        Factor name and spline column prefix used in the formula.

    Returns
    -------
    ndarray of length n_points, on the scale of the coefficients.
    """
    B = np.asarray(basis_matrix, dtype=np.float64)
    if B.ndim == 1:
        B = B.reshape(1, -1)
    group = str(group)
    n_basis = B.shape[1]

    # The group's slope terms in the table must match the basis width
    slope_prefix = f"{factor}[{group}]:"
    n_slopes = sum(1 for k in coefficients.keys() if str(k).startswith(slope_prefix))
    if n_slopes != n_basis:
        raise ValueError(
            f"Basis has {n_basis} columns but the coefficients hold {n_slopes} "
            f"'{slope_prefix}{prefix}*' terms"
        )

    base_terms = [intercept_term()]
    if group != str(reference):
        base_terms.append(group_offset_term(group, factor))
    slope_terms = group_interaction_terms(group, n_basis, factor=factor, prefix=prefix)

    missing = [t for t in base_terms + slope_terms if t not in coefficients]
    if missing:
        raise ValueError(
            f"Coefficient term(s) {missing} not found; the fitted formula and "
            "the reconstruction terms disagree"
        )

    offset = sum(float(coefficients[t]) for t in base_terms)
    slopes = np.array([coefficients[t] for t in slope_terms], dtype=np.float64)
    return offset + B @ slopes


def fitted_curve(fit, gene, group, n_points=100, basis=None, times=None):
    """Fitted curve of one gene and donor on a dense time grid.

    Parameters
    ----------
    fit : SplineFit
        Result of :func:`spline_lrt`.
    gene : str
        Gene id.
    group : str
        Donor level.
    n_points : int
        Grid size across the boundary knots of the fit basis.
    basis : NaturalSplineBasis, optional
        If given, must be parameter-identical to the fit basis.
    times : array-like, optional
        Evaluation points instead of the default grid.

    Returns
    -------
    DataFrame with columns ``time`` and ``fitted`` (natural log of
    normalized expression).
    """
    fit_basis = fit['basis']
    if basis is not None:
        fit_basis.check_compatible(basis)

    levels = [str(g) for g in fit['group.levels']]
    group = str(group)
    if group not in levels:
        raise ValueError(f"Unknown {fit.get('factor', 'donor')} '{group}'. Available: {levels}")

    coef_table = fit['coefficients']
    if gene not in coef_table.index:
        raise ValueError(f"Gene '{gene}' not found in fit")
    coefs = coef_table.loc[gene]

    if list(coef_table.columns) != list(fit['design.columns']):
        raise ValueError("Coefficient table does not match the fitted design columns")

    if times is None:
        b0, b1 = fit_basis.boundary_knots
        times = np.linspace(b0, b1, n_points)
    times = np.asarray(times, dtype=np.float64)
    B = fit_basis.predict(times)

    values = reconstruct_curve(coefs, group, B, reference=levels[0],
                               factor=fit.get('factor', 'donor'),
                               prefix=fit.get('prefix', 'fun'))
    return pd.DataFrame({'time': times, 'fitted': values})
