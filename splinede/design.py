"""
Design matrices and model formulas for splinede.

Full and reduced spline formulas, covariate tables, and patsy term
naming shared by the model fit and the curve reconstruction.
"""

import numpy as np
import pandas as pd
import patsy

from .experiment import get_covariates


def spline_formulas(n_basis, factor='donor', prefix='fun'):
    """Full and reduced formulas for the spline likelihood-ratio test.

    The full model gives every level of ``factor`` its own time trend,
    the reduced model a shared one.

    Returns
    -------
    tuple (full, reduced)

    Examples
    --------
    >>> spline_formulas(3)
    ('~ donor + donor:fun1 + donor:fun2 + donor:fun3', '~ donor + fun1 + fun2 + fun3')
    """
    funs = [f"{prefix}{k + 1}" for k in range(n_basis)]
    full = "~ " + " + ".join([factor] + [f"{factor}:{f}" for f in funs])
    reduced = "~ " + " + ".join([factor] + funs)
    return full, reduced


def build_covariates(y, basis, factor='donor', time='time', prefix='fun'):
    """Per-sample covariate table: the factor plus spline columns.

    The factor is categorical with sorted levels, so the first level is
    the reference of treatment coding. ``basis`` must have been built
    from the same timepoints, otherwise ``ValueError`` is raised.
    """
    cov = get_covariates(y, columns=(factor, time))
    times = cov[time].to_numpy(dtype=np.float64)
    if basis.basis.shape[0] != len(times) or not np.allclose(basis.predict(times), basis.basis):
        raise ValueError(
            "Spline basis was not built from the sample timepoints; "
            "rebuild it from y['samples']['time']."
        )
    groups = cov[factor]
    if hasattr(groups, 'cat'):
        levels = [str(g) for g in groups.cat.categories]
    else:
        levels = sorted(str(g) for g in groups.unique())
    out = pd.DataFrame(index=cov.index)
    out[factor] = pd.Categorical(groups.astype(str), categories=levels)
    funs = basis.to_frame(prefix=prefix, index=cov.index)
    return pd.concat([out, funs], axis=1)


def model_matrix(formula, data):
    """Create a design matrix from an R-style formula.

    Uses patsy to parse the formula and build the design matrix,
    matching R's ``model.matrix(formula, data)`` behaviour.

    Returns
    -------
    patsy.DesignMatrix
        Samples x coefficients; ``.design_info.column_names`` holds the
        term names.
    """
    if data is None:
        raise ValueError("data must be provided for formula-based design")
    return patsy.dmatrix(formula, data=data, return_type='matrix')


def intercept_term():
    return 'Intercept'


def group_offset_term(group, factor='donor'):
    """Treatment-coded main effect column for a non-reference level."""
    return f"{factor}[T.{group}]"


def group_interaction_terms(group, n_basis, factor='donor', prefix='fun'):
    """Per-level slope columns of ``factor:funK`` terms."""
    return [f"{factor}[{group}]:{prefix}{k + 1}" for k in range(n_basis)]


def check_nested(full_columns, reduced_columns):
    """Check that the reduced design has fewer columns than the full one."""
    df = len(full_columns) - len(reduced_columns)
    if df <= 0:
        raise ValueError(
            f"Reduced model ({len(reduced_columns)} terms) must have fewer "
            f"terms than the full model ({len(full_columns)} terms)"
        )
    return df
