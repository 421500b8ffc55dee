"""
Likelihood-ratio test of donor-specific against shared spline time trends.
"""

import numpy as np
import pandas as pd

from .classes import SplineFit
from .design import build_covariates, spline_formulas
from .experiment import get_counts
from .glm_fit import StatsmodelsNBBackend
from .normalization import estimate_size_factors, base_mean
from .results import adjust_pvalues


def spline_lrt(y, basis, full=None, reduced=None, factor='donor', time='time',
               prefix='fun', backend=None, adjust_method='BH', ncore=1,
               verbose=True):
    """Fit spline GLMs per gene and test full against reduced model.

    Parameters
    ----------
    y : TimeCourseData
        Annotated (``donor``/``time`` columns) and filtered data.
    basis : NaturalSplineBasis
        Basis built from ``y['samples'][time]``.
    full, reduced : str, optional
        Model formulas. Default to :func:`spline_formulas`, i.e.
        ``~ donor + donor:fun1 + donor:fun2 + donor:fun3`` against
        ``~ donor + fun1 + fun2 + fun3``.
    factor, time : str
        Sample columns holding the grouping factor and the timepoints.
    prefix : str
        Prefix of the spline covariate columns.
    backend : FitBackend, optional
        Defaults to :class:`StatsmodelsNBBackend`.
    adjust_method : str
        Multiple testing adjustment for ``padj``.
    ncore : int
        Number of worker processes for the per-gene fits.
    verbose : bool

    Returns
    -------
    SplineFit
    """
    counts = get_counts(y)
    if counts.shape[0] == 0:
        raise ValueError("No genes to test")

    if y.get('size.factors') is None:
        y = estimate_size_factors(y._copy())
    size_factors = np.asarray(y['size.factors'], dtype=np.float64)

    covariates = build_covariates(y, basis, factor=factor, time=time, prefix=prefix)
    default_full, default_reduced = spline_formulas(basis.n_basis, factor=factor, prefix=prefix)
    if full is None:
        full = default_full
    if reduced is None:
        reduced = default_reduced

    if backend is None:
        backend = StatsmodelsNBBackend()
    gene_names = [str(g) for g in y['genes'].index]
    res = backend.fit(counts, covariates, full, reduced, size_factors,
                      gene_names=gene_names, ncore=ncore, verbose=verbose)

    coefficients = res['coefficients']
    table = pd.DataFrame({
        'baseMean': base_mean(counts, size_factors=size_factors),
        'log2FoldChange': coefficients.iloc[:, -1].values / np.log(2),
        'stat': res['stat'],
        'pvalue': res['pvalue'],
    }, index=gene_names)
    table['padj'] = adjust_pvalues(table['pvalue'].values, method=adjust_method)

    fit = SplineFit()
    fit['coefficients'] = coefficients
    fit['table'] = table
    fit['dispersion'] = res['dispersion']
    fit['converged'] = res['converged']
    fit['basis'] = basis
    fit['full.formula'] = full
    fit['reduced.formula'] = reduced
    fit['design.columns'] = list(res['design.columns'])
    fit['group.levels'] = list(covariates[factor].cat.categories)
    fit['factor'] = factor
    fit['prefix'] = prefix
    fit['size.factors'] = size_factors
    fit['df.test'] = res['df']
    fit['adjust.method'] = adjust_method

    if verbose:
        nsig = int(np.sum(table['padj'].values < 0.05))
        print(f"LR test on {res['df']} df: {nsig} genes with padj < 0.05")
    return fit
