"""
Results processing for splinede.

Multiple-testing adjustment and ranking of likelihood-ratio test results.
"""

import numpy as np
import pandas as pd
from statsmodels.stats.multitest import multipletests


_METHOD_MAP = {
    'BH': 'fdr_bh', 'BY': 'fdr_by', 'fdr': 'fdr_bh',
    'holm': 'holm', 'hochberg': 'simes-hochberg',
    'hommel': 'hommel', 'bonferroni': 'bonferroni',
}


def adjust_pvalues(pvalues, method='BH'):
    """Adjust p-values for multiple testing.

    NaN p-values are left as NaN and do not count towards the number of
    tests.

    Parameters
    ----------
    pvalues : array-like
    method : str
        'BH' (default), 'BY', 'holm', 'hochberg', 'hommel',
        'bonferroni', or 'none'.

    Returns
    -------
    ndarray
    """
    raw = np.asarray(pvalues, dtype=np.float64)
    if method == 'none':
        return raw.copy()
    if method not in _METHOD_MAP:
        raise ValueError(f"method must be one of {list(_METHOD_MAP) + ['none']}")
    adj = np.full_like(raw, np.nan)
    valid = ~np.isnan(raw)
    if valid.any():
        _, adj[valid], _, _ = multipletests(raw[valid], method=_METHOD_MAP[method])
    return adj


def top_tags(obj, n=None, p_value=0.01, adjust_method='BH'):
    """Significant genes ranked by p-value.

    Keeps genes whose adjusted p-value is strictly below ``p_value`` and
    sorts them ascending by raw p-value.

    Parameters
    ----------
    obj : SplineFit, dict with 'table', or DataFrame
        Table with a ``pvalue`` column.
    n : int, optional
        Maximum number of genes to return; all significant genes if None.
    p_value : float
        Adjusted p-value cutoff.
    adjust_method : str
        Multiple testing adjustment method, see :func:`adjust_pvalues`.

    Returns
    -------
    dict (TopTags-like) with 'table', 'adjust.method', 'p.value'.
    """
    if isinstance(obj, pd.DataFrame):
        tab = obj.copy()
    elif isinstance(obj, dict) and obj.get('table') is not None:
        tab = obj['table'].copy()
    else:
        raise ValueError("Need a table of results; run spline_lrt first")
    if 'pvalue' not in tab.columns:
        raise ValueError("Results table has no 'pvalue' column")

    tab['padj'] = adjust_pvalues(tab['pvalue'].values, method=adjust_method)

    sig = (tab['padj'] < p_value).values
    tab = tab[sig]
    o = np.argsort(tab['pvalue'].values, kind='mergesort')
    tab = tab.iloc[o]
    if n is not None:
        tab = tab.iloc[:n]

    return {
        'table': tab,
        'adjust.method': adjust_method,
        'p.value': p_value,
    }
