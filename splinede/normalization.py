"""
Normalization for splinede.

Median-of-ratios (RLE) size factors and normalized counts.
"""

import numpy as np
import warnings

from .experiment import get_counts


def _calc_factor_rle(data):
    """Scale factors as in Anders et al (2010)."""
    with np.errstate(divide='ignore'):
        log_gm = np.mean(np.log(data), axis=1)
    pos = np.isfinite(log_gm)
    if not np.any(pos):
        raise ValueError(
            "Every gene contains at least one zero; median-of-ratios size "
            "factors cannot be computed."
        )
    result = np.zeros(data.shape[1])
    for j in range(data.shape[1]):
        ratio = np.log(data[pos, j]) - log_gm[pos]
        result[j] = np.exp(np.median(ratio))
    return result


def estimate_size_factors(y, verbose=False):
    """Median-of-ratios size factors.

    Parameters
    ----------
    y : array-like or TimeCourseData
        Count matrix (genes x samples) or TimeCourseData.

    Returns
    -------
    TimeCourseData with ``size.factors`` set (if input is TimeCourseData)
    or ndarray of size factors.
    """
    counts = get_counts(y)
    sf = _calc_factor_rle(counts)
    if np.any(sf <= 0):
        warnings.warn("Some size factors are zero; those samples will be uninformative")
    if verbose:
        print(f"Size factors: {np.round(sf, 3).tolist()}")

    if isinstance(y, dict) and 'counts' in y:
        y['size.factors'] = sf
        return y
    return sf


def normalized_counts(y, size_factors=None):
    """Counts divided by per-sample size factors."""
    counts = get_counts(y)
    if size_factors is None:
        if isinstance(y, dict) and y.get('size.factors') is not None:
            size_factors = y['size.factors']
        else:
            size_factors = _calc_factor_rle(counts)
    size_factors = np.asarray(size_factors, dtype=np.float64)
    if len(size_factors) != counts.shape[1]:
        raise ValueError("Length of 'size_factors' must equal number of samples")
    return counts / size_factors[None, :]


def base_mean(y, size_factors=None):
    """Mean of normalized counts per gene (DESeq2's baseMean)."""
    return np.mean(normalized_counts(y, size_factors=size_factors), axis=1)
