"""
Gene filtering for splinede.
"""

import numpy as np

from .experiment import get_counts


def filter_by_count(y, min_count=10, min_samples=5):
    """Flag genes with enough read support.

    A gene is kept iff at least ``min_samples`` samples have a count of
    at least ``min_count``.

    Parameters
    ----------
    y : array-like or TimeCourseData
        Count matrix (genes x samples) or TimeCourseData.
    min_count : float
        Minimum count a sample must reach.
    min_samples : int
        Minimum number of samples reaching ``min_count``.

    Returns
    -------
    ndarray of bool, True for genes to keep.
    """
    counts = get_counts(y)
    if counts.ndim == 1:
        counts = counts.reshape(1, -1)
    if min_samples < 1:
        raise ValueError("min_samples must be at least 1")
    return np.sum(counts >= min_count, axis=1) >= min_samples


def filter_experiment(y, min_count=10, min_samples=5, verbose=True):
    """Drop genes failing :func:`filter_by_count`.

    Raises ``ValueError`` if no gene passes, since no model can be
    fitted on an empty gene set.

    Returns
    -------
    TimeCourseData
    """
    keep = filter_by_count(y, min_count=min_count, min_samples=min_samples)
    nkeep = int(np.sum(keep))
    if nkeep == 0:
        raise ValueError(
            f"No gene passed the filtering (count >= {min_count} in at least "
            f"{min_samples} of {y['counts'].shape[1]} samples)."
        )
    if verbose:
        print(f"Keeping {nkeep} of {len(keep)} genes "
              f"(count >= {min_count} in >= {min_samples} samples).")
    return y[keep, None]
