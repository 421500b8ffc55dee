"""
TimeCourseData construction, validation, and accessors.
"""

import numpy as np
import pandas as pd
import warnings
from .classes import TimeCourseData


def make_experiment(counts, samples=None, genes=None, sample_names=None,
                    gene_names=None, remove_zeros=False, verbose=True):
    """Construct a TimeCourseData object from components.

    Parameters
    ----------
    counts : array-like or DataFrame
        Matrix of counts (genes x samples). DataFrame row and column labels
        are used as gene ids and sample names.
    samples : DataFrame, optional
        Sample-level information, one row per column of ``counts``. When
        its index matches the count columns it is reordered to them,
        otherwise it is taken positionally.
    genes : DataFrame, optional
        Gene-level annotation, one row per row of ``counts``.
    sample_names, gene_names : list of str, optional
        Override the labels taken from ``counts``.
    remove_zeros : bool
        Whether to remove rows with all zero counts.
    verbose : bool
        Report how many all-zero rows were removed.

    Returns
    -------
    TimeCourseData
    """
    if isinstance(counts, pd.DataFrame):
        if gene_names is None:
            gene_names = [str(g) for g in counts.index]
        if sample_names is None:
            sample_names = [str(s) for s in counts.columns]
        counts = counts.values

    # Handle scipy sparse matrices
    if hasattr(counts, 'toarray') and hasattr(counts, 'nnz'):
        shape = counts.shape
        warnings.warn(
            f"Densifying sparse matrix ({shape[0]} x {shape[1]}). "
            f"splinede stores counts as dense arrays.",
            stacklevel=2,
        )
        counts = counts.toarray()
    counts = np.asarray(counts, dtype=np.float64)
    if counts.ndim == 1:
        counts = counts.reshape(-1, 1)

    # Validate counts
    if counts.size == 0:
        raise ValueError("'counts' must contain at least one value")
    if np.any(np.isnan(counts)):
        raise ValueError("NA counts not allowed")
    if np.min(counts) < 0:
        raise ValueError("Negative counts not allowed")
    if not np.isfinite(np.max(counts)):
        raise ValueError("Infinite counts not allowed")
    if np.any(counts != np.round(counts)):
        warnings.warn("Non-integer counts found; negative binomial fits expect integer counts")

    ngenes, nlib = counts.shape

    if sample_names is None:
        if samples is not None and isinstance(samples, pd.DataFrame) \
                and not isinstance(samples.index, pd.RangeIndex):
            sample_names = [str(s) for s in samples.index]
        else:
            sample_names = [f"Sample{i+1}" for i in range(nlib)]
    if gene_names is None:
        if genes is not None and isinstance(genes, pd.DataFrame) \
                and not isinstance(genes.index, pd.RangeIndex):
            gene_names = [str(g) for g in genes.index]
        else:
            gene_names = [f"Gene{i+1}" for i in range(ngenes)]

    if len(sample_names) != nlib:
        raise ValueError("Number of sample names must equal number of columns in 'counts'")
    if len(gene_names) != ngenes:
        raise ValueError("Number of gene names must equal number of rows in 'counts'")
    if len(set(gene_names)) != ngenes:
        raise ValueError("Gene ids must be unique")

    # Samples DataFrame
    if samples is None:
        sam = pd.DataFrame(index=sample_names)
    else:
        samples = pd.DataFrame(samples)
        if nlib != len(samples):
            raise ValueError("Number of rows in 'samples' must equal number of columns in 'counts'")
        idx = [str(s) for s in samples.index]
        if set(idx) == set(sample_names):
            samples.index = idx
            sam = samples.loc[sample_names].copy()
        else:
            sam = samples.copy()
            sam.index = sample_names
    sam.index.name = None

    # Gene annotation
    if genes is None:
        genes = pd.DataFrame(index=gene_names)
    else:
        genes = pd.DataFrame(genes).copy()
        if len(genes) != ngenes:
            raise ValueError("Counts and genes have different numbers of rows")
        genes.index = gene_names

    x = TimeCourseData()
    x['counts'] = counts
    x['samples'] = sam
    x['genes'] = genes

    # Remove all-zero rows
    if remove_zeros:
        all_zeros = np.sum(counts > 0, axis=1) == 0
        if np.any(all_zeros):
            x = x[~all_zeros, None]
            if verbose:
                print(f"Removing {np.sum(all_zeros)} rows with all zero counts")

    return x


def get_counts(y):
    """Extract count matrix from a TimeCourseData or array."""
    if isinstance(y, dict) and 'counts' in y:
        return np.asarray(y['counts'], dtype=np.float64)
    return np.asarray(y, dtype=np.float64)


def get_covariates(y, columns=('donor', 'time')):
    """Return the sample covariates required for spline fitting.

    Raises ``ValueError`` if a column is absent or holds missing values,
    so unparsed samples never reach the model fit silently.
    """
    samples = y['samples']
    missing = [c for c in columns if c not in samples.columns]
    if missing:
        raise ValueError(
            f"Sample table lacks column(s) {missing}. "
            "Run annotate_samples() first."
        )
    cov = samples[list(columns)].copy()
    bad = cov.isna().any(axis=1)
    if bad.any():
        raise ValueError(
            f"{int(bad.sum())} sample(s) have missing covariates: "
            f"{list(cov.index[bad])}"
        )
    return cov
