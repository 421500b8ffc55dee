"""
End-to-end spline time-course analysis.
"""

from .filtering import filter_experiment
from .glm_test import spline_lrt
from .io import read_experiment
from .metadata import annotate_samples
from .normalization import estimate_size_factors
from .results import top_tags
from .splines import NaturalSplineBasis


def run_spline_analysis(data, knots=None, df=3, title_col='title',
                        unmatched='drop', min_count=10, min_samples=5,
                        p_value=0.01, n=None, backend=None, ncore=1,
                        verbose=True, **read_kwargs):
    """Load, annotate, filter, fit and rank in one call.

    Parameters
    ----------
    data : str, AnnData, DataFrame, or TimeCourseData
        Anything :func:`read_experiment` accepts.
    knots : array-like, optional
        Interior knots (hours) of the natural spline; placed at quantiles
        of the timepoints from ``df`` when omitted.
    df : int
        Spline degrees of freedom when ``knots`` is omitted.
    title_col : str
        Sample column with titles like ``1741_006_24hr``.
    unmatched : str
        Handling of unparseable titles, see :func:`annotate_samples`.
    min_count, min_samples : int
        Count filter thresholds.
    p_value : float
        Adjusted p-value cutoff of the ranked table.
    n : int, optional
        Maximum number of ranked genes.
    backend : FitBackend, optional
    ncore : int
        Worker processes for the per-gene fits.
    verbose : bool
    **read_kwargs
        Passed to :func:`read_experiment`.

    Returns
    -------
    tuple (y, fit, top)
        Filtered data, :class:`SplineFit`, and the :func:`top_tags` result.
    """
    y = read_experiment(data, verbose=verbose, **read_kwargs)
    y = annotate_samples(y, title_col=title_col, unmatched=unmatched, verbose=verbose)
    y = filter_experiment(y, min_count=min_count, min_samples=min_samples, verbose=verbose)
    y = estimate_size_factors(y)

    basis = NaturalSplineBasis(y['samples']['time'].values, knots=knots, df=df)
    if verbose:
        print(f"Spline basis: {basis!r}")

    fit = spline_lrt(y, basis, backend=backend, ncore=ncore, verbose=verbose)
    top = top_tags(fit, n=n, p_value=p_value)
    return y, fit, top
