"""
Visualization functions for splinede.
"""

import numpy as np

from .curves import fitted_curve
from .normalization import normalized_counts


def plot_spline_fit(y, fit, gene, groups=None, n_points=100, prior_count=0.5,
                    factor=None, time='time', xlab='Time (hours)',
                    ylab='log2 normalized count', main=None, ax=None,
                    colors=None, **kwargs):
    """Observed expression and fitted spline curve per donor.

    Parameters
    ----------
    y : TimeCourseData
        The data the fit was computed on.
    fit : SplineFit
        Result of :func:`spline_lrt`.
    gene : str
        Gene id to plot, e.g. the top row of :func:`top_tags`.
    groups : list of str, optional
        Donors to draw; all donors of the fit by default.
    n_points : int
        Points on the dense curve grid.
    prior_count : float
        Added to normalized counts before the log2 transform.
    xlab, ylab, main : str
        Plot labels. ``main`` defaults to the gene id.
    ax : matplotlib Axes, optional
        Draw into an existing axes.
    colors : list, optional
        One colour per donor.
    **kwargs
        Passed to ``ax.scatter``.

    Returns
    -------
    tuple (fig, ax)
    """
    import matplotlib.pyplot as plt

    if factor is None:
        factor = fit.get('factor', 'donor')
    gene_names = [str(g) for g in y['genes'].index]
    if gene not in gene_names:
        raise ValueError(f"Gene '{gene}' not found in data")
    row = gene_names.index(gene)

    sf = fit.get('size.factors')
    norm = normalized_counts(y, size_factors=sf)[row]
    logexpr = np.log2(norm + prior_count)
    sample_groups = y['samples'][factor].astype(str).values
    sample_times = y['samples'][time].values.astype(np.float64)

    levels = [str(g) for g in fit['group.levels']]
    if groups is None:
        groups = levels
    if colors is None:
        cmap = plt.get_cmap('tab10')
        colors = [cmap(i % 10) for i in range(len(groups))]

    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))
    else:
        fig = ax.figure

    for i, g in enumerate(groups):
        g = str(g)
        c = colors[i % len(colors)]
        mask = sample_groups == g
        ax.scatter(sample_times[mask], logexpr[mask], s=20, alpha=0.8, color=c, label=g, **kwargs)
        curve = fitted_curve(fit, gene, g, n_points=n_points)
        ax.plot(curve['time'].values, curve['fitted'].values / np.log(2),
                color=c, linewidth=1.5)

    ax.set_xlabel(xlab)
    ax.set_ylabel(ylab)
    ax.set_title(main if main is not None else gene)
    ax.legend(title=factor)

    plt.tight_layout()
    return fig, ax
