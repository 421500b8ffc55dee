"""Shared fixtures for splinede tests."""

import numpy as np
import pandas as pd
import pytest
from scipy.stats import chi2

import splinede as sd
from splinede import FitBackend, model_matrix


DONORS = ['1741_006', '1741_008']
TIMES = [0, 2, 4, 8, 12, 24]
KNOTS = [4, 12]


@pytest.fixture
def rng():
    """Seeded random number generator for reproducibility."""
    return np.random.RandomState(42)


@pytest.fixture
def sample_table():
    """12 samples: 2 donors x 6 timepoints, GEO-style titles."""
    titles = [f"{d}_{t}hr" for d in DONORS for t in TIMES]
    return pd.DataFrame({'title': titles},
                        index=[f"GSM{1000 + i}" for i in range(len(titles))])


@pytest.fixture
def timecourse_counts(rng):
    """22 genes x 12 samples of Poisson counts.

    Genes 0-9 flat, 10-14 share a time trend, 15-19 have opposite trends
    in the two donors, 20-21 are too lowly expressed to pass filtering.
    """
    t = np.tile(np.array(TIMES, dtype=float), len(DONORS)) / 24.0
    donor_b = np.repeat([0.0, 1.0], len(TIMES))
    log_mu = np.full((22, t.size), np.log(100.0))
    log_mu[10:15] += np.sin(np.pi * t)[None, :]
    log_mu[15:20] += np.where(donor_b == 0, 1.5 * t, -1.5 * t)[None, :]
    log_mu[20:22] = np.log(1.0)
    return rng.poisson(np.exp(log_mu)).astype(np.float64)


@pytest.fixture
def timecourse(timecourse_counts, sample_table):
    """TimeCourseData with gene ids and sample titles."""
    genes = [f"ENSG{i:05d}" for i in range(timecourse_counts.shape[0])]
    counts = pd.DataFrame(timecourse_counts, index=genes, columns=sample_table.index)
    return sd.make_experiment(counts, samples=sample_table)


@pytest.fixture
def annotated(timecourse):
    """Annotated, filtered data with size factors."""
    y = sd.annotate_samples(timecourse, verbose=False)
    y = sd.filter_experiment(y, verbose=False)
    return sd.estimate_size_factors(y)


@pytest.fixture
def basis(annotated):
    return sd.ns(annotated['samples']['time'].values, knots=KNOTS)


class ConstantBackend(FitBackend):
    """Fit backend returning fixed coefficients, for tests that need a fit
    without running statsmodels."""

    def fit(self, counts, covariates, full_formula, reduced_formula,
            size_factors, gene_names=None, ncore=1, verbose=False):
        cols = list(model_matrix(full_formula, covariates).design_info.column_names)
        red = list(model_matrix(reduced_formula, covariates).design_info.column_names)
        ngenes = counts.shape[0]
        coefs = np.tile(np.arange(len(cols), dtype=float), (ngenes, 1))
        stat = np.linspace(20.0, 0.5, ngenes)
        return {
            'coefficients': pd.DataFrame(coefs, index=gene_names, columns=cols),
            'stat': stat,
            'pvalue': chi2.sf(stat, len(cols) - len(red)),
            'dispersion': np.full(ngenes, 0.1),
            'converged': np.ones(ngenes, dtype=bool),
            'df': len(cols) - len(red),
            'design.columns': cols,
            'reduced.columns': red,
        }


@pytest.fixture
def fit(annotated, basis):
    """SplineFit produced with ConstantBackend."""
    backend = ConstantBackend()
    return sd.spline_lrt(annotated, basis, backend=backend, verbose=False)
