"""
Per-gene negative binomial GLM fitting for splinede.

The fit is reached only through :class:`FitBackend`: given counts,
per-sample covariates, and full/reduced formulas it returns a
coefficient table and a likelihood-ratio statistic per gene. The
default backend delegates the GLM to statsmodels.
"""

import warnings
from concurrent.futures import ProcessPoolExecutor
from functools import partial

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy.optimize import minimize_scalar
from scipy.stats import chi2
from statsmodels.tools.sm_exceptions import ConvergenceWarning, PerfectSeparationError

from .design import model_matrix, check_nested


class FitBackend:
    """Narrow interface to an external per-gene GLM library.

    Subclasses implement :meth:`fit`. The curve reconstruction and
    basis code only consume the returned ``coefficients`` table (genes x
    full-design term names) and the per-gene test statistics.
    """

    def fit(self, counts, covariates, full_formula, reduced_formula,
            size_factors, gene_names=None, ncore=1, verbose=False):
        """Fit full and reduced models for every gene.

        Returns
        -------
        dict with keys
            coefficients : DataFrame (genes x full-design terms, natural log)
            stat : ndarray, likelihood-ratio statistic
            pvalue : ndarray
            dispersion : ndarray
            converged : ndarray of bool
            df : int, degrees of freedom of the test
            design.columns : list of str
            reduced.columns : list of str
        """
        raise NotImplementedError


def _glm_nb(y, X, offset, alpha, maxiter, tol):
    model = sm.GLM(y, X, family=sm.families.NegativeBinomial(alpha=alpha),
                   offset=offset)
    return model.fit(maxiter=maxiter, tol=tol)


def _fit_gene(y, name, X_full, X_red, offset, alpha_bounds, maxiter, tol):
    """Fit one gene: profile-likelihood alpha, then full and reduced fits."""
    def negll(log_alpha):
        res = _glm_nb(y, X_full, offset, np.exp(log_alpha), maxiter, tol)
        return -res.llf if np.isfinite(res.llf) else np.inf

    try:
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', ConvergenceWarning)
            warnings.simplefilter('ignore', RuntimeWarning)
            opt = minimize_scalar(negll, bounds=np.log(alpha_bounds),
                                  method='bounded', options={'xatol': 1e-4})
        alpha = float(np.exp(opt.x))
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', ConvergenceWarning)
            full = _glm_nb(y, X_full, offset, alpha, maxiter, tol)
            red = _glm_nb(y, X_red, offset, alpha, maxiter, tol)
    except (ValueError, np.linalg.LinAlgError, PerfectSeparationError) as e:
        raise RuntimeError(f"Model fit failed for gene '{name}': {e}") from e

    if not (np.isfinite(full.llf) and np.isfinite(red.llf)):
        raise RuntimeError(f"Model fit failed for gene '{name}': non-finite likelihood")

    stat = max(2.0 * (full.llf - red.llf), 0.0)
    converged = bool(getattr(full, 'converged', True) and getattr(red, 'converged', True))
    return np.asarray(full.params, dtype=np.float64), stat, alpha, converged


class StatsmodelsNBBackend(FitBackend):
    """statsmodels GLM with a negative binomial family, one gene at a time.

    The dispersion ``alpha`` of each gene maximises the full-model
    log-likelihood over ``alpha_bounds``; the reduced model is refitted at
    the same ``alpha`` and the likelihood-ratio statistic is
    ``2 * (llf_full - llf_reduced)``.

    Parameters
    ----------
    alpha_bounds : tuple of float
        Search interval for the dispersion.
    maxiter : int
        Maximum IRLS iterations per fit.
    tol : float
        IRLS convergence tolerance.
    """

    def __init__(self, alpha_bounds=(1e-8, 1e2), maxiter=100, tol=1e-8):
        lo, hi = alpha_bounds
        if not 0 < lo < hi:
            raise ValueError("alpha_bounds must satisfy 0 < lower < upper")
        self.alpha_bounds = (float(lo), float(hi))
        self.maxiter = maxiter
        self.tol = tol

    def fit(self, counts, covariates, full_formula, reduced_formula,
            size_factors, gene_names=None, ncore=1, verbose=False):
        counts = np.asarray(counts, dtype=np.float64)
        ngenes, nlib = counts.shape
        if len(covariates) != nlib:
            raise ValueError("Number of covariate rows must equal number of samples")
        if gene_names is None:
            gene_names = [f"Gene{i+1}" for i in range(ngenes)]

        X_full = model_matrix(full_formula, covariates)
        X_red = model_matrix(reduced_formula, covariates)
        full_cols = list(X_full.design_info.column_names)
        red_cols = list(X_red.design_info.column_names)
        df_test = check_nested(full_cols, red_cols)
        X_full = np.asarray(X_full, dtype=np.float64)
        X_red = np.asarray(X_red, dtype=np.float64)
        if np.linalg.matrix_rank(X_full) < X_full.shape[1]:
            raise ValueError(
                f"Full design is not of full rank ({X_full.shape[1]} columns). "
                "Each donor needs more distinct timepoints than spline columns."
            )

        size_factors = np.asarray(size_factors, dtype=np.float64)
        if len(size_factors) != nlib or np.any(size_factors <= 0):
            raise ValueError("size_factors must be positive, one per sample")
        offset = np.log(size_factors)

        worker = partial(_fit_gene, X_full=X_full, X_red=X_red, offset=offset,
                         alpha_bounds=self.alpha_bounds, maxiter=self.maxiter,
                         tol=self.tol)

        if verbose:
            print(f"Fitting {ngenes} genes: {full_formula} vs {reduced_formula}")
        if ncore > 1:
            with ProcessPoolExecutor(max_workers=ncore) as executor:
                results = list(executor.map(worker, counts, gene_names,
                                            chunksize=max(1, ngenes // (4 * ncore))))
        else:
            results = []
            for g in range(ngenes):
                if verbose and ngenes > 100 and g % max(1, ngenes // 10) == 0:
                    print(f"  Gene {g + 1}/{ngenes}...")
                results.append(worker(counts[g], gene_names[g]))

        coefficients = np.zeros((ngenes, len(full_cols)))
        stat = np.zeros(ngenes)
        dispersion = np.zeros(ngenes)
        converged = np.zeros(ngenes, dtype=bool)
        for g, (beta, lr, alpha, conv) in enumerate(results):
            coefficients[g] = beta
            stat[g] = lr
            dispersion[g] = alpha
            converged[g] = conv

        if not converged.all():
            warnings.warn(f"{int((~converged).sum())} gene fit(s) did not converge",
                          stacklevel=2)

        return {
            'coefficients': pd.DataFrame(coefficients, index=gene_names, columns=full_cols),
            'stat': stat,
            'pvalue': chi2.sf(stat, df_test),
            'dispersion': dispersion,
            'converged': converged,
            'df': df_test,
            'design.columns': full_cols,
            'reduced.columns': red_cols,
        }
