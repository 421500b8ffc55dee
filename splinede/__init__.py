"""
splinede: spline-based differential expression for RNA-seq time courses.

Natural-spline negative binomial GLMs per gene, a likelihood-ratio test of
donor-specific against shared time trends, and fitted-curve plots.
"""

__version__ = "0.1.0"

# --- Classes ---
from .classes import TimeCourseData, SplineFit

# --- Construction & accessors ---
from .experiment import make_experiment, get_counts, get_covariates

# --- I/O ---
from .io import read_experiment

# --- Sample metadata ---
from .metadata import parse_sample_title, parse_sample_titles, annotate_samples

# --- Filtering ---
from .filtering import filter_by_count, filter_experiment

# --- Normalization ---
from .normalization import estimate_size_factors, normalized_counts, base_mean

# --- Spline basis & design ---
from .splines import NaturalSplineBasis, ns
from .design import spline_formulas, build_covariates, model_matrix

# --- GLM fitting & testing ---
from .glm_fit import FitBackend, StatsmodelsNBBackend
from .glm_test import spline_lrt

# --- Results ---
from .results import top_tags, adjust_pvalues

# --- Curves & visualization ---
from .curves import reconstruct_curve, fitted_curve
from .visualization import plot_spline_fit

# --- Pipeline ---
from .pipeline import run_spline_analysis
