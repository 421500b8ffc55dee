"""
I/O functions for splinede.

Reads experiments (counts plus sample metadata) from AnnData/.h5ad files,
R .rds SummarizedExperiment objects, or count and sample tables.
"""

import os
import warnings

import numpy as np
import pandas as pd

from .classes import TimeCourseData
from .experiment import make_experiment


def _read_anndata(data, layer, verbose):
    """Read AnnData object or .h5ad file."""
    try:
        import anndata
    except ImportError:
        raise ImportError(
            "anndata package required for AnnData/.h5ad import. "
            "Install with: pip install anndata"
        )

    if isinstance(data, str):
        if verbose:
            print(f"Reading {data}...")
        adata = anndata.read_h5ad(data)
    else:
        adata = data

    # AnnData is obs x var (samples x genes); splinede needs genes x samples
    if layer is not None:
        if layer not in adata.layers:
            raise ValueError(f"Layer '{layer}' not found in AnnData. "
                             f"Available: {list(adata.layers.keys())}")
        X = adata.layers[layer]
    elif 'counts' in adata.layers:
        X = adata.layers['counts']
    else:
        X = adata.X

    if hasattr(X, 'toarray') and hasattr(X, 'nnz'):
        X = X.toarray()
    counts = np.asarray(X, dtype=np.float64).T

    return make_experiment(
        counts,
        samples=adata.obs.copy(),
        genes=adata.var.copy(),
        sample_names=[str(s) for s in adata.obs_names],
        gene_names=[str(g) for g in adata.var_names],
    )


def _build_rds_extraction_script(filepath, tmpdir):
    """Build R script that extracts assay, colData and rowData from an RDS file."""
    r_filepath = filepath.replace('\\', '/')
    r_tmpdir = tmpdir.replace('\\', '/')

    return f'''
suppressPackageStartupMessages(library(methods))
x <- readRDS("{r_filepath}")
tmpdir <- "{r_tmpdir}"
cls <- class(x)[1]

if (isClass("SummarizedExperiment") && is(x, "SummarizedExperiment")) {{
    suppressPackageStartupMessages(library(SummarizedExperiment))

    an <- assayNames(x)
    counts_mat <- if ("counts" %in% an) assay(x, "counts") else assay(x)
    write.csv(as.matrix(counts_mat), file.path(tmpdir, "counts.csv"))

    cd <- as.data.frame(colData(x))
    write.csv(cd, file.path(tmpdir, "samples.csv"))

    rd <- as.data.frame(rowData(x))
    if (ncol(rd) > 0) {{
        write.csv(rd, file.path(tmpdir, "genes.csv"))
    }}
}} else {{
    stop(paste0("Unsupported R object class: ", cls,
                ". Expected SummarizedExperiment, RangedSummarizedExperiment or DESeqDataSet."))
}}
'''


def _read_rds(filepath, verbose=True):
    """Read an R .rds file containing a SummarizedExperiment.

    Uses R (via subprocess) to extract components to temporary CSV files.
    Requires R with SummarizedExperiment installed and 'Rscript' on PATH.
    """
    import subprocess
    import shutil
    import tempfile

    if not os.path.isfile(filepath):
        raise FileNotFoundError(f"RDS file not found: {filepath}")

    rscript = shutil.which('Rscript')
    if rscript is None:
        raise RuntimeError(
            "Rscript not found on PATH. R must be installed to read .rds files. "
            "Install R from https://cran.r-project.org/"
        )

    tmpdir = tempfile.mkdtemp(prefix='splinede_rds_')

    try:
        script_path = os.path.join(tmpdir, 'extract.R')
        with open(script_path, 'w') as f:
            f.write(_build_rds_extraction_script(os.path.abspath(filepath), tmpdir))

        if verbose:
            print(f"Reading {os.path.basename(filepath)} via R...")

        result = subprocess.run(
            [rscript, '--no-save', '--no-restore', script_path],
            capture_output=True, text=True, timeout=300
        )
        if result.returncode != 0:
            err_msg = result.stderr.strip() or result.stdout.strip()
            raise RuntimeError(f"R failed to read {filepath}:\n{err_msg}")

        counts_path = os.path.join(tmpdir, 'counts.csv')
        if not os.path.exists(counts_path):
            raise RuntimeError("R extraction did not produce counts.csv")
        counts_df = pd.read_csv(counts_path, index_col=0)
        counts_df.index = counts_df.index.astype(str)

        samples_df = pd.read_csv(os.path.join(tmpdir, 'samples.csv'), index_col=0)
        genes_path = os.path.join(tmpdir, 'genes.csv')
        genes_df = pd.read_csv(genes_path, index_col=0) if os.path.exists(genes_path) else None

        y = make_experiment(counts_df, samples=samples_df, genes=genes_df)
        if verbose:
            print(f"  {y.nrow} genes x {y.ncol} samples")
        return y

    except subprocess.TimeoutExpired:
        raise RuntimeError(
            f"R subprocess timed out reading {filepath}. "
            "The file may be very large or R may be unresponsive."
        )
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def _read_table(path, sep):
    actual_sep = ',' if path.endswith('.csv') else sep
    return pd.read_csv(path, sep=actual_sep, index_col=0)


def _read_table_file(data, samples, sep, verbose):
    """Read a genes x samples count table plus an optional sample table."""
    if verbose:
        print(f"Reading {os.path.basename(data)}...")
    df = _read_table(data, sep)
    numeric_cols = df.select_dtypes(include=[np.number]).columns
    if len(numeric_cols) != len(df.columns):
        non_numeric = [c for c in df.columns if c not in numeric_cols]
        warnings.warn(f"Dropping non-numeric columns {non_numeric} from count table")
        df = df[numeric_cols]
    df.index = df.index.astype(str)
    return make_experiment(df, samples=samples)


def _auto_detect_source(data):
    """Detect data source from data argument type and file extension."""
    if isinstance(data, np.ndarray):
        return 'matrix'
    if isinstance(data, pd.DataFrame):
        return 'dataframe'
    if isinstance(data, str):
        if data.endswith('.h5ad'):
            return 'anndata'
        if data.lower().endswith('.rds'):
            return 'rds'
        if os.path.isfile(data):
            return 'table'
        raise ValueError(f"Cannot auto-detect source from path: {data}")
    raise ValueError(
        "Cannot auto-detect data source. Please specify source='anndata', "
        "'rds', 'table', 'dataframe' or 'matrix'."
    )


def _get_anndata_type():
    """Return anndata.AnnData class without hard import."""
    try:
        import anndata
        return anndata.AnnData
    except ImportError:
        return None


def read_experiment(data, *, source=None, samples=None, layer=None,
                    sep='\t', verbose=True):
    """Universal experiment import for splinede.

    Parameters
    ----------
    data : various
        - str: path to a .h5ad file, an .rds file holding a
          SummarizedExperiment (or DESeqDataSet), or a genes x samples
          count table (.csv/.tsv/.txt)
        - AnnData object (samples x genes)
        - TimeCourseData: returned as-is
        - DataFrame: genes x samples counts with gene ids as index
        - ndarray: genes x samples counts
    source : str or None
        One of 'anndata', 'rds', 'table', 'dataframe', 'matrix'.
        Auto-detected if None.
    samples : DataFrame or str, optional
        Sample table (or path to one) for table, DataFrame and ndarray
        input. Ignored for AnnData and RDS, which carry their own.
    layer : str, optional
        For AnnData: layer to use instead of ``counts``/``.X``.
    sep : str
        Field separator for non-CSV tables.
    verbose : bool
        Print progress messages.

    Returns
    -------
    TimeCourseData
    """
    if isinstance(data, TimeCourseData):
        return data

    if isinstance(samples, str):
        samples = _read_table(samples, sep)

    _anndata_cls = _get_anndata_type()
    if _anndata_cls is not None and isinstance(data, _anndata_cls):
        source = 'anndata'

    if source is None:
        source = _auto_detect_source(data)

    if source == 'anndata':
        return _read_anndata(data, layer=layer, verbose=verbose)
    if source == 'rds':
        return _read_rds(data, verbose=verbose)
    if source == 'table':
        return _read_table_file(data, samples=samples, sep=sep, verbose=verbose)
    if source == 'dataframe':
        return make_experiment(data, samples=samples)
    if source == 'matrix':
        return make_experiment(np.asarray(data, dtype=np.float64), samples=samples)

    raise ValueError(f"Unknown source: {source!r}")
