"""
Core data classes for splinede.

Dict-like containers (TimeCourseData, SplineFit) with attribute access,
gene/sample subsetting, and display.
"""

import numpy as np
import pandas as pd
from copy import deepcopy


class _SplineDEBase(dict):
    """Base class providing dict-like access, copying, and display."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

    def __setattr__(self, name, value):
        self[name] = value

    def __delattr__(self, name):
        try:
            del self[name]
        except KeyError:
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

    @property
    def shape(self):
        if 'counts' in self:
            return self['counts'].shape
        if 'coefficients' in self:
            return self['coefficients'].shape
        return None

    def __repr__(self):
        cls = type(self).__name__
        components = list(self.keys())
        s = self.shape
        if s is not None:
            return f"{cls} with {s[0]} rows and {s[1]} columns\nComponents: {', '.join(components)}"
        return f"{cls}\nComponents: {', '.join(components)}"

    def _copy(self):
        """Deep copy of the object."""
        return deepcopy(self)

    def head(self, n=5):
        """Show first n rows."""
        if 'table' in self:
            return self['table'].head(n)
        if 'counts' in self:
            return self.to_dataframe().head(n)
        return None


def _resolve_index(idx, names):
    """Resolve index to integer array. Supports bool, int, str, slice."""
    if idx is None:
        return None
    if isinstance(idx, slice):
        return np.arange(len(names))[idx]
    if isinstance(idx, (pd.Series, pd.Index)):
        idx = idx.values
    idx = np.atleast_1d(idx)
    if idx.dtype == bool:
        if len(idx) != len(names):
            raise IndexError(f"Boolean index of length {len(idx)} does not match {len(names)} entries")
        return np.where(idx)[0]
    if idx.dtype.kind in ('U', 'S', 'O'):
        lookup = {name: k for k, name in enumerate(names)}
        result = []
        for name in idx:
            if name not in lookup:
                raise KeyError(f"Name '{name}' not found")
            result.append(lookup[name])
        return np.array(result, dtype=int)
    return idx.astype(int)


class TimeCourseData(_SplineDEBase):
    """Time-course count data with sample metadata.

    Attributes
    ----------
    counts : ndarray
        Matrix of counts (genes x samples).
    samples : DataFrame
        Sample information indexed by sample name. After
        ``annotate_samples`` it carries ``donor`` and ``time`` columns.
    genes : DataFrame
        Gene annotation indexed by gene id.
    size.factors : ndarray or None
        Median-of-ratios size factors, one per sample.
    """

    _J = {'size.factors'}

    def __getitem__(self, key):
        if isinstance(key, str):
            return super().__getitem__(key)
        if not (isinstance(key, tuple) and len(key) == 2):
            raise IndexError("Two subscripts required")
        i, j = key

        i_idx = _resolve_index(i, self.gene_names)
        j_idx = _resolve_index(j, self.sample_names)

        out = self._copy()
        counts = out['counts']
        if i_idx is not None:
            counts = counts[i_idx, :]
            out['genes'] = out['genes'].iloc[i_idx].copy()
        if j_idx is not None:
            counts = counts[:, j_idx]
            out['samples'] = out['samples'].iloc[j_idx].copy()
            for k in self._J:
                if out.get(k) is not None:
                    out[k] = np.asarray(out[k])[j_idx]
        out['counts'] = counts

        # Drop empty donor levels after column subsetting
        if j_idx is not None and 'donor' in out['samples'].columns:
            donor = out['samples']['donor']
            if hasattr(donor, 'cat'):
                out['samples']['donor'] = donor.cat.remove_unused_categories()

        return out

    @property
    def gene_names(self):
        return list(self['genes'].index)

    @property
    def sample_names(self):
        return list(self['samples'].index)

    @property
    def nrow(self):
        return self['counts'].shape[0]

    @property
    def ncol(self):
        return self['counts'].shape[1]

    def __len__(self):
        return self.nrow

    def to_dataframe(self):
        """Convert counts to DataFrame."""
        return pd.DataFrame(self['counts'], index=self['genes'].index,
                            columns=self['samples'].index)


class SplineFit(_SplineDEBase):
    """Per-gene spline GLM fits and likelihood-ratio test results.

    Attributes
    ----------
    coefficients : DataFrame
        Genes x full-design terms, natural-log scale.
    table : DataFrame
        Columns baseMean, log2FoldChange, stat, pvalue, padj.
    dispersion : ndarray
        Negative binomial dispersion (alpha) per gene.
    converged : ndarray of bool
    basis : NaturalSplineBasis
        Basis used to build the time covariates.
    full.formula, reduced.formula : str
    design.columns : list of str
        Column names of the full design matrix.
    group.levels : list of str
        Donor levels; the first is the reference.
    size.factors : ndarray
    df.test : int
    """

    @property
    def shape(self):
        if 'coefficients' in self:
            return self['coefficients'].shape
        return None

    def __getitem__(self, key):
        if isinstance(key, str):
            return super().__getitem__(key)
        genes = list(self['coefficients'].index)
        i_idx = _resolve_index(key, genes)
        out = self._copy()
        out['coefficients'] = out['coefficients'].iloc[i_idx]
        out['table'] = out['table'].iloc[i_idx]
        for k in ('dispersion', 'converged'):
            if out.get(k) is not None:
                out[k] = np.asarray(out[k])[i_idx]
        return out
