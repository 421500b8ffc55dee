"""
Sample metadata parsing for splinede.

Derives donor identifiers and timepoints (hours) from free-text sample
titles such as ``1741_006_24hr``.
"""

import re
import warnings

import numpy as np
import pandas as pd


_DONOR_RE = re.compile(r'^(\d+_\d+)_')
_TIME_RE = re.compile(r'_(\d+)hr$')


def parse_sample_title(title):
    """Extract donor id and timepoint from a sample title.

    Parameters
    ----------
    title : str
        Title of the form ``<digits>_<digits>_..._<digits>hr``.

    Returns
    -------
    tuple (donor, time)
        ``donor`` is the leading ``digits_digits`` substring or None,
        ``time`` the trailing hour value as float or NaN. A title that
        does not match gives missing values, not an error.

    Examples
    --------
    >>> parse_sample_title("1741_006_24hr")
    ('1741_006', 24.0)
    """
    if title is None or (isinstance(title, float) and np.isnan(title)):
        return None, np.nan
    title = str(title).strip()
    m = _DONOR_RE.match(title)
    donor = m.group(1) if m else None
    m = _TIME_RE.search(title)
    time = float(m.group(1)) if m else np.nan
    return donor, time


def parse_sample_titles(titles):
    """Vectorised :func:`parse_sample_title`.

    Returns a DataFrame with columns ``donor`` and ``time`` aligned to
    ``titles`` (index kept when a Series is given).
    """
    index = titles.index if isinstance(titles, pd.Series) else None
    parsed = [parse_sample_title(t) for t in titles]
    return pd.DataFrame({
        'donor': [p[0] for p in parsed],
        'time': np.array([p[1] for p in parsed], dtype=np.float64),
    }, index=index)


def annotate_samples(y, title_col='title', unmatched='drop', verbose=True):
    """Add ``donor`` and ``time`` columns to the sample table.

    Parameters
    ----------
    y : TimeCourseData
        Data with a title column in ``y['samples']``.
    title_col : str
        Sample column holding the free-text titles.
    unmatched : str
        What to do with samples whose title does not parse:
        ``'drop'`` removes them with a warning, ``'raise'`` raises
        ``ValueError``, ``'keep'`` keeps them with missing covariates.
        A boolean ``parsed`` column flags each sample in all cases.
    verbose : bool
        Print a summary of donors and timepoints.

    Returns
    -------
    TimeCourseData
        New object; the input is not modified.
    """
    if unmatched not in ('drop', 'raise', 'keep'):
        raise ValueError("unmatched must be one of 'drop', 'raise', 'keep'")
    samples = y['samples']
    if title_col not in samples.columns:
        raise ValueError(f"Column '{title_col}' not found in sample table. "
                         f"Available: {list(samples.columns)}")

    parsed = parse_sample_titles(samples[title_col])
    ok = parsed['donor'].notna() & parsed['time'].notna()

    bad_names = list(samples.index[~ok.values])
    if bad_names and unmatched == 'raise':
        raise ValueError(f"Could not parse donor/time from titles of samples {bad_names}")

    out = y._copy()
    out['samples'] = samples.copy()
    out['samples']['donor'] = parsed['donor'].values
    out['samples']['time'] = parsed['time'].values
    out['samples']['parsed'] = ok.values

    if bad_names and unmatched == 'drop':
        warnings.warn(
            f"Dropping {len(bad_names)} sample(s) with unparseable titles: {bad_names}"
        )
        out = out[None, ok.values]
    elif bad_names:
        warnings.warn(
            f"{len(bad_names)} sample(s) have unparseable titles and missing covariates: {bad_names}"
        )

    donor = out['samples']['donor']
    levels = sorted(donor.dropna().unique())
    out['samples']['donor'] = pd.Categorical(donor, categories=levels)

    if verbose:
        times = np.unique(out['samples']['time'].dropna().values)
        print(f"{len(levels)} donors, {len(times)} timepoints "
              f"({', '.join(f'{t:g}' for t in times)} hr)")
    return out
