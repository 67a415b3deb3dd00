"""Unit-weight least-squares fits over a window of samples."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np


class Pol0Fit(NamedTuple):
    mean: float
    chi2: float


class Pol1Fit(NamedTuple):
    intercept: float
    slope: float
    chi2: float


def _window(values, imin: int, imax: int, minimum: int) -> np.ndarray:
    samples = np.asarray(values, dtype=np.float32)
    if samples.ndim != 1:
        raise ValueError("values must be one-dimensional")
    if imin < 0 or imax > samples.size:
        raise ValueError(f"window [{imin}, {imax}) outside 0..{samples.size}")
    if imax - imin < minimum:
        raise ValueError(f"window [{imin}, {imax}) needs at least {minimum} samples")
    return samples[imin:imax]


def fit_pol0(values, imin: int, imax: int) -> Pol0Fit:
    """Fit a constant to values[imin:imax]; ``imax`` is the first unused index.

    Returns the mean and the chi2 per degree of freedom.
    """
    window = _window(values, imin, imax, 1)
    n = float(window.size)
    sx = float(np.sum(window, dtype=np.float64))
    sx2 = float(np.sum((window * window).astype(np.float64)))
    mean = sx / n
    sig2 = sx2 / n - mean * mean
    return Pol0Fit(mean, sig2 * n / (n - 1 + 1.0e-12))


def fit_pol1(values, imin: int, imax: int) -> Pol1Fit:
    """Fit a straight line over sample centres i + 0.5 for i in [imin, imax)."""
    window = _window(values, imin, imax, 2)
    x = np.arange(imin, imax, dtype=np.float64) + 0.5
    y = window.astype(np.float64)
    n = float(window.size)
    xm = x.sum() / n
    ym = y.sum() / n
    sigxx = (x * x).sum() / n - xm * xm
    sigxy = (x * y).sum() / n - xm * ym
    sigyy = (y * y).sum() / n - ym * ym
    slope = sigxy / sigxx
    intercept = ym - slope * xm
    chi2 = (sigyy - sigxy * sigxy / sigxx) * n / (n - 2 + 1.0e-12)
    return Pol1Fit(float(intercept), float(slope), float(chi2))