"""
Moment statistics used by diagnostic reports.
"""

from __future__ import annotations

import numpy as np


def moment_statistics(arr) -> str:
    """
    Summarize an array by its first four moments and its range.

    Parameters
    ----------
    arr : array-like
        Any numeric array; it is flattened.

    Returns
    -------
    str
        ``"( min m, max M, mean u, variance v, skewness s, kurtosis k )"``,
        or ``"( empty )"`` for zero-size input.

    Notes
    -----
    Moments are accumulated in float64. Kurtosis is the excess kurtosis, so a
    Gaussian scores 0. Skewness and kurtosis of a constant array are reported
    as 0.
    """
    a = np.asarray(arr, dtype=np.float64).reshape(-1)
    if a.size == 0:
        return "( empty )"

    mean = float(a.mean())
    centered = a - mean
    variance = float(np.mean(centered**2))
    if variance > 0.0:
        std = np.sqrt(variance)
        skewness = float(np.mean(centered**3) / std**3)
        kurtosis = float(np.mean(centered**4) / variance**2 - 3.0)
    else:
        skewness = kurtosis = 0.0

    return (
        f"( min {float(a.min()):.6g}, max {float(a.max()):.6g}, mean {mean:.6g}, "
        f"variance {variance:.6g}, skewness {skewness:.6g}, kurtosis {kurtosis:.6g} )"
    )
