"""
Fixed-scale random initializers.

These are the initializers network prototypes use by default:

- ``gaussian``: ``N(mean, stddev^2)``, weights default to ``stddev = 0.1``.
- ``uniform``: ``mean + (U(0, 1) - 0.5) * spread``, which is how biases are
  drawn around a mean with a given total width.
"""

import numpy as np

from ._base import WeightInitializer


@WeightInitializer.register_initializer("gaussian")
def gaussian(arr: np.ndarray, stddev: float = 0.1, mean: float = 0.0) -> np.ndarray:
    """
    Fill `arr` in place with samples from a normal distribution.

    Parameters
    ----------
    arr:
        The array to initialize.
    stddev:
        Standard deviation of the distribution.
    mean:
        Mean of the distribution.
    """
    if stddev < 0:
        raise ValueError(f"stddev must be non-negative, got {stddev}")
    arr[...] = mean + np.random.randn(*arr.shape) * stddev
    return arr


@WeightInitializer.register_initializer("uniform")
def uniform(arr: np.ndarray, spread: float = 0.0, mean: float = 0.0) -> np.ndarray:
    """
    Fill `arr` in place with samples spread uniformly around `mean`.

    Values lie in ``[mean - spread / 2, mean + spread / 2)``.
    """
    if spread < 0:
        raise ValueError(f"spread must be non-negative, got {spread}")
    arr[...] = mean + (np.random.uniform(0.0, 1.0, size=arr.shape) - 0.5) * spread
    return arr
