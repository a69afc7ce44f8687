"""
Constant weight initializers (``zeros``, ``ones``).

Used for biases and for deterministic setups in tests.
"""

import numpy as np

from ._base import WeightInitializer


@WeightInitializer.register_initializer("zeros")
def zeros(arr: np.ndarray) -> np.ndarray:
    """Fill `arr` with zeros in place and return it."""
    arr[...] = 0.0
    return arr


@WeightInitializer.register_initializer("ones")
def ones(arr: np.ndarray) -> np.ndarray:
    """Fill `arr` with ones in place and return it."""
    arr[...] = 1.0
    return arr
