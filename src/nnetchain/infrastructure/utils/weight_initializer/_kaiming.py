"""
Kaiming (He) weight initializer.

``kaiming`` samples a zero-mean normal with ``std = sqrt(2 / fan_in)``,
suited to rectifier-family activations.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ....domain.utils._weight_initialization import _calculate_fan_in


@WeightInitializer.register_initializer("kaiming")
def kaiming(arr: np.ndarray) -> np.ndarray:
    """
    Apply Kaiming (He) normal initialization in place.

    Parameters
    ----------
    arr:
        The array to initialize.

    Returns
    -------
    np.ndarray
        The initialized array (same object).
    """
    fan_in = max(1, _calculate_fan_in(tuple(arr.shape)))
    arr[...] = np.random.randn(*arr.shape) * math.sqrt(2.0 / float(fan_in))
    return arr
