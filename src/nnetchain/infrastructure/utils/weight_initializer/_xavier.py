"""
Xavier/Glorot weight initializers.

Implemented variants
--------------------
- ``xavier``:
    Normal initialization with ``std = sqrt(2 / (fan_in + fan_out))``.
- ``xavier_uniform``:
    ``U(-sqrt(6/(fan_in+fan_out)), +sqrt(6/(fan_in+fan_out)))``.
- ``xavier_tanh``:
    Xavier normal with tanh gain (``gain = 5/3``).

Fan-in and fan-out follow the `(output_dim, input_dim)` layout of component
weight matrices.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ....domain.utils._weight_initialization import _calculate_fan_in_and_fan_out


def _xavier_std(shape, gain: float = 1.0) -> float:
    fan_in, fan_out = _calculate_fan_in_and_fan_out(tuple(shape))
    fan_in = max(1, int(fan_in))
    fan_out = max(1, int(fan_out))
    return gain * math.sqrt(2.0 / float(fan_in + fan_out))


@WeightInitializer.register_initializer("xavier")
def xavier(arr: np.ndarray) -> np.ndarray:
    """
    Apply Xavier (Glorot) normal initialization in place.

    Parameters
    ----------
    arr:
        The array to initialize.

    Returns
    -------
    np.ndarray
        The initialized array (same object).
    """
    arr[...] = np.random.randn(*arr.shape) * _xavier_std(arr.shape)
    return arr


@WeightInitializer.register_initializer("xavier_uniform")
def xavier_uniform(arr: np.ndarray) -> np.ndarray:
    """
    Apply Xavier (Glorot) uniform initialization in place.

    Samples from ``U(-bound, +bound)`` with
    ``bound = sqrt(6 / (fan_in + fan_out))``.
    """
    fan_in, fan_out = _calculate_fan_in_and_fan_out(tuple(arr.shape))
    bound = math.sqrt(6.0 / float(max(1, fan_in) + max(1, fan_out)))
    arr[...] = np.random.uniform(-bound, bound, size=arr.shape)
    return arr


@WeightInitializer.register_initializer("xavier_tanh")
def xavier_tanh(arr: np.ndarray) -> np.ndarray:
    """Xavier normal initialization with the tanh gain 5/3."""
    arr[...] = np.random.randn(*arr.shape) * _xavier_std(arr.shape, gain=5.0 / 3.0)
    return arr
