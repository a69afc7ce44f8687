"""
Frame-matrix helpers shared by components and the network container.
"""

from __future__ import annotations

from typing import Any

import numpy as np

DTYPE = np.float32


def as_matrix(x: Any) -> np.ndarray:
    """
    Convert array-like input into a 2D float32 frame matrix.

    1D inputs are treated as a single frame, i.e. promoted to shape `(1, n)`.

    Raises
    ------
    ValueError
        If the input has more than two dimensions.
    """
    m = np.asarray(x, dtype=DTYPE)
    if m.ndim == 0:
        raise ValueError("Expected a vector or matrix, got a scalar")
    if m.ndim == 1:
        m = m.reshape(1, -1)
    if m.ndim != 2:
        raise ValueError(f"Expected a 2D (frames, dim) matrix, got shape {m.shape}")
    return m


def empty_matrix() -> np.ndarray:
    """Return a zero-size matrix, the state of an unused buffer."""
    return np.zeros((0, 0), dtype=DTYPE)


def as_param_vector(vec: Any, expected: int, what: str = "parameter vector") -> np.ndarray:
    """
    Convert array-like input to a flat float32 vector of a given length.

    Raises
    ------
    ValueError
        If the flattened length differs from `expected`.
    """
    v = np.asarray(vec, dtype=DTYPE).reshape(-1)
    if v.shape[0] != expected:
        raise ValueError(f"{what} has length {v.shape[0]}, expected {expected}")
    return v


def l1_shrink_(param: np.ndarray, step: float) -> None:
    """
    Move every entry of `param` towards zero by `step`, in place.

    Entries that would cross zero are clipped to zero.
    """
    shrunk = param - np.sign(param) * DTYPE(step)
    shrunk[np.sign(shrunk) != np.sign(param)] = 0.0
    param[...] = shrunk
