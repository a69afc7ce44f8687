"""
Flat-vector views over the parameters of a component sequence.

Vectors are built by walking the updatable components in network order and
concatenating their blobs, so their layout is stable for a fixed topology.

Two families exist:

- `get_params` / `set_params` / `get_gradient` use each component's native
  blob and work for every updatable kind.
- `get_weights` / `set_weights` use the weight-marshaling layout (weight
  matrix row-major, then bias) and require every updatable component to offer
  the `IWeightMarshaling` capability.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from ...domain._component import IWeightMarshaling
from ...domain._errors import UnsupportedCapabilityError
from ..utils._matrix import DTYPE


def _updatable(components: Sequence[Any]):
    for i, c in enumerate(components):
        if c.is_updatable():
            yield i, c


def _concat(parts) -> np.ndarray:
    parts = [np.asarray(p, dtype=DTYPE).reshape(-1) for p in parts]
    if not parts:
        return np.zeros((0,), dtype=DTYPE)
    return np.concatenate(parts)


def _as_vector(vec, expected: int, what: str) -> np.ndarray:
    v = np.asarray(vec, dtype=DTYPE).reshape(-1)
    if v.shape[0] != expected:
        raise ValueError(f"{what} vector has length {v.shape[0]}, expected {expected}")
    return v


def num_params(components: Sequence[Any]) -> int:
    """Total number of trainable parameters."""
    return sum(int(c.num_params()) for _, c in _updatable(components))


def get_params(components: Sequence[Any]) -> np.ndarray:
    """Concatenate the native parameter blobs of all updatable components."""
    return _concat(c.get_params() for _, c in _updatable(components))


def get_gradient(components: Sequence[Any]) -> np.ndarray:
    """Concatenate the most recent gradients of all updatable components."""
    return _concat(c.get_gradient() for _, c in _updatable(components))


def set_params(components: Sequence[Any], vec) -> None:
    """
    Scatter a flat vector produced by `get_params` back into the components.

    Raises
    ------
    ValueError
        If the vector length differs from `num_params(components)`.
    """
    v = _as_vector(vec, num_params(components), "Parameter")
    offset = 0
    for _, c in _updatable(components):
        n = int(c.num_params())
        c.set_params(v[offset : offset + n])
        offset += n


def _require_marshaling(components: Sequence[Any]) -> None:
    for i, c in _updatable(components):
        if not isinstance(c, IWeightMarshaling):
            raise UnsupportedCapabilityError("weight marshaling", c.get_type(), i)


def get_weights(components: Sequence[Any]) -> np.ndarray:
    """
    Concatenate weights-then-bias of all updatable components.

    Raises
    ------
    UnsupportedCapabilityError
        If an updatable component lacks the weight-marshaling capability.
    """
    _require_marshaling(components)
    return _concat(c.get_weights() for _, c in _updatable(components))


def set_weights(components: Sequence[Any], vec) -> None:
    """
    Inverse of `get_weights`.

    Raises
    ------
    UnsupportedCapabilityError
        If an updatable component lacks the weight-marshaling capability.
    ValueError
        If the vector length differs from `num_params(components)`.
    """
    _require_marshaling(components)
    v = _as_vector(vec, num_params(components), "Weight")
    offset = 0
    for _, c in _updatable(components):
        n = int(c.num_params())
        c.set_weights(v[offset : offset + n])
        offset += n
