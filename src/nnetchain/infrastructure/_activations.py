"""
Elementwise and row-wise activation components.

These components are stateless: their behavior is fully determined by their
class and dimension, so they reuse `StatelessConfigMixin` for the JSON config,
the prototype factory and the (empty) stream data section.

Backward passes use the forward output `y` held by the network buffers rather
than recomputing the activation from `x`.

Notes
-----
`Softmax.backpropagate` passes the output gradient through unchanged. The
softmax is expected to feed a cross-entropy objective whose gradient with
respect to the pre-softmax activations is already `y - targets`.
"""

from __future__ import annotations

import numpy as np

from ..domain.model._stateless_mixin import StatelessConfigMixin
from ._component import Component
from .component._serialization_core import register_component
from .utils._matrix import DTYPE


class _Activation(StatelessConfigMixin, Component):
    """
    Base for activations mapping `dim` columns to `dim` columns.

    Raises
    ------
    ValueError
        If `input_dim != output_dim`.
    """

    def __init__(self, input_dim: int, output_dim: int | None = None) -> None:
        output_dim = input_dim if output_dim is None else output_dim
        super().__init__(input_dim, output_dim)
        if self.input_dim != self.output_dim:
            raise ValueError(
                f"{type(self).__name__} requires input_dim == output_dim, "
                f"got {self.input_dim} and {self.output_dim}"
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dim={self.input_dim})"


@register_component()
class Sigmoid(_Activation):
    """
    Logistic activation applied elementwise:

        sigmoid(x) = 1 / (1 + exp(-x))
    """

    def _propagate(self, x: np.ndarray) -> np.ndarray:
        # split by sign so exp() never overflows
        out = np.empty_like(x)
        pos = x >= 0
        out[pos] = 1.0 / (1.0 + np.exp(-x[pos]))
        ex = np.exp(x[~pos])
        out[~pos] = ex / (1.0 + ex)
        return out.astype(DTYPE, copy=False)

    def _backpropagate(
        self, x: np.ndarray, y: np.ndarray, y_diff: np.ndarray
    ) -> np.ndarray:
        return (y_diff * y * (1.0 - y)).astype(DTYPE, copy=False)


@register_component()
class Tanh(_Activation):
    """Hyperbolic tangent applied elementwise."""

    def _propagate(self, x: np.ndarray) -> np.ndarray:
        return np.tanh(x).astype(DTYPE, copy=False)

    def _backpropagate(
        self, x: np.ndarray, y: np.ndarray, y_diff: np.ndarray
    ) -> np.ndarray:
        return (y_diff * (1.0 - y * y)).astype(DTYPE, copy=False)


@register_component()
class Softmax(_Activation):
    """
    Row-wise softmax, each output row sums to one.

    The maximum of each row is subtracted before exponentiation.
    """

    def _propagate(self, x: np.ndarray) -> np.ndarray:
        z = x - x.max(axis=1, keepdims=True)
        e = np.exp(z)
        return (e / e.sum(axis=1, keepdims=True)).astype(DTYPE, copy=False)

    def _backpropagate(
        self, x: np.ndarray, y: np.ndarray, y_diff: np.ndarray
    ) -> np.ndarray:
        return np.array(y_diff, dtype=DTYPE, copy=True)
