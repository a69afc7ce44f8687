"""
Intermediate activation / gradient buffers of a network.

A network with `L` components keeps `L + 1` forward buffers (buffer `i` is the
input of component `i`, buffer `L` the network output) and `L + 1` backward
buffers (buffer `i` is the gradient at the input of component `i`). Buffers
start out empty, i.e. with shape `(0, 0)`.
"""

from __future__ import annotations

from typing import List

import numpy as np

from ..utils._matrix import empty_matrix


class BufferPool:
    """
    Owner of the forward and backward buffer lists of one network.

    Only the network pass methods write buffers, through `set_propagate` and
    `set_backpropagate`; everyone else sees read-only tuples.
    """

    def __init__(self, num_components: int = 0) -> None:
        self._propagate: List[np.ndarray] = []
        self._backpropagate: List[np.ndarray] = []
        self.resize(num_components)

    def resize(self, num_components: int) -> None:
        """
        Make both buffer lists exactly `num_components + 1` long.

        Existing buffers are kept; new ones are empty.
        """
        if num_components < 0:
            raise ValueError(f"num_components must be >= 0, got {num_components}")
        n = num_components + 1
        for bufs in (self._propagate, self._backpropagate):
            del bufs[n:]
            while len(bufs) < n:
                bufs.append(empty_matrix())

    def clear(self) -> None:
        """Drop both buffer lists entirely."""
        self._propagate.clear()
        self._backpropagate.clear()

    def release(self, index: int) -> None:
        """Shrink forward buffer `index` back to empty."""
        self._propagate[index] = empty_matrix()

    def set_propagate(self, index: int, mat: np.ndarray) -> None:
        self._propagate[index] = mat

    def set_backpropagate(self, index: int, mat: np.ndarray) -> None:
        self._backpropagate[index] = mat

    @property
    def propagate_buffers(self) -> tuple[np.ndarray, ...]:
        return tuple(self._propagate)

    @property
    def backpropagate_buffers(self) -> tuple[np.ndarray, ...]:
        return tuple(self._backpropagate)

    def __repr__(self) -> str:
        return (
            f"BufferPool(propagate={len(self._propagate)}, "
            f"backpropagate={len(self._backpropagate)})"
        )
