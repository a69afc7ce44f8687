"""
Domain-level structural typing for frame matrices.

Activations and gradients flowing between components are 2-D arrays with one
row per frame and one column per feature. The domain layer only needs a few
ndarray attributes to talk about them, so it describes them with a Protocol
instead of importing NumPy.
"""

from __future__ import annotations

from typing import Any, Protocol, Tuple, runtime_checkable


@runtime_checkable
class MatrixLike(Protocol):
    """
    Structural type for 2-D, NumPy-like frame matrices.

    Notes
    -----
    - `numpy.ndarray` satisfies this protocol.
    - Only the attributes the domain contracts mention are modeled.
    """

    @property
    def shape(self) -> Tuple[int, ...]:
        """Size of each dimension, `(num_frames, dim)` for frame matrices."""
        ...

    @property
    def ndim(self) -> int:
        """Number of dimensions."""
        ...

    @property
    def size(self) -> int:
        """Total number of elements."""
        ...

    @property
    def dtype(self) -> Any:
        """Element type descriptor."""
        ...

    def sum(self, *args: Any, **kwargs: Any) -> Any:
        """Sum of elements (optionally along an axis)."""
        ...
