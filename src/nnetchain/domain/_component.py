"""
Component (layer) interface definitions.

A component is one stage of a network pipeline. The network container only
talks to components through the contracts in this module, using structural
subtyping via `typing.Protocol`:

- `IComponent`: the capability every component offers (dimensions, forward
  and backward computation, duplication, persistence).
- `IUpdatableComponent`: components holding trainable parameters. They expose
  a parameter count, their native parameter/gradient blobs, and a self-update
  split into a pure gradient computation and its application.
- `IWeightMarshaling`: an opt-in capability for components that can flatten
  their weights into the "weight matrix row-major, then bias" layout. The
  container asks whether a component offers it rather than switching on a
  fixed set of type markers.

All three are `runtime_checkable`, so `isinstance` checks work on any object
implementing the methods.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ._stream import ITokenWriter
from ._train_options import TrainOptions
from .types._matrix import MatrixLike


@runtime_checkable
class IComponent(Protocol):
    """
    Domain-level component interface.

    Notes
    -----
    - Inputs and outputs are frame matrices of shape `(num_frames, dim)`.
    - `backpropagate` receives the component's own forward input and output
      (as held by the network buffers) together with the gradient arriving at
      its output, and returns the gradient at its input.
    """

    @property
    def input_dim(self) -> int:
        """Number of input columns the component accepts."""
        ...

    @property
    def output_dim(self) -> int:
        """Number of output columns the component produces."""
        ...

    def get_type(self) -> str:
        """Return the type marker (e.g. "<AffineTransform>")."""
        ...

    def is_updatable(self) -> bool:
        """Return True if the component holds trainable parameters."""
        ...

    def propagate(self, x: MatrixLike) -> MatrixLike:
        """Compute the forward output for input `x`."""
        ...

    def backpropagate(
        self, x: MatrixLike, y: MatrixLike, y_diff: MatrixLike
    ) -> MatrixLike:
        """Compute the input gradient from forward activations and output gradient."""
        ...

    def duplicate(self) -> "IComponent":
        """Return a deep, independently owned copy of this component."""
        ...

    def write(self, writer: ITokenWriter) -> None:
        """Persist the component record (marker, dims, data) to `writer`."""
        ...


@runtime_checkable
class IUpdatableComponent(IComponent, Protocol):
    """
    Domain-level interface for components with trainable parameters.

    The self-update is modeled in two steps:

    - `compute_gradient(x, y_diff)` is pure and returns an opaque gradient
      record for the current forward input and output gradient.
    - `apply_gradient(record)` mutates the parameters using the component's
      current `TrainOptions`.

    `update(x, y_diff)` is the fused convenience the network calls during
    backpropagation.
    """

    def num_params(self) -> int:
        """Number of scalar trainable parameters."""
        ...

    def get_params(self) -> MatrixLike:
        """Return the native parameter blob as a flat vector."""
        ...

    def set_params(self, params: MatrixLike) -> None:
        """Overwrite the parameters from a flat vector of length `num_params()`."""
        ...

    def get_gradient(self) -> MatrixLike:
        """Return the most recently applied gradient as a flat vector."""
        ...

    def compute_gradient(self, x: MatrixLike, y_diff: MatrixLike) -> Any:
        """Compute a gradient record without touching component state."""
        ...

    def apply_gradient(self, record: Any) -> None:
        """Apply a gradient record produced by `compute_gradient`."""
        ...

    def update(self, x: MatrixLike, y_diff: MatrixLike) -> None:
        """Compute and immediately apply the gradient."""
        ...

    def set_train_options(self, opts: TrainOptions) -> None:
        """Store a copy of the broadcast training configuration."""
        ...


@runtime_checkable
class IWeightMarshaling(Protocol):
    """
    Opt-in capability: vectorized weight access.

    Layout
    ------
    The weight matrix flattened row-major, immediately followed by the bias
    vector. The vector length equals the component's `num_params()`.
    """

    def get_weights(self) -> MatrixLike:
        """Return weights then bias as one flat vector."""
        ...

    def set_weights(self, weights: MatrixLike) -> None:
        """Load weights then bias from one flat vector."""
        ...
