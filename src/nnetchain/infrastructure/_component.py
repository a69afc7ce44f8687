"""
Infrastructure component base classes.

This module provides the concrete bases every layer in the component library
derives from. They satisfy the domain `IComponent` / `IUpdatableComponent`
protocols and implement the conveniences shared by all layers:

- dimension bookkeeping and validation of positive sizes
- input-width / gradient-shape checks before dispatching to `_propagate` and
  `_backpropagate`
- the record layout of the model stream (marker, output dim, input dim, data)
- deep duplication
- the fused `update` built from `compute_gradient` and `apply_gradient`

Subclasses are registered with `register_component` so the stream reader,
the prototype parser and the JSON loader can construct them by marker.
"""

from __future__ import annotations

import copy
from typing import Any, ClassVar, Dict, Mapping

import numpy as np
from typing_extensions import Self

from ..domain._component import IComponent, IUpdatableComponent
from ..domain._stream import ITokenReader, ITokenWriter
from ..domain._train_options import TrainOptions
from .utils._matrix import as_matrix


class Component(IComponent):
    """
    Base class for network components.

    Subclasses implement `_propagate` and `_backpropagate` on validated
    float32 frame matrices, and the persistence hooks `_write_data` /
    `_read_data` if they carry data beyond their dimensions.

    Attributes
    ----------
    MARKER : str
        Stream/prototype type marker, assigned by `register_component`.
    """

    MARKER: ClassVar[str] = ""

    def __init__(self, input_dim: int, output_dim: int) -> None:
        """
        Initialize the component dimensions.

        Parameters
        ----------
        input_dim : int
            Number of input columns. Must be positive.
        output_dim : int
            Number of output columns. Must be positive.

        Raises
        ------
        ValueError
            If a dimension is not a positive integer.
        """
        for name, v in (("input_dim", input_dim), ("output_dim", output_dim)):
            if isinstance(v, bool) or int(v) != v or int(v) <= 0:
                raise ValueError(f"{name} must be a positive integer, got {v!r}")
        self._input_dim = int(input_dim)
        self._output_dim = int(output_dim)

    @property
    def input_dim(self) -> int:
        return self._input_dim

    @property
    def output_dim(self) -> int:
        return self._output_dim

    def get_type(self) -> str:
        return type(self).MARKER

    def is_updatable(self) -> bool:
        return False

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------
    def propagate(self, x) -> np.ndarray:
        """
        Compute the forward output for a batch of frames.

        Raises
        ------
        ValueError
            If `x` does not have `input_dim` columns.
        """
        x = as_matrix(x)
        if x.shape[1] != self._input_dim:
            raise ValueError(
                f"{type(self).__name__} expects {self._input_dim} input columns, "
                f"got {x.shape[1]}"
            )
        return self._propagate(x)

    def backpropagate(self, x, y, y_diff) -> np.ndarray:
        """
        Compute the gradient at the input from the gradient at the output.

        Parameters
        ----------
        x, y :
            The forward input and output of this component.
        y_diff :
            Gradient of the objective w.r.t. `y`.

        Raises
        ------
        ValueError
            If the matrices do not agree with the component dimensions or with
            each other in the number of frames.
        """
        x, y, y_diff = as_matrix(x), as_matrix(y), as_matrix(y_diff)
        if x.shape[1] != self._input_dim or y_diff.shape[1] != self._output_dim:
            raise ValueError(
                f"{type(self).__name__} backpropagate expects ({self._input_dim}, "
                f"{self._output_dim}) columns, got ({x.shape[1]}, {y_diff.shape[1]})"
            )
        if y_diff.shape[0] != x.shape[0]:
            raise ValueError(
                f"Frame count mismatch: input has {x.shape[0]}, "
                f"output gradient has {y_diff.shape[0]}"
            )
        return self._backpropagate(x, y, y_diff)

    def _propagate(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def _backpropagate(
        self, x: np.ndarray, y: np.ndarray, y_diff: np.ndarray
    ) -> np.ndarray:
        raise NotImplementedError

    def duplicate(self) -> Self:
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def write(self, writer: ITokenWriter) -> None:
        """
        Write the component record: marker, output dim, input dim, data.
        """
        writer.write_token(self.get_type())
        writer.write_int(self._output_dim)
        writer.write_int(self._input_dim)
        writer.newline()
        self._write_data(writer)

    def _write_data(self, writer: ITokenWriter) -> None:
        return None

    def _read_data(self, reader: ITokenReader) -> None:
        return None

    @classmethod
    def _for_read(cls, input_dim: int, output_dim: int) -> Self:
        """Construct an instance whose data `_read_data` will overwrite."""
        return cls(input_dim, output_dim)

    # ------------------------------------------------------------------
    # Configuration hooks
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        raise NotImplementedError(f"{type(self).__name__} does not implement get_config()")

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        raise NotImplementedError(f"{cls.__name__} does not implement from_config()")

    @classmethod
    def from_proto(
        cls, input_dim: int, output_dim: int, options: Mapping[str, str]
    ) -> Self:
        raise NotImplementedError(f"{cls.__name__} does not implement from_proto()")

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def info(self) -> str:
        """Return parameter statistics; empty for parameterless components."""
        return ""

    def info_gradient(self) -> str:
        """Return gradient statistics; empty for parameterless components."""
        return ""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(input_dim={self._input_dim}, "
            f"output_dim={self._output_dim})"
        )


class UpdatableComponent(Component, IUpdatableComponent):
    """
    Base class for components with trainable parameters.

    Subclasses implement the parameter accessors and the two update halves:
    `compute_gradient` must not modify the component, `apply_gradient` performs
    the parameter step using the current `train_options`.
    """

    def __init__(
        self,
        input_dim: int,
        output_dim: int,
        *,
        train_options: TrainOptions | None = None,
    ) -> None:
        super().__init__(input_dim, output_dim)
        self._opts = TrainOptions() if train_options is None else train_options
        if not isinstance(self._opts, TrainOptions):
            raise TypeError(
                f"train_options must be a TrainOptions, got {type(self._opts).__name__}"
            )

    def is_updatable(self) -> bool:
        return True

    @property
    def train_options(self) -> TrainOptions:
        return self._opts

    def set_train_options(self, opts: TrainOptions) -> None:
        if not isinstance(opts, TrainOptions):
            raise TypeError(f"Expected TrainOptions, got {type(opts).__name__}")
        self._opts = opts

    def num_params(self) -> int:
        raise NotImplementedError

    def get_params(self) -> np.ndarray:
        raise NotImplementedError

    def set_params(self, params) -> None:
        raise NotImplementedError

    def get_gradient(self) -> np.ndarray:
        raise NotImplementedError

    def compute_gradient(self, x, y_diff) -> Any:
        raise NotImplementedError

    def apply_gradient(self, record: Any) -> None:
        raise NotImplementedError

    def update(self, x, y_diff) -> None:
        self.apply_gradient(self.compute_gradient(x, y_diff))

    def _check_update_inputs(self, x, y_diff) -> tuple[np.ndarray, np.ndarray]:
        x, y_diff = as_matrix(x), as_matrix(y_diff)
        if x.shape[1] != self._input_dim or y_diff.shape[1] != self._output_dim:
            raise ValueError(
                f"{type(self).__name__} gradient expects ({self._input_dim}, "
                f"{self._output_dim}) columns, got ({x.shape[1]}, {y_diff.shape[1]})"
            )
        if x.shape[0] != y_diff.shape[0]:
            raise ValueError(
                f"Frame count mismatch: input has {x.shape[0]}, "
                f"output gradient has {y_diff.shape[0]}"
            )
        return x, y_diff
