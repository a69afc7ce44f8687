"""
Dropout component.

This module implements inverted dropout parameterized by the *retention*
probability `r` (the probability of keeping a unit). During training each
element is kept with probability `r` and the survivors are scaled by `1 / r`
so the expected activation is unchanged. In evaluation mode (or when
`r == 1`) the component is an identity.

Design notes
------------
- The mask drawn by the last `propagate` is kept and reused by
  `backpropagate`, so gradients flow only through the units that were kept.
- The network adjusts the retention of every dropout component at once via
  `Nnet.set_dropout_retention`.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import numpy as np
from typing_extensions import Self

from ...domain._stream import ITokenReader, ITokenWriter
from .._component import Component
from ..component._serialization_core import register_component
from ..utils._matrix import DTYPE


def _validate_retention(r: float) -> float:
    r = float(r)
    if not 0.0 < r <= 1.0:
        raise ValueError(f"Dropout retention must be in (0, 1], got {r}")
    return r


@register_component()
class Dropout(Component):
    """
    Dropout regularization component (inverted dropout).

    Behavior
    --------
    - Training mode:
        y = x * mask / r, where mask ~ Bernoulli(r)
    - Evaluation mode:
        y = x (identity)

    Parameters
    ----------
    input_dim : int
        Number of columns; the output has the same width.
    output_dim : Optional[int]
        Must equal `input_dim` when given.
    dropout_retention : float, optional
        Probability of keeping a unit, in (0, 1]. Default is 0.5.
    """

    def __init__(
        self,
        input_dim: int,
        output_dim: Optional[int] = None,
        *,
        dropout_retention: float = 0.5,
    ) -> None:
        output_dim = input_dim if output_dim is None else output_dim
        super().__init__(input_dim, output_dim)
        if self.input_dim != self.output_dim:
            raise ValueError(
                f"Dropout requires input_dim == output_dim, "
                f"got {self.input_dim} and {self.output_dim}"
            )
        self._retention = _validate_retention(dropout_retention)
        self.training = True
        self._mask: Optional[np.ndarray] = None

    @property
    def dropout_retention(self) -> float:
        return self._retention

    def set_dropout_retention(self, r: float) -> None:
        self._retention = _validate_retention(r)

    def _propagate(self, x: np.ndarray) -> np.ndarray:
        if not self.training or self._retention == 1.0:
            self._mask = None
            return np.array(x, dtype=DTYPE, copy=True)

        keep = np.random.uniform(0.0, 1.0, size=x.shape) < self._retention
        self._mask = keep.astype(DTYPE) / DTYPE(self._retention)
        return (x * self._mask).astype(DTYPE, copy=False)

    def _backpropagate(
        self, x: np.ndarray, y: np.ndarray, y_diff: np.ndarray
    ) -> np.ndarray:
        if self._mask is None:
            return np.array(y_diff, dtype=DTYPE, copy=True)
        if self._mask.shape != y_diff.shape:
            raise ValueError(
                f"Dropout mask {self._mask.shape} does not match gradient "
                f"{y_diff.shape}; backpropagate must follow propagate"
            )
        return (y_diff * self._mask).astype(DTYPE, copy=False)

    def _write_data(self, writer: ITokenWriter) -> None:
        writer.write_token("<DropoutRetention>")
        writer.write_float(self._retention)
        writer.newline()

    def _read_data(self, reader: ITokenReader) -> None:
        if reader.peek_token() == "<DropoutRetention>":
            reader.read_token()
            self._retention = _validate_retention(reader.read_float())

    def get_config(self) -> Dict[str, Any]:
        """
        Return a serializable configuration for this component.

        Returns
        -------
        Dict[str, Any]
            The dimension and the retention probability.
        """
        return {"input_dim": self.input_dim, "dropout_retention": self._retention}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        return cls(
            int(cfg["input_dim"]),
            dropout_retention=float(cfg.get("dropout_retention", 0.5)),
        )

    @classmethod
    def from_proto(
        cls, input_dim: int, output_dim: int, options: Mapping[str, str]
    ) -> Self:
        opts = dict(options)
        retention = opts.pop("<DropoutRetention>", "0.5")
        if opts:
            raise ValueError(f"Unknown Dropout options: {', '.join(sorted(opts))}")
        try:
            r = float(retention)
        except ValueError as e:
            raise ValueError(f"<DropoutRetention> must be a number, got {retention!r}") from e
        return cls(input_dim, output_dim, dropout_retention=r)

    def info(self) -> str:
        return f"\n  dropout-retention {self._retention:g}"

    def __repr__(self) -> str:
        return f"Dropout(dim={self.input_dim}, dropout_retention={self._retention:g})"
