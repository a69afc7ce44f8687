"""
Training configuration record.

`TrainOptions` is the single configuration record a network broadcasts to its
updatable components. The network never interprets these values itself; each
component reads its own copy when applying a gradient.

The record is frozen: changing a value means building a new record (for
example with `dataclasses.replace`) and broadcasting it again through
`Nnet.set_train_options`, so a component can never observe a half-updated
configuration.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class TrainOptions:
    """
    Hyperparameters consumed by updatable components.

    Parameters
    ----------
    learn_rate : float, optional
        Step size. Must be finite and >= 0. Defaults to 0.008.
    momentum : float, optional
        Momentum applied to the accumulated gradient. Must lie in [0, 1).
        Defaults to 0.0.
    l2_penalty : float, optional
        L2 regularization coefficient. Must be >= 0. Defaults to 0.0.
    l1_penalty : float, optional
        L1 regularization coefficient. Must be >= 0. Defaults to 0.0.

    Raises
    ------
    ValueError
        If any value is out of range.
    """

    learn_rate: float = 0.008
    momentum: float = 0.0
    l2_penalty: float = 0.0
    l1_penalty: float = 0.0

    def __post_init__(self) -> None:
        for name in ("learn_rate", "momentum", "l2_penalty", "l1_penalty"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
            object.__setattr__(self, name, value)

        if self.learn_rate < 0.0:
            raise ValueError(f"learn_rate must be >= 0, got {self.learn_rate}")
        if not 0.0 <= self.momentum < 1.0:
            raise ValueError(f"momentum must be in [0, 1), got {self.momentum}")
        if self.l2_penalty < 0.0:
            raise ValueError(f"l2_penalty must be >= 0, got {self.l2_penalty}")
        if self.l1_penalty < 0.0:
            raise ValueError(f"l1_penalty must be >= 0, got {self.l1_penalty}")

    def __str__(self) -> str:
        return (
            f"TrainOptions : learn_rate {self.learn_rate}, "
            f"momentum {self.momentum}, l2_penalty {self.l2_penalty}, "
            f"l1_penalty {self.l1_penalty}"
        )
