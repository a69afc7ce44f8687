"""
Affine transform component.

`AffineTransform` performs an affine projection of batch-major frames:

    y = x @ W^T + b

Shape conventions
-----------------
- x : (frames, input_dim)
- W : (output_dim, input_dim)
- b : (output_dim,)
- y : (frames, output_dim)

Backward rules
--------------
- dL/dx = dL/dy @ W
- dL/dW = (dL/dy)^T @ x
- dL/db = sum(dL/dy, axis=0)

Update rule
-----------
The gradient is folded into momentum accumulators, then applied as a plain
SGD step with per-component learning-rate coefficients:

    W_corr = momentum * W_corr + dL/dW
    b_corr = momentum * b_corr + dL/db
    W     -= lr * l2 * frames * W               (if l2 > 0)
    W      = shrink(W, lr * l1 * frames)        (if l1 > 0)
    W     -= lr * learn_rate_coef * W_corr
    b     -= lr * bias_learn_rate_coef * b_corr

The L1 shrink moves each weight towards zero and clips it to zero rather than
letting it change sign.

Parameter layout
----------------
Both the native blob (`get_params`) and the weight-marshaling view
(`get_weights`) are the weight matrix flattened row-major followed by the
bias, so `num_params() == output_dim * input_dim + output_dim`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import numpy as np
from typing_extensions import Self

from ...domain._stream import ITokenReader, ITokenWriter
from ...domain._train_options import TrainOptions
from .._component import UpdatableComponent
from ..component._serialization_core import register_component
from ..utils._matrix import DTYPE, as_param_vector, l1_shrink_
from ..utils._statistics import moment_statistics
from ..utils.weight_initializer import WeightInitializer


@dataclass(frozen=True)
class AffineGradient:
    """
    Gradient record of an `AffineTransform`.

    Attributes
    ----------
    linearity : np.ndarray
        dL/dW, shape (output_dim, input_dim).
    bias : np.ndarray
        dL/db, shape (output_dim,).
    num_frames : int
        Number of frames the gradient was summed over; scales regularization.
    """

    linearity: np.ndarray
    bias: np.ndarray
    num_frames: int


@register_component()
class AffineTransform(UpdatableComponent):
    """
    Fully-connected layer with momentum SGD self-update.

    Parameters
    ----------
    input_dim : int
        Number of input columns.
    output_dim : int
        Number of output columns.
    initializer : Optional[str], optional
        Registry name of the weight initializer. Defaults to
        ``"xavier_uniform"``. The bias starts at zero.
    learn_rate_coef : float, optional
        Multiplier on the learning rate for the weights.
    bias_learn_rate_coef : float, optional
        Multiplier on the learning rate for the bias.
    train_options : Optional[TrainOptions], optional
        Initial training configuration; usually broadcast by the network.

    Attributes
    ----------
    linearity : np.ndarray
        Weight matrix of shape (output_dim, input_dim).
    bias : np.ndarray
        Bias vector of shape (output_dim,).
    linearity_corr, bias_corr : np.ndarray
        Momentum accumulators, equal to the last applied gradient when
        momentum is zero.
    """

    def __init__(
        self,
        input_dim: int,
        output_dim: int,
        *,
        initializer: Optional[str] = "xavier_uniform",
        learn_rate_coef: float = 1.0,
        bias_learn_rate_coef: float = 1.0,
        train_options: Optional[TrainOptions] = None,
    ) -> None:
        super().__init__(input_dim, output_dim, train_options=train_options)
        for name, v in (
            ("learn_rate_coef", learn_rate_coef),
            ("bias_learn_rate_coef", bias_learn_rate_coef),
        ):
            if not np.isfinite(v) or v < 0:
                raise ValueError(f"{name} must be finite and non-negative, got {v}")
        self.learn_rate_coef = float(learn_rate_coef)
        self.bias_learn_rate_coef = float(bias_learn_rate_coef)

        self.linearity = np.zeros((self.output_dim, self.input_dim), dtype=DTYPE)
        self.bias = np.zeros((self.output_dim,), dtype=DTYPE)
        self.linearity_corr = np.zeros_like(self.linearity)
        self.bias_corr = np.zeros_like(self.bias)

        if initializer is not None:
            WeightInitializer(initializer)(self.linearity)

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------
    def _propagate(self, x: np.ndarray) -> np.ndarray:
        return (x @ self.linearity.T + self.bias).astype(DTYPE, copy=False)

    def _backpropagate(
        self, x: np.ndarray, y: np.ndarray, y_diff: np.ndarray
    ) -> np.ndarray:
        return (y_diff @ self.linearity).astype(DTYPE, copy=False)

    def compute_gradient(self, x, y_diff) -> AffineGradient:
        x, y_diff = self._check_update_inputs(x, y_diff)
        return AffineGradient(
            linearity=(y_diff.T @ x).astype(DTYPE, copy=False),
            bias=y_diff.sum(axis=0, dtype=DTYPE),
            num_frames=int(x.shape[0]),
        )

    def apply_gradient(self, record: AffineGradient) -> None:
        if not isinstance(record, AffineGradient):
            raise TypeError(f"Expected AffineGradient, got {type(record).__name__}")
        if record.linearity.shape != self.linearity.shape:
            raise ValueError(
                f"Gradient shape {record.linearity.shape} does not match "
                f"weights {self.linearity.shape}"
            )

        opts = self.train_options
        lr = opts.learn_rate * self.learn_rate_coef
        lr_bias = opts.learn_rate * self.bias_learn_rate_coef
        mmt = opts.momentum

        self.linearity_corr *= mmt
        self.linearity_corr += record.linearity
        self.bias_corr *= mmt
        self.bias_corr += record.bias

        if opts.l2_penalty != 0.0:
            self.linearity -= DTYPE(lr * opts.l2_penalty * record.num_frames) * self.linearity
        if opts.l1_penalty != 0.0:
            l1_shrink_(self.linearity, lr * opts.l1_penalty * record.num_frames)

        self.linearity -= DTYPE(lr) * self.linearity_corr
        self.bias -= DTYPE(lr_bias) * self.bias_corr

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def num_params(self) -> int:
        return int(self.linearity.size + self.bias.size)

    def get_params(self) -> np.ndarray:
        return np.concatenate([self.linearity.reshape(-1), self.bias]).astype(DTYPE)

    def set_params(self, params) -> None:
        v = as_param_vector(params, self.num_params(), "AffineTransform parameters")
        n = self.linearity.size
        self.linearity[...] = v[:n].reshape(self.linearity.shape)
        self.bias[...] = v[n:]

    def get_gradient(self) -> np.ndarray:
        return np.concatenate([self.linearity_corr.reshape(-1), self.bias_corr]).astype(
            DTYPE
        )

    def get_weights(self) -> np.ndarray:
        return self.get_params()

    def set_weights(self, weights) -> None:
        self.set_params(weights)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _write_data(self, writer: ITokenWriter) -> None:
        writer.write_token("<LearnRateCoef>")
        writer.write_float(self.learn_rate_coef)
        writer.write_token("<BiasLearnRateCoef>")
        writer.write_float(self.bias_learn_rate_coef)
        writer.newline()
        writer.write_matrix(self.linearity)
        writer.write_vector(self.bias)

    def _read_data(self, reader: ITokenReader) -> None:
        if reader.peek_token() == "<LearnRateCoef>":
            reader.read_token()
            self.learn_rate_coef = reader.read_float()
        if reader.peek_token() == "<BiasLearnRateCoef>":
            reader.read_token()
            self.bias_learn_rate_coef = reader.read_float()

        linearity = reader.read_matrix()
        bias = reader.read_vector()
        if linearity.shape != self.linearity.shape:
            raise ValueError(
                f"weight matrix is {linearity.shape}, expected {self.linearity.shape}"
            )
        if bias.shape != self.bias.shape:
            raise ValueError(f"bias has {bias.shape[0]} values, expected {self.output_dim}")
        self.linearity[...] = linearity
        self.bias[...] = bias

    @classmethod
    def _for_read(cls, input_dim: int, output_dim: int) -> Self:
        return cls(input_dim, output_dim, initializer=None)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        return {
            "input_dim": self.input_dim,
            "output_dim": self.output_dim,
            "learn_rate_coef": self.learn_rate_coef,
            "bias_learn_rate_coef": self.bias_learn_rate_coef,
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        return cls(
            int(cfg["input_dim"]),
            int(cfg["output_dim"]),
            initializer=None,
            learn_rate_coef=float(cfg.get("learn_rate_coef", 1.0)),
            bias_learn_rate_coef=float(cfg.get("bias_learn_rate_coef", 1.0)),
        )

    @classmethod
    def from_proto(
        cls, input_dim: int, output_dim: int, options: Mapping[str, str]
    ) -> Self:
        """
        Build a randomly initialized transform from prototype options.

        Options
        -------
        <ParamStddev> (0.1), <BiasMean> (-2.0), <BiasRange> (2.0),
        <LearnRateCoef> (1.0), <BiasLearnRateCoef> (1.0), <Init> (weight
        initializer name; overrides <ParamStddev>).
        """
        opts = dict(options)
        known = {
            "<ParamStddev>",
            "<BiasMean>",
            "<BiasRange>",
            "<LearnRateCoef>",
            "<BiasLearnRateCoef>",
            "<Init>",
        }
        unknown = sorted(set(opts) - known)
        if unknown:
            raise ValueError(f"Unknown AffineTransform options: {', '.join(unknown)}")

        def _float(key: str, default: float) -> float:
            try:
                return float(opts.get(key, default))
            except ValueError as e:
                raise ValueError(f"{key} must be a number, got {opts[key]!r}") from e

        comp = cls(
            input_dim,
            output_dim,
            initializer=None,
            learn_rate_coef=_float("<LearnRateCoef>", 1.0),
            bias_learn_rate_coef=_float("<BiasLearnRateCoef>", 1.0),
        )
        if "<Init>" in opts:
            WeightInitializer(opts["<Init>"])(comp.linearity)
        else:
            WeightInitializer("gaussian")(
                comp.linearity, stddev=_float("<ParamStddev>", 0.1)
            )
        WeightInitializer("uniform")(
            comp.bias,
            spread=_float("<BiasRange>", 2.0),
            mean=_float("<BiasMean>", -2.0),
        )
        return comp

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def info(self) -> str:
        return (
            f"\n  linearity {moment_statistics(self.linearity)}"
            f"\n  bias {moment_statistics(self.bias)}"
        )

    def info_gradient(self) -> str:
        return (
            f"\n  linearity_grad {moment_statistics(self.linearity_corr)}"
            f", lr-coef {self.learn_rate_coef:g}"
            f"\n  bias_grad {moment_statistics(self.bias_corr)}"
            f", lr-coef {self.bias_learn_rate_coef:g}"
        )
