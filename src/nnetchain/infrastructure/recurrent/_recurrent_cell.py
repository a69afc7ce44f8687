"""
Elman recurrent component.

`RecurrentCell` treats the frames of its input matrix as time-ordered
sequences starting from a zero hidden state:

    h_t = tanh(x_t @ W_x^T + h_{t-1} @ W_h^T + b),    h_{-1} = 0

The output row of frame `t` is `h_t`, so the component maps `input_dim`
columns to `output_dim` (hidden size) columns.

Streams
-------
By default all frames form one sequence. Several sequences can be processed
at once as interleaved streams: with `S` streams, row `t * S + s` holds frame
`t` of stream `s`, and the matrix must have a multiple of `S` rows.

- `set_seq_lengths(lengths)` declares one length per stream. Frames past a
  stream's length are padding: their output is zero, they leave the hidden
  state unchanged and they receive no gradient.
- `reset_streams(flags)` switches to streaming mode, where the final hidden
  state of each stream is carried into the next forward pass. Streams whose
  flag is set restart from zero. Gradients are not propagated into the
  carried state.

Backward (truncated to the current pass)
----------------------------------------
Gradients flow back through time within each stream:

    dh_t = dL/dy_t + da_{t+1} @ W_h
    da_t = dh_t * (1 - h_t^2)
    dL/dx_t = da_t @ W_x

and the parameter gradients are

    dW_x = sum_t da_t^T @ x_t,  dW_h = sum_t da_t^T @ h_{t-1},  db = sum_t da_t

Notes
-----
- Time steps are processed in a Python loop; streams are batched.
- The native parameter blob is `[W_x row-major, W_h row-major, b]`. The
  component does not offer the weight-marshaling view: it has two weight
  matrices, not one weight matrix and a bias.
- The L2 and L1 penalties apply to both weight matrices, not to the bias.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

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
class RecurrentGradient:
    """Gradient record of a `RecurrentCell`."""

    w_x: np.ndarray
    w_h: np.ndarray
    bias: np.ndarray
    num_frames: int


@register_component()
class RecurrentCell(UpdatableComponent):
    """
    Single-layer Elman RNN over one or more interleaved sequences.

    Parameters
    ----------
    input_dim : int
        Input feature dimension D.
    output_dim : int
        Hidden state dimension H.
    initializer : Optional[str], optional
        Weight initializer registry name for both matrices; defaults to
        ``"xavier_uniform"``. The bias starts at zero.
    train_options : Optional[TrainOptions], optional
        Initial training configuration.

    Attributes
    ----------
    w_x : np.ndarray
        Input-to-hidden weights, shape (H, D).
    w_h : np.ndarray
        Hidden-to-hidden weights, shape (H, H).
    bias : np.ndarray
        Hidden bias, shape (H,).
    """

    def __init__(
        self,
        input_dim: int,
        output_dim: int,
        *,
        initializer: Optional[str] = "xavier_uniform",
        train_options: Optional[TrainOptions] = None,
    ) -> None:
        super().__init__(input_dim, output_dim, train_options=train_options)
        self.w_x = np.zeros((self.output_dim, self.input_dim), dtype=DTYPE)
        self.w_h = np.zeros((self.output_dim, self.output_dim), dtype=DTYPE)
        self.bias = np.zeros((self.output_dim,), dtype=DTYPE)
        self.w_x_corr = np.zeros_like(self.w_x)
        self.w_h_corr = np.zeros_like(self.w_h)
        self.bias_corr = np.zeros_like(self.bias)

        self._num_streams = 1
        self._seq_lengths: Optional[np.ndarray] = None
        self._streaming = False
        self._carry = np.zeros((1, self.output_dim), dtype=DTYPE)
        self._h_start = np.zeros((1, self.output_dim), dtype=DTYPE)

        if initializer is not None:
            init = WeightInitializer(initializer)
            init(self.w_x)
            init(self.w_h)

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------
    @property
    def num_streams(self) -> int:
        return self._num_streams

    @property
    def seq_lengths(self) -> Optional[tuple[int, ...]]:
        if self._seq_lengths is None:
            return None
        return tuple(int(v) for v in self._seq_lengths)

    def _set_num_streams(self, n: int) -> None:
        if n == self._num_streams:
            return
        self._num_streams = n
        self._carry = np.zeros((n, self.output_dim), dtype=DTYPE)
        self._h_start = np.zeros((n, self.output_dim), dtype=DTYPE)
        if self._seq_lengths is not None and self._seq_lengths.size != n:
            self._seq_lengths = None

    def set_seq_lengths(self, lengths: Iterable[int]) -> None:
        """
        Declare the number of valid frames of each interleaved stream.

        Raises
        ------
        ValueError
            If no length is given or a length is negative.
        """
        values = np.asarray([int(v) for v in lengths], dtype=np.int64)
        if values.size == 0:
            raise ValueError("set_seq_lengths needs at least one stream")
        if np.any(values < 0):
            raise ValueError(f"Sequence lengths must be >= 0, got {values.tolist()}")
        self._set_num_streams(int(values.size))
        self._seq_lengths = values

    def reset_streams(self, flags: Iterable[bool]) -> None:
        """
        Carry hidden state across passes, restarting the flagged streams.

        Raises
        ------
        ValueError
            If no flag is given.
        """
        mask = np.asarray([bool(f) for f in flags], dtype=bool)
        if mask.size == 0:
            raise ValueError("reset_streams needs at least one stream flag")
        self._set_num_streams(int(mask.size))
        self._streaming = True
        self._carry[mask] = 0.0

    def _layout(self, rows: int) -> tuple[int, int, np.ndarray]:
        """Return (steps, streams, validity mask of shape (steps, streams))."""
        s = self._num_streams
        if rows % s:
            raise ValueError(f"{rows} frames do not split into {s} interleaved streams")
        steps = rows // s
        if self._seq_lengths is None:
            return steps, s, np.ones((steps, s), dtype=DTYPE)
        if np.any(self._seq_lengths > steps):
            raise ValueError(
                f"Sequence lengths {self._seq_lengths.tolist()} exceed the "
                f"{steps} frames per stream"
            )
        mask = np.arange(steps)[:, None] < self._seq_lengths[None, :]
        return steps, s, mask.astype(DTYPE)

    def _run(
        self, x: np.ndarray, h0: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return outputs, the state entering each frame, and the final state."""
        steps, s, mask = self._layout(x.shape[0])
        hidden = self.output_dim
        pre = (x @ self.w_x.T + self.bias).reshape(steps, s, hidden)
        out = np.zeros((steps, s, hidden), dtype=DTYPE)
        h_prev = np.empty((steps, s, hidden), dtype=DTYPE)
        h = h0.astype(DTYPE, copy=True)
        for t in range(steps):
            h_prev[t] = h
            valid = mask[t][:, None] > 0
            h_new = np.tanh(pre[t] + h @ self.w_h.T)
            out[t] = np.where(valid, h_new, 0.0)
            h = np.where(valid, h_new, h).astype(DTYPE, copy=False)
        return out.reshape(-1, hidden), h_prev.reshape(-1, hidden), h

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------
    def _propagate(self, x: np.ndarray) -> np.ndarray:
        if self._streaming:
            h0 = self._carry.copy()
        else:
            h0 = np.zeros((self._num_streams, self.output_dim), dtype=DTYPE)
        y, _, h_end = self._run(x, h0)
        self._h_start = h0
        if self._streaming:
            self._carry = h_end
        return y

    def _deltas(self, y: np.ndarray, y_diff: np.ndarray) -> np.ndarray:
        steps, s, mask = self._layout(y.shape[0])
        hidden = self.output_dim
        y3 = y.reshape(steps, s, hidden)
        d3 = y_diff.reshape(steps, s, hidden)
        da = np.zeros((steps, s, hidden), dtype=DTYPE)
        carry = np.zeros((s, hidden), dtype=DTYPE)
        for t in range(steps - 1, -1, -1):
            valid = mask[t][:, None] > 0
            dh = np.where(valid, d3[t] + carry, 0.0)
            da[t] = dh * (1.0 - y3[t] * y3[t])
            # padded frames pass the state, and its gradient, straight through
            carry = np.where(valid, da[t] @ self.w_h, carry).astype(DTYPE, copy=False)
        return da.reshape(-1, hidden)

    def _backpropagate(
        self, x: np.ndarray, y: np.ndarray, y_diff: np.ndarray
    ) -> np.ndarray:
        return (self._deltas(y, y_diff) @ self.w_x).astype(DTYPE, copy=False)

    def compute_gradient(self, x, y_diff) -> RecurrentGradient:
        x, y_diff = self._check_update_inputs(x, y_diff)
        h0 = self._h_start
        if h0.shape[0] != self._num_streams:
            h0 = np.zeros((self._num_streams, self.output_dim), dtype=DTYPE)
        y, h_prev, _ = self._run(x, h0)
        da = self._deltas(y, y_diff)
        _, _, mask = self._layout(x.shape[0])
        return RecurrentGradient(
            w_x=(da.T @ x).astype(DTYPE, copy=False),
            w_h=(da.T @ h_prev).astype(DTYPE, copy=False),
            bias=da.sum(axis=0, dtype=DTYPE),
            num_frames=int(mask.sum()),
        )

    def apply_gradient(self, record: RecurrentGradient) -> None:
        if not isinstance(record, RecurrentGradient):
            raise TypeError(f"Expected RecurrentGradient, got {type(record).__name__}")

        opts = self.train_options
        lr = DTYPE(opts.learn_rate)
        for param, corr, grad in (
            (self.w_x, self.w_x_corr, record.w_x),
            (self.w_h, self.w_h_corr, record.w_h),
            (self.bias, self.bias_corr, record.bias),
        ):
            if grad.shape != param.shape:
                raise ValueError(
                    f"Gradient shape {grad.shape} does not match parameter {param.shape}"
                )
            corr *= opts.momentum
            corr += grad
            if param.ndim == 2:
                if opts.l2_penalty != 0.0:
                    param -= (
                        DTYPE(opts.learn_rate * opts.l2_penalty * record.num_frames)
                        * param
                    )
                if opts.l1_penalty != 0.0:
                    l1_shrink_(
                        param, opts.learn_rate * opts.l1_penalty * record.num_frames
                    )
            param -= lr * corr

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def _blobs(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.w_x, self.w_h, self.bias

    def num_params(self) -> int:
        return int(sum(a.size for a in self._blobs()))

    def get_params(self) -> np.ndarray:
        return np.concatenate([a.reshape(-1) for a in self._blobs()]).astype(DTYPE)

    def set_params(self, params) -> None:
        v = as_param_vector(params, self.num_params(), "RecurrentCell parameters")
        offset = 0
        for a in self._blobs():
            a[...] = v[offset : offset + a.size].reshape(a.shape)
            offset += a.size

    def get_gradient(self) -> np.ndarray:
        return np.concatenate(
            [a.reshape(-1) for a in (self.w_x_corr, self.w_h_corr, self.bias_corr)]
        ).astype(DTYPE)

    def _write_data(self, writer: ITokenWriter) -> None:
        writer.write_matrix(self.w_x)
        writer.write_matrix(self.w_h)
        writer.write_vector(self.bias)

    def _read_data(self, reader: ITokenReader) -> None:
        for name, target, value in (
            ("input weights", self.w_x, reader.read_matrix()),
            ("recurrent weights", self.w_h, reader.read_matrix()),
            ("bias", self.bias, reader.read_vector()),
        ):
            if value.shape != target.shape:
                raise ValueError(f"{name} are {value.shape}, expected {target.shape}")
            target[...] = value

    @classmethod
    def _for_read(cls, input_dim: int, output_dim: int) -> Self:
        return cls(input_dim, output_dim, initializer=None)

    def get_config(self) -> Dict[str, Any]:
        return {"input_dim": self.input_dim, "output_dim": self.output_dim}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        return cls(int(cfg["input_dim"]), int(cfg["output_dim"]), initializer=None)

    @classmethod
    def from_proto(
        cls, input_dim: int, output_dim: int, options: Mapping[str, str]
    ) -> Self:
        opts = dict(options)
        stddev = opts.pop("<ParamStddev>", "0.1")
        if opts:
            raise ValueError(f"Unknown RecurrentCell options: {', '.join(sorted(opts))}")
        try:
            std = float(stddev)
        except ValueError as e:
            raise ValueError(f"<ParamStddev> must be a number, got {stddev!r}") from e

        comp = cls(input_dim, output_dim, initializer=None)
        WeightInitializer("gaussian")(comp.w_x, stddev=std)
        WeightInitializer("gaussian")(comp.w_h, stddev=std)
        return comp

    def info(self) -> str:
        return (
            f"\n  w_x {moment_statistics(self.w_x)}"
            f"\n  w_h {moment_statistics(self.w_h)}"
            f"\n  bias {moment_statistics(self.bias)}"
        )

    def info_gradient(self) -> str:
        return (
            f"\n  w_x_grad {moment_statistics(self.w_x_corr)}"
            f"\n  w_h_grad {moment_statistics(self.w_h_corr)}"
            f"\n  bias_grad {moment_statistics(self.bias_corr)}"
        )
