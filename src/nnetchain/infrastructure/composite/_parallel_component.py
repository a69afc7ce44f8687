"""
Parallel composite component.

`ParallelComponent` runs several nested networks side by side. Its input is
split column-wise into consecutive slices, one per nested network (slice
widths are the nested input dims); the nested outputs are concatenated
column-wise in the same order.

The composite always reports itself updatable. Its parameter blob is the
concatenation of the nested networks' `get_params()` vectors. It does not
offer the weight-marshaling view.

Stream record
-------------
::

    <ParallelComponent> out_dim in_dim
    <NestedNnetCount> n
    <NestedNnet> 1 <Nnet> ... </Nnet>
    ...
    </ParallelComponent>
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
from typing_extensions import Self

from ...domain._stream import ITokenReader, ITokenWriter
from ...domain._train_options import TrainOptions
from .._component import UpdatableComponent
from ..component._serialization_core import register_component
from ..models._nnet import Nnet
from ..utils._matrix import DTYPE, as_param_vector


@dataclass(frozen=True)
class ParallelGradient:
    """Gradient records of every nested network, in order."""

    nested: tuple[List[Any], ...]


@register_component()
class ParallelComponent(UpdatableComponent):
    """
    Nested networks applied to column slices of the input.

    Parameters
    ----------
    nnets : Sequence[Nnet]
        Non-empty nested networks; the composite takes ownership of them.
    train_options : Optional[TrainOptions], optional
        If given, broadcast to the nested networks.

    Raises
    ------
    ValueError
        If no nested network is given or one of them is empty.
    """

    def __init__(
        self,
        nnets: Sequence[Nnet],
        *,
        train_options: Optional[TrainOptions] = None,
    ) -> None:
        nnets = list(nnets)
        _validate_nested(nnets)
        super().__init__(
            sum(n.input_dim() for n in nnets),
            sum(n.output_dim() for n in nnets),
            train_options=train_options,
        )
        self._nnets: List[Nnet] = nnets
        if train_options is not None:
            self.set_train_options(train_options)

    @property
    def nnets(self) -> tuple[Nnet, ...]:
        return tuple(self._nnets)

    def _split(self, m: np.ndarray, dims: Sequence[int]) -> List[np.ndarray]:
        offsets = np.cumsum([0] + list(dims))
        return [m[:, offsets[k] : offsets[k + 1]] for k in range(len(dims))]

    def _in_dims(self) -> List[int]:
        return [n.input_dim() for n in self._nnets]

    def _out_dims(self) -> List[int]:
        return [n.output_dim() for n in self._nnets]

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------
    def _propagate(self, x: np.ndarray) -> np.ndarray:
        parts = self._split(x, self._in_dims())
        return np.hstack([n.propagate(p) for n, p in zip(self._nnets, parts)]).astype(
            DTYPE, copy=False
        )

    def _backpropagate(
        self, x: np.ndarray, y: np.ndarray, y_diff: np.ndarray
    ) -> np.ndarray:
        parts = self._split(y_diff, self._out_dims())
        return np.hstack(
            [n.backpropagate(p, update=False) for n, p in zip(self._nnets, parts)]
        ).astype(DTYPE, copy=False)

    def _sync_passes(self, x: np.ndarray, y_diff: np.ndarray) -> None:
        # reuse the nested buffers when they already hold this pass
        for n, xp, dp in zip(
            self._nnets,
            self._split(x, self._in_dims()),
            self._split(y_diff, self._out_dims()),
        ):
            fwd, bwd = n.propagate_buffers, n.backpropagate_buffers
            if not (np.array_equal(fwd[0], xp) and np.array_equal(bwd[-1], dp)):
                n.propagate(xp)
                n.backpropagate(dp, update=False)

    def compute_gradient(self, x, y_diff) -> ParallelGradient:
        x, y_diff = self._check_update_inputs(x, y_diff)
        self._sync_passes(x, y_diff)
        return ParallelGradient(tuple(n.compute_gradients() for n in self._nnets))

    def apply_gradient(self, record: ParallelGradient) -> None:
        if not isinstance(record, ParallelGradient):
            raise TypeError(f"Expected ParallelGradient, got {type(record).__name__}")
        if len(record.nested) != len(self._nnets):
            raise ValueError(
                f"Got gradients for {len(record.nested)} nested networks, "
                f"expected {len(self._nnets)}"
            )
        for n, r in zip(self._nnets, record.nested):
            n.apply_gradients(r)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def num_params(self) -> int:
        return sum(n.num_params() for n in self._nnets)

    def get_params(self) -> np.ndarray:
        return np.concatenate(
            [np.zeros((0,), dtype=DTYPE)] + [n.get_params() for n in self._nnets]
        )

    def set_params(self, params) -> None:
        v = as_param_vector(params, self.num_params(), "ParallelComponent parameters")
        offset = 0
        for n in self._nnets:
            k = n.num_params()
            n.set_params(v[offset : offset + k])
            offset += k

    def get_gradient(self) -> np.ndarray:
        return np.concatenate(
            [np.zeros((0,), dtype=DTYPE)] + [n.get_gradient() for n in self._nnets]
        )

    def set_train_options(self, opts: TrainOptions) -> None:
        super().set_train_options(opts)
        for n in getattr(self, "_nnets", ()):
            n.set_train_options(opts)

    def reset_streams(self, flags: Sequence[bool]) -> None:
        for n in self._nnets:
            n.reset_streams(flags)

    def set_seq_lengths(self, lengths: Sequence[int]) -> None:
        for n in self._nnets:
            n.set_seq_lengths(lengths)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _write_data(self, writer: ITokenWriter) -> None:
        writer.write_token("<NestedNnetCount>")
        writer.write_int(len(self._nnets))
        writer.newline()
        for k, n in enumerate(self._nnets):
            writer.write_token("<NestedNnet>")
            writer.write_int(k + 1)
            writer.newline()
            n._write_body(writer)
        writer.write_token("</ParallelComponent>")
        writer.newline()

    def _read_data(self, reader: ITokenReader) -> None:
        reader.expect_token("<NestedNnetCount>")
        count = reader.read_int()
        nnets = []
        for k in range(count):
            reader.expect_token("<NestedNnet>")
            index = reader.read_int()
            if index != k + 1:
                raise ValueError(f"nested network {index} found where {k + 1} was expected")
            n = Nnet()
            n._read_body(reader)
            nnets.append(n)
        reader.expect_token("</ParallelComponent>")

        _validate_nested(nnets)
        in_dim = sum(n.input_dim() for n in nnets)
        out_dim = sum(n.output_dim() for n in nnets)
        if (in_dim, out_dim) != (self.input_dim, self.output_dim):
            raise ValueError(
                f"nested networks map {in_dim} -> {out_dim}, record declares "
                f"{self.input_dim} -> {self.output_dim}"
            )
        self._nnets = nnets

    @classmethod
    def _for_read(cls, input_dim: int, output_dim: int) -> Self:
        obj = cls.__new__(cls)
        UpdatableComponent.__init__(obj, input_dim, output_dim)
        obj._nnets = []
        return obj

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        return {
            "input_dim": self.input_dim,
            "output_dim": self.output_dim,
            "nnets": [n.get_config() for n in self._nnets],
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        comp = cls([Nnet.from_config(c) for c in cfg["nnets"]])
        if "input_dim" in cfg and int(cfg["input_dim"]) != comp.input_dim:
            raise ValueError(
                f"Config declares input_dim {cfg['input_dim']}, nested networks "
                f"accept {comp.input_dim}"
            )
        return comp

    @classmethod
    def from_proto(
        cls, input_dim: int, output_dim: int, options: Mapping[str, str]
    ) -> Self:
        """
        Build the composite from one nested file per branch.

        Options
        -------
        <NestedProto> path1 path2 ...
            Prototype files, initialized with `Nnet.init`.
        <NestedNnet> path1 path2 ...
            Trained model files, loaded with `Nnet.read`.
        """
        opts = dict(options)
        protos = opts.pop("<NestedProto>", "").split()
        models = opts.pop("<NestedNnet>", "").split()
        if opts:
            raise ValueError(
                f"Unknown ParallelComponent options: {', '.join(sorted(opts))}"
            )
        if bool(protos) == bool(models):
            raise ValueError(
                "ParallelComponent prototype needs either <NestedProto> or "
                "<NestedNnet> paths"
            )

        nnets = []
        for path in protos or models:
            n = Nnet()
            if protos:
                n.init(path)
            else:
                n.read(path)
            nnets.append(n)
        comp = cls(nnets)
        if (comp.input_dim, comp.output_dim) != (input_dim, output_dim):
            raise ValueError(
                f"Nested prototypes map {comp.input_dim} -> {comp.output_dim}, "
                f"prototype line declares {input_dim} -> {output_dim}"
            )
        return comp

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def _nested_report(self, method: str) -> str:
        out = []
        for k, n in enumerate(self._nnets):
            out.append(f"nested_network #{k + 1} {{\n{getattr(n, method)()}}}\n")
        return "".join(out)

    def info(self) -> str:
        return "\n" + self._nested_report("info")

    def info_gradient(self) -> str:
        return "\n" + self._nested_report("info_gradient")

    def info_propagate(self) -> str:
        return self._nested_report("info_propagate")

    def info_backpropagate(self) -> str:
        return self._nested_report("info_backpropagate")

    def __repr__(self) -> str:
        return f"ParallelComponent({', '.join(repr(n) for n in self._nnets)})"


def _validate_nested(nnets: Sequence[Nnet]) -> None:
    if not nnets:
        raise ValueError("ParallelComponent needs at least one nested network")
    for k, n in enumerate(nnets):
        if not isinstance(n, Nnet):
            raise TypeError(f"Nested network {k} is a {type(n).__name__}, not an Nnet")
        if n.num_components() == 0:
            raise ValueError(f"Nested network {k} is empty")
