"""
Network container.

`Nnet` owns an ordered chain of components and drives data through it:

- `propagate` runs the training forward pass and keeps every intermediate
  activation in the buffer pool (`L + 1` forward buffers for `L` components).
- `backpropagate` walks the chain backwards from an output gradient, keeping
  every intermediate gradient, and lets each updatable component update
  itself right after its backward step.
- `feedforward` is the inference pass; it only needs two rotating buffers and
  releases them before returning.

Structural mutations (append / remove / replace / read / init) resize the
buffer pool and re-check the invariants: the buffer counts, the dimension
chaining of adjacent components, and the finiteness of the parameters.

Persistence
-----------
- `read` / `write`: the token-stream model format, text or binary.
- `init`: a prototype file with one component description per line.
- `save_json` / `load_json`: a single-file JSON checkpoint with base64
  parameter payloads.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, Iterator, List, Optional, Sequence

import numpy as np
from typing_extensions import Self

from ...domain._component import IComponent
from ...domain._errors import StreamFormatError, StructuralError
from ...domain._stream import ITokenReader, ITokenWriter
from ...domain._train_options import TrainOptions
from ..component._serialization_core import (
    component_from_config,
    component_to_config,
    init_component,
    read_component,
)
from ..component._serialization_weights import (
    extract_state_payload,
    load_state_payload_,
)
from ..encoding._token_stream import TokenReader, TokenWriter, detect_binary
from ..utils._matrix import as_matrix
from . import _diagnostics, _parameter_codec
from ._buffer_pool import BufferPool
from ._consistency import check_consistency

logger = logging.getLogger(__name__)

CHECKPOINT_FORMAT = "nnetchain.json.ckpt.v1"

_PROTO_SENTINELS = ("<NnetProto>", "</NnetProto>")


class Nnet:
    """
    Ordered chain of components trained as one pipeline.

    Parameters
    ----------
    components : Iterable[IComponent], optional
        Initial components, in order. The network takes ownership of them.
    train_options : Optional[TrainOptions], optional
        If given, broadcast to every updatable component.

    Raises
    ------
    StructuralError
        If adjacent components disagree on dimensions.

    Notes
    -----
    - A network is not safe for concurrent use; the pass methods share the
      buffer pool.
    - Copies (`copy`, `copy.copy`, `copy.deepcopy`, `assign`, `append_nnet`)
      always duplicate components, so two networks never share component
      state.
    """

    def __init__(
        self,
        components: Iterable[IComponent] = (),
        train_options: Optional[TrainOptions] = None,
    ) -> None:
        self._components: List[IComponent] = []
        for c in components:
            self._components.append(self._validate_component(c))
        self._pool = BufferPool(len(self._components))
        self._opts = TrainOptions()
        if train_options is not None:
            self.set_train_options(train_options)
        self.check()

    @staticmethod
    def _validate_component(c: Any) -> IComponent:
        if not isinstance(c, IComponent):
            raise TypeError(f"Expected a component, got {type(c).__name__}")
        return c

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------
    def propagate(self, x) -> np.ndarray:
        """
        Run the training forward pass, keeping every intermediate activation.

        Parameters
        ----------
        x : array-like
            Input frames, shape `(frames, input_dim)`.

        Returns
        -------
        np.ndarray
            A copy of the network output.

        Raises
        ------
        StructuralError
            If the buffer pool does not hold enough forward buffers.
        """
        x = as_matrix(x)
        n = len(self._components)
        if n == 0:
            return x.copy()

        if len(self._pool.propagate_buffers) < n + 1:
            raise StructuralError(
                f"Network holds {len(self._pool.propagate_buffers)} forward buffers, "
                f"needs {n + 1}"
            )

        self._pool.set_propagate(0, x.copy())
        for i, c in enumerate(self._components):
            self._pool.set_propagate(i + 1, c.propagate(self._pool.propagate_buffers[i]))
        return self._pool.propagate_buffers[n].copy()

    def backpropagate(self, out_diff, *, update: bool = True) -> np.ndarray:
        """
        Run the backward pass from the gradient at the network output.

        Must follow a `propagate` over the same frames. Each updatable
        component is updated right after its own backward step when `update`
        is True; with `update=False` no component changes and the gradients
        can be taken afterwards with `compute_gradients`.

        Parameters
        ----------
        out_diff : array-like
            Gradient of the objective w.r.t. the network output.
        update : bool, optional
            Whether to apply the component self-updates. Defaults to True.

        Returns
        -------
        np.ndarray
            A copy of the gradient at the network input.

        Raises
        ------
        StructuralError
            If the buffer counts are not `num_components + 1`.
        ValueError
            If `out_diff` does not match the output of the last `propagate`.
        """
        d = as_matrix(out_diff)
        n = len(self._components)
        if n == 0:
            return d.copy()

        fwd = self._pool.propagate_buffers
        bwd_count = len(self._pool.backpropagate_buffers)
        if len(fwd) != n + 1 or bwd_count != n + 1:
            raise StructuralError(
                f"Network holds {len(fwd)} forward and {bwd_count} backward buffers, "
                f"expected {n + 1}"
            )
        if fwd[n].shape != d.shape:
            raise ValueError(
                f"Output gradient has shape {d.shape} but the last propagate "
                f"produced {fwd[n].shape}"
            )

        self._pool.set_backpropagate(n, d.copy())
        for i in range(n - 1, -1, -1):
            c = self._components[i]
            diff_out = self._pool.backpropagate_buffers[i + 1]
            self._pool.set_backpropagate(i, c.backpropagate(fwd[i], fwd[i + 1], diff_out))
            if update and c.is_updatable():
                c.update(fwd[i], diff_out)
        return self._pool.backpropagate_buffers[0].copy()

    def feedforward(self, x) -> np.ndarray:
        """
        Run the inference forward pass.

        Uses forward buffers 0 and 1 alternately and releases both before
        returning, so no activation history is kept.
        """
        x = as_matrix(x)
        n = len(self._components)
        if n == 0:
            return x.copy()
        if n == 1:
            return self._components[0].propagate(x)

        try:
            self._pool.set_propagate(0, self._components[0].propagate(x))
            for i in range(1, n - 1):
                src = self._pool.propagate_buffers[(i - 1) % 2]
                self._pool.set_propagate(i % 2, self._components[i].propagate(src))
            return self._components[n - 1].propagate(
                self._pool.propagate_buffers[(n - 2) % 2]
            )
        finally:
            self._pool.release(0)
            self._pool.release(1)

    # ------------------------------------------------------------------
    # Two-step update
    # ------------------------------------------------------------------
    def compute_gradients(self) -> List[Any]:
        """
        Compute the gradient record of every component from the buffers of
        the last `propagate` / `backpropagate(update=False)` pair.

        Returns
        -------
        List[Any]
            One record per component, None for non-updatable ones.
        """
        fwd = self._pool.propagate_buffers
        bwd = self._pool.backpropagate_buffers
        return [
            c.compute_gradient(fwd[i], bwd[i + 1]) if c.is_updatable() else None
            for i, c in enumerate(self._components)
        ]

    def apply_gradients(self, records: Sequence[Any]) -> None:
        """Apply records produced by `compute_gradients`, component by component."""
        if len(records) != len(self._components):
            raise ValueError(
                f"Got {len(records)} gradient records for "
                f"{len(self._components)} components"
            )
        for c, r in zip(self._components, records):
            if c.is_updatable():
                c.apply_gradient(r)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    def _after_resize(self) -> None:
        self._pool.resize(len(self._components))
        self.check()

    def append_component(self, component: IComponent) -> None:
        """Append a component, taking ownership of it."""
        self._components.append(self._validate_component(component))
        self._after_resize()

    def append_nnet(self, other: "Nnet") -> None:
        """Append duplicates of every component of `other`, in order."""
        if not isinstance(other, Nnet):
            raise TypeError(f"Expected Nnet, got {type(other).__name__}")
        for c in list(other):
            self.append_component(c.duplicate())

    def remove_component(self, index: int) -> None:
        """Remove the component at `index` and drop it."""
        self._check_index(index)
        del self._components[index]
        self._after_resize()

    def remove_last_component(self) -> None:
        self.remove_component(len(self._components) - 1)

    def set_component(self, index: int, component: IComponent) -> None:
        """Replace the component at `index`, dropping the old one."""
        self._check_index(index)
        self._components[index] = self._validate_component(component)
        self._after_resize()

    def get_component(self, index: int) -> IComponent:
        self._check_index(index)
        return self._components[index]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._components):
            raise IndexError(
                f"Component index {index} out of range for a network of "
                f"{len(self._components)} components"
            )

    def __getitem__(self, index: int) -> IComponent:
        return self.get_component(index)

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[IComponent]:
        return iter(self._components)

    def num_components(self) -> int:
        return len(self._components)

    def input_dim(self) -> int:
        """Input dimension of the first component."""
        if not self._components:
            raise StructuralError("Empty network has no input dimension")
        return self._components[0].input_dim

    def output_dim(self) -> int:
        """Output dimension of the last component."""
        if not self._components:
            raise StructuralError("Empty network has no output dimension")
        return self._components[-1].output_dim

    @property
    def propagate_buffers(self) -> tuple[np.ndarray, ...]:
        return self._pool.propagate_buffers

    @property
    def backpropagate_buffers(self) -> tuple[np.ndarray, ...]:
        return self._pool.backpropagate_buffers

    def check(self) -> None:
        """Validate buffer counts, dimension chaining and parameter finiteness."""
        check_consistency(self._components, self._pool)

    def destroy(self) -> None:
        """Drop every component and buffer, leaving a valid empty network."""
        self._components.clear()
        self._pool.clear()
        self._pool.resize(0)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def num_params(self) -> int:
        return _parameter_codec.num_params(self._components)

    def get_params(self) -> np.ndarray:
        return _parameter_codec.get_params(self._components)

    def set_params(self, params) -> None:
        _parameter_codec.set_params(self._components, params)

    def get_gradient(self) -> np.ndarray:
        return _parameter_codec.get_gradient(self._components)

    def get_weights(self) -> np.ndarray:
        return _parameter_codec.get_weights(self._components)

    def set_weights(self, weights) -> None:
        _parameter_codec.set_weights(self._components, weights)

    # ------------------------------------------------------------------
    # Training configuration
    # ------------------------------------------------------------------
    @property
    def train_options(self) -> TrainOptions:
        return self._opts

    def set_train_options(self, opts: TrainOptions) -> None:
        """Store `opts` and hand it to every updatable component."""
        if not isinstance(opts, TrainOptions):
            raise TypeError(f"Expected TrainOptions, got {type(opts).__name__}")
        self._opts = opts
        for c in self._components:
            if c.is_updatable():
                c.set_train_options(opts)

    def set_dropout_retention(self, r: float) -> None:
        """Set the retention probability of every dropout component."""
        for i, c in enumerate(self._components):
            setter = getattr(c, "set_dropout_retention", None)
            if callable(setter):
                old = c.dropout_retention
                setter(r)
                logger.info(
                    "Setting dropout-retention in component %d from %g to %g",
                    i,
                    old,
                    c.dropout_retention,
                )

    def reset_streams(self, flags: Sequence[bool]) -> None:
        """
        Restart the flagged streams of every recurrent component.

        Recurrent components switch to carrying their per-stream hidden state
        from one forward pass into the next.
        """
        flags = [bool(f) for f in flags]
        for c in self._components:
            reset = getattr(c, "reset_streams", None)
            if callable(reset):
                reset(flags)

    def set_seq_lengths(self, lengths: Sequence[int]) -> None:
        """Set the per-stream sequence lengths of every recurrent component."""
        lengths = [int(v) for v in lengths]
        for c in self._components:
            setter = getattr(c, "set_seq_lengths", None)
            if callable(setter):
                setter(lengths)

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------
    def copy(self) -> "Nnet":
        """Return an independent deep copy with the same training options."""
        return type(self)((c.duplicate() for c in self._components), self._opts)

    def assign(self, other: "Nnet") -> None:
        """Replace this network's contents with duplicates of `other`'s."""
        if not isinstance(other, Nnet):
            raise TypeError(f"Expected Nnet, got {type(other).__name__}")
        if other is self:
            return
        components = [c.duplicate() for c in other]
        self.destroy()
        self._components.extend(components)
        self._pool.resize(len(self._components))
        self.set_train_options(other.train_options)
        self.check()

    def __copy__(self) -> "Nnet":
        return self.copy()

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Nnet":
        return self.copy()

    # ------------------------------------------------------------------
    # Token-stream persistence
    # ------------------------------------------------------------------
    def init(self, proto_path: str | Path) -> None:
        """
        Append freshly initialized components described by a prototype file.

        Each non-blank line other than ``<NnetProto>`` / ``</NnetProto>``
        describes one component, e.g.
        ``<AffineTransform> <InputDim> 40 <OutputDim> 10 <ParamStddev> 0.1``.
        """
        p = Path(proto_path)
        with p.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                logger.debug(line)
                if line.split()[0] in _PROTO_SENTINELS:
                    continue
                self.append_component(init_component(line))
        self.check()

    def read(self, path: str | Path) -> None:
        """
        Append the components stored in a model file.

        The encoding is detected from the binary header. An empty network is
        accepted with a warning.
        """
        p = Path(path)
        with p.open("rb") as f:
            binary = detect_binary(f)
            self.read_stream(f, binary)
        if not self._components:
            logger.warning("The network '%s' is empty.", p)

    def read_stream(self, stream: BinaryIO, binary: bool) -> None:
        """Read a network from an open stream positioned after any header."""
        self._read_body(TokenReader(stream, binary))

    def _read_body(self, reader: ITokenReader) -> None:
        if reader.peek_token() == "<Nnet>":
            reader.read_token()
        while True:
            comp = read_component(reader, "</Nnet>")
            if comp is None:
                break
            if self._components and self._components[-1].output_dim != comp.input_dim:
                raise StreamFormatError(
                    f"Dimensionality mismatch! Previous layer output: "
                    f"{self._components[-1].output_dim} Current layer input: "
                    f"{comp.input_dim}"
                )
            self._components.append(comp)

        self._pool.resize(len(self._components))
        self.set_train_options(replace(self._opts, learn_rate=0.0))
        self.check()

    def write(self, path: str | Path, binary: bool = True) -> None:
        """Write the network to a model file, binary by default."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with p.open("wb") as f:
            writer = TokenWriter(f, binary)
            writer.write_header()
            self._write_body(writer)

    def write_stream(self, stream: BinaryIO, binary: bool) -> None:
        """Write the network to an open stream without a binary header."""
        self._write_body(TokenWriter(stream, binary))

    def _write_body(self, writer: ITokenWriter) -> None:
        self.check()
        writer.write_token("<Nnet>")
        writer.newline()
        for c in self._components:
            c.write(writer)
        writer.write_token("</Nnet>")
        writer.newline()

    # ------------------------------------------------------------------
    # JSON configuration and checkpoints
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        return {"components": [component_to_config(c) for c in self._components]}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        return cls(component_from_config(node) for node in cfg.get("components", []))

    def save_json(self, path: str | Path) -> None:
        """
        Save the network architecture and parameters into a single JSON file.

        Format
        ------
        {
          "format": "nnetchain.json.ckpt.v1",
          "arch": [{"type": "<AffineTransform>", "config": {...}}, ...],
          "state": {
            "0.params": {"b64": "...", "dtype": "<f4", "shape": [...], "order": "C"},
            ...
          }
        }
        """
        self.check()
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)

        payload = {
            "format": CHECKPOINT_FORMAT,
            "arch": self.get_config()["components"],
            "state": extract_state_payload(self._components),
        }
        p.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

    @classmethod
    def load_json(cls, path: str | Path) -> Self:
        """
        Load a network from a checkpoint created by `save_json()`.

        Raises
        ------
        ValueError
            If the checkpoint format is unsupported or a blob has the wrong size.
        KeyError
            If the parameters of an updatable component are missing.
        """
        p = Path(path)
        payload = json.loads(p.read_text(encoding="utf-8"))

        fmt = payload.get("format")
        if fmt != CHECKPOINT_FORMAT:
            raise ValueError(f"Unsupported checkpoint format: {fmt!r}")

        nnet = cls.from_config({"components": payload["arch"]})
        load_state_payload_(nnet._components, payload.get("state", {}))
        nnet.check()
        return nnet

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def info(self) -> str:
        return _diagnostics.info(self._components)

    def info_gradient(self) -> str:
        return _diagnostics.info_gradient(self._components)

    def info_propagate(self) -> str:
        return _diagnostics.info_propagate(self._components, self._pool)

    def info_backpropagate(self) -> str:
        return _diagnostics.info_backpropagate(self._components, self._pool)

    def __repr__(self) -> str:
        inner = ", ".join(repr(c) for c in self._components)
        return f"Nnet([{inner}])"
