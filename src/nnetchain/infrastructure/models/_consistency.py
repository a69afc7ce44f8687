from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from ...domain._errors import NumericalDivergenceError, StructuralError
from ._buffer_pool import BufferPool
from ._parameter_codec import get_params


def check_consistency(components: Sequence[Any], pool: BufferPool) -> None:
    """
    Validate the structural and numerical invariants of a network.

    Checks, in order:

    1. Both buffer lists hold exactly `len(components) + 1` buffers.
    2. Every component's output dim equals the next component's input dim.
    3. The sum of all parameters is finite.

    Raises
    ------
    StructuralError
        On a buffer-count or dimension violation.
    NumericalDivergenceError
        If the parameter sum is `inf` or `nan`.
    """
    expected = len(components) + 1
    for name, bufs in (
        ("forward", pool.propagate_buffers),
        ("backward", pool.backpropagate_buffers),
    ):
        if len(bufs) != expected:
            raise StructuralError(
                f"Network holds {len(bufs)} {name} buffers, expected {expected}"
            )

    for i in range(len(components) - 1):
        out_dim = components[i].output_dim
        next_in = components[i + 1].input_dim
        if out_dim != next_in:
            raise StructuralError(
                f"Component dimension mismatch, output-dim {out_dim} of "
                f"{components[i].get_type()} vs input-dim {next_in} of "
                f"{components[i + 1].get_type()}",
                index=i,
            )

    # a single float64 sum catches any non-finite parameter
    total = float(np.sum(get_params(components), dtype=np.float64))
    if np.isinf(total):
        raise NumericalDivergenceError("inf")
    if np.isnan(total):
        raise NumericalDivergenceError("nan")
