"""
Human-readable network reports.

The reports list the topology and moment statistics of parameters, gradients
and pass buffers. Their layout is meant for people reading logs; it is not a
stable format.
"""

from __future__ import annotations

from typing import Any, Sequence

from ..utils._statistics import moment_statistics
from ._buffer_pool import BufferPool
from ._parameter_codec import num_params


def _dim_or_none(components: Sequence[Any], attr: str) -> str:
    if not components:
        return "none"
    c = components[0] if attr == "input_dim" else components[-1]
    return str(getattr(c, attr))


def info(components: Sequence[Any]) -> str:
    """Topology, parameter count and per-component parameter statistics."""
    lines = [
        f"num-components {len(components)}",
        f"input-dim {_dim_or_none(components, 'input_dim')}",
        f"output-dim {_dim_or_none(components, 'output_dim')}",
        f"number-of-parameters {num_params(components) / 1e6:g} millions",
    ]
    for i, c in enumerate(components):
        lines.append(
            f"component {i + 1} : {c.get_type()}, input-dim {c.input_dim}, "
            f"output-dim {c.output_dim}, {c.info()}"
        )
    return "\n".join(lines) + "\n"


def info_gradient(components: Sequence[Any]) -> str:
    """Statistics of the most recent gradient of each component."""
    lines = ["", "### Gradient stats :"]
    for i, c in enumerate(components):
        lines.append(f"Component {i + 1} : {c.get_type()}, {c.info_gradient()}")
    return "\n".join(lines) + "\n"


def _buffer_report(
    components: Sequence[Any],
    bufs,
    title: str,
    input_label: str,
    label: str,
    nested_attr: str,
) -> str:
    lines = ["", title]
    if bufs:
        lines.append(f"[0] {input_label} of <Input> {moment_statistics(bufs[0])}")
    for i, c in enumerate(components):
        stats = moment_statistics(bufs[i + 1]) if i + 1 < len(bufs) else "( missing )"
        lines.append(f"[{i + 1}] {label} of {c.get_type()} {stats}")
        nested = getattr(c, nested_attr, None)
        if callable(nested):
            report = nested()
            if report:
                lines.append(report.rstrip("\n"))
    return "\n".join(lines) + "\n"


def info_propagate(components: Sequence[Any], pool: BufferPool) -> str:
    """Statistics of every forward buffer, recursing into nested networks."""
    return _buffer_report(
        components,
        pool.propagate_buffers,
        "### Forward propagation buffer content :",
        "output",
        "output",
        "info_propagate",
    )


def info_backpropagate(components: Sequence[Any], pool: BufferPool) -> str:
    """Statistics of every backward buffer, recursing into nested networks."""
    return _buffer_report(
        components,
        pool.backpropagate_buffers,
        "### Backward propagation buffer content :",
        "diff",
        "diff-output",
        "info_backpropagate",
    )
