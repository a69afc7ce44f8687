from __future__ import annotations

from typing import Any, Dict, Sequence

import numpy as np

from ..encoding._b64 import ndarray_to_payload, payload_to_ndarray


def _state_key(index: int) -> str:
    return f"{index}.params"


def extract_state_payload(components: Sequence[Any]) -> Dict[str, Dict[str, Any]]:
    """
    Extract the parameter blobs of updatable components into JSON payloads.

    Keys are ``"<index>.params"`` with the index of the component in the
    network; parameterless components contribute nothing.
    """
    out: dict[str, dict[str, Any]] = {}
    for i, c in enumerate(components):
        if c.is_updatable():
            out[_state_key(i)] = ndarray_to_payload(np.asarray(c.get_params()))
    return out


def load_state_payload_(
    components: Sequence[Any], payloads: Dict[str, Dict[str, Any]]
) -> None:
    """
    In-place load of parameter blobs from JSON payloads.

    Raises
    ------
    KeyError
        If an updatable component has no entry in the checkpoint.
    ValueError
        If a blob length does not match the component parameter count.
    """
    for i, c in enumerate(components):
        if not c.is_updatable():
            continue
        key = _state_key(i)
        if key not in payloads:
            raise KeyError(f"Missing parameter in checkpoint: '{key}'")

        arr = payload_to_ndarray(payloads[key]).reshape(-1)
        if arr.shape[0] != c.num_params():
            raise ValueError(
                f"Shape mismatch for '{key}': model ({c.num_params()},) "
                f"vs ckpt {arr.shape}"
            )
        c.set_params(arr)
