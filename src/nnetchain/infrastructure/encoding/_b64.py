from __future__ import annotations

import base64
from typing import Any, Dict

import numpy as np


def bytes_to_b64_str(b: bytes) -> str:
    """
    Encode raw bytes into a base64 ASCII string (JSON-safe).
    """
    return base64.b64encode(b).decode("ascii")


def b64_str_to_bytes(s: str) -> bytes:
    """
    Decode a base64 ASCII string back into raw bytes.
    """
    return base64.b64decode(s.encode("ascii"))


def ndarray_to_payload(arr: np.ndarray) -> Dict[str, Any]:
    """
    Serialize a parameter array into a JSON-safe payload.

    Parameters are always stored as little-endian float32, the storage type of
    every component.

    Returns
    -------
    dict
        {
          "b64": "<base64>",
          "dtype": "<f4",
          "shape": [...],
          "order": "C"
        }
    """
    a = np.ascontiguousarray(arr, dtype="<f4")
    return {
        "b64": bytes_to_b64_str(a.tobytes(order="C")),
        "dtype": a.dtype.str,
        "shape": list(a.shape),
        "order": "C",
    }


def payload_to_ndarray(payload: Dict[str, Any]) -> np.ndarray:
    """
    Deserialize a JSON payload back into an owning float32 ndarray.

    Raises
    ------
    ValueError
        If the byte count does not match the declared dtype and shape.
    """
    b = b64_str_to_bytes(str(payload["b64"]))
    dtype = np.dtype(str(payload.get("dtype", "<f4")))
    shape = tuple(int(x) for x in payload["shape"])

    expected = int(np.prod(shape, dtype=np.int64)) * dtype.itemsize
    if len(b) != expected:
        raise ValueError(
            f"Payload holds {len(b)} bytes, expected {expected} for "
            f"dtype={dtype.str} shape={shape}"
        )

    arr = np.frombuffer(b, dtype=dtype).reshape(shape)
    return np.array(arr, dtype=np.float32, copy=True, order="C")
