"""
Encodings used to persist networks.

- `_token_stream`: text / binary token streams for the native model format.
- `_b64`: base64 ndarray payloads for JSON checkpoints.
"""

from ._token_stream import BINARY_HEADER, TokenReader, TokenWriter, detect_binary
from ._b64 import ndarray_to_payload, payload_to_ndarray

__all__ = [
    "BINARY_HEADER",
    TokenReader.__name__,
    TokenWriter.__name__,
    detect_binary.__name__,
    ndarray_to_payload.__name__,
    payload_to_ndarray.__name__,
]
