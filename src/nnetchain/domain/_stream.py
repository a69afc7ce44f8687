"""
Model stream interface definitions.

Components persist themselves through a token-oriented stream that is either
human-readable text or compact binary. The same calls serve both encodings;
the `binary` flag chosen when the stream is opened is threaded through every
read and write.

These protocols describe the reader/writer surface components depend on, so
component implementations stay decoupled from the concrete codec.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .types._matrix import MatrixLike


@runtime_checkable
class ITokenWriter(Protocol):
    """
    Writer side of a model stream.
    """

    @property
    def binary(self) -> bool:
        """Whether the stream uses the binary encoding."""
        ...

    def write_token(self, token: str) -> None:
        """Write a marker token such as "<Nnet>"."""
        ...

    def write_int(self, value: int) -> None:
        """Write a 32-bit integer."""
        ...

    def write_float(self, value: float) -> None:
        """Write a 32-bit float."""
        ...

    def write_matrix(self, mat: MatrixLike) -> None:
        """Write a 2-D float matrix."""
        ...

    def write_vector(self, vec: MatrixLike) -> None:
        """Write a 1-D float vector."""
        ...

    def newline(self) -> None:
        """End the current line (text encoding only)."""
        ...


@runtime_checkable
class ITokenReader(Protocol):
    """
    Reader side of a model stream.
    """

    @property
    def binary(self) -> bool:
        """Whether the stream uses the binary encoding."""
        ...

    def read_token(self) -> str:
        """Read the next marker token."""
        ...

    def peek_token(self) -> Optional[str]:
        """Return the next token without consuming it, or None at end of stream."""
        ...

    def expect_token(self, token: str) -> None:
        """Read the next token and fail unless it equals `token`."""
        ...

    def read_int(self) -> int:
        """Read a 32-bit integer."""
        ...

    def read_float(self) -> float:
        """Read a 32-bit float."""
        ...

    def read_matrix(self) -> MatrixLike:
        """Read a 2-D float matrix."""
        ...

    def read_vector(self) -> MatrixLike:
        """Read a 1-D float vector."""
        ...
