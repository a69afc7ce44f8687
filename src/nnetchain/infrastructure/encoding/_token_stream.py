"""
Token-oriented model stream codec.

Networks and components persist themselves as a sequence of whitespace
separated tokens, integers, floats, vectors and matrices. Two encodings are
supported behind one `binary` flag:

Text
    Tokens and numbers are written as ASCII words followed by a space.
    Matrices are written as ``" [\\n  r0c0 r0c1 \\n  r1c0 r1c1 ]\\n"`` and
    vectors as ``" [ v0 v1 ]\\n"``.

Binary
    Tokens are ASCII followed by a single space. Integers are a one-byte size
    (4) followed by a little-endian int32; floats a one-byte size (4 or 8)
    followed by the IEEE value. Matrices are ``"FM "`` + rows + cols + raw
    row-major float32 data; vectors ``"FV "`` + dim + raw float32 data.
    Binary files start with the two-byte header ``b"\\0B"``.

`TokenWriter` and `TokenReader` satisfy the domain `ITokenWriter` /
`ITokenReader` protocols. Every decoding failure (end of stream, unexpected
token, malformed number, truncated payload) is reported as
`StreamFormatError`.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, List, Optional, Tuple

import numpy as np

from ...domain._errors import StreamFormatError

BINARY_HEADER = b"\0B"

_WHITESPACE = b" \t\n\r\v\f"


class TokenWriter:
    """
    Writes tokens and numeric data to a byte stream.

    Parameters
    ----------
    stream : BinaryIO
        Destination opened in binary mode (file, `io.BytesIO`, ...).
    binary : bool
        Selects the binary encoding when True, text otherwise.

    Notes
    -----
    The writer never emits the binary header itself; `write_header` does,
    and only the code that owns the file should call it.
    """

    def __init__(self, stream: BinaryIO, binary: bool) -> None:
        self._stream = stream
        self._binary = bool(binary)

    @property
    def binary(self) -> bool:
        return self._binary

    def write_header(self) -> None:
        """Write the binary header when the stream is binary."""
        if self._binary:
            self._stream.write(BINARY_HEADER)

    def write_token(self, token: str) -> None:
        if not token or any(c.isspace() for c in token):
            raise ValueError(f"Invalid token: {token!r}")
        self._stream.write(token.encode("ascii") + b" ")

    def write_int(self, value: int) -> None:
        if self._binary:
            self._stream.write(struct.pack("<bi", 4, int(value)))
        else:
            self._stream.write(f"{int(value)} ".encode("ascii"))

    def write_float(self, value: float) -> None:
        if self._binary:
            self._stream.write(struct.pack("<bf", 4, float(value)))
        else:
            self._stream.write(f"{_format_float(value)} ".encode("ascii"))

    def write_matrix(self, mat) -> None:
        m = np.asarray(mat, dtype=np.float32)
        if m.ndim != 2:
            raise ValueError(f"write_matrix expects a 2D array, got shape {m.shape}")

        if self._binary:
            self.write_token("FM")
            self.write_int(m.shape[0])
            self.write_int(m.shape[1])
            self._stream.write(np.ascontiguousarray(m, dtype="<f4").tobytes(order="C"))
            return

        if m.size == 0:
            self._stream.write(b" [ ]\n")
            return
        lines = [b" ["]
        for row in m:
            lines.append(
                b"  " + " ".join(_format_float(v) for v in row).encode("ascii") + b" "
            )
        self._stream.write(b"\n".join(lines) + b"]\n")

    def write_vector(self, vec) -> None:
        v = np.asarray(vec, dtype=np.float32).reshape(-1)

        if self._binary:
            self.write_token("FV")
            self.write_int(v.shape[0])
            self._stream.write(np.ascontiguousarray(v, dtype="<f4").tobytes(order="C"))
            return

        body = " ".join(_format_float(x) for x in v)
        self._stream.write(f" [ {body} ]\n".encode("ascii") if body else b" [ ]\n")

    def newline(self) -> None:
        if not self._binary:
            self._stream.write(b"\n")


class TokenReader:
    """
    Reads tokens and numeric data from a byte stream.

    Parameters
    ----------
    stream : BinaryIO
        Source opened in binary mode, positioned after any binary header.
    binary : bool
        Selects the binary encoding when True, text otherwise.

    Notes
    -----
    `peek_token` keeps the token it read in a one-slot pushback that the next
    `read_token` returns; only a token read may follow a peek.
    """

    def __init__(self, stream: BinaryIO, binary: bool) -> None:
        self._stream = stream
        self._binary = bool(binary)
        self._lookahead: Optional[bytes] = None
        self._pending: Optional[str] = None

    @property
    def binary(self) -> bool:
        return self._binary

    # ------------------------------------------------------------------
    # Byte-level helpers
    # ------------------------------------------------------------------
    def _peek_byte(self) -> bytes:
        if self._lookahead is None:
            self._lookahead = self._stream.read(1)
        return self._lookahead

    def _read_byte(self) -> bytes:
        b = self._peek_byte()
        self._lookahead = None
        return b

    def _read_exact(self, n: int) -> bytes:
        out = b""
        if n > 0 and self._lookahead:
            out = self._lookahead
            self._lookahead = None
        if len(out) < n:
            out += self._stream.read(n - len(out))
        if len(out) != n:
            raise StreamFormatError(
                f"Unexpected end of stream: wanted {n} bytes, got {len(out)}"
            )
        return out

    def _skip_whitespace(self, newlines: bool = True) -> None:
        ws = _WHITESPACE if newlines else b" \t\r\v\f"
        while True:
            b = self._peek_byte()
            if not b or b not in ws:
                return
            self._read_byte()

    def _read_word(self) -> Optional[str]:
        if not self._binary:
            self._skip_whitespace()
        chars: List[bytes] = []
        while True:
            b = self._peek_byte()
            if not b or b in _WHITESPACE:
                break
            chars.append(self._read_byte())
        if not chars:
            return None
        # binary tokens carry exactly one trailing space
        if self._binary and self._peek_byte() == b" ":
            self._read_byte()
        try:
            return b"".join(chars).decode("ascii")
        except UnicodeDecodeError as e:
            raise StreamFormatError(f"Non-ASCII token in model stream: {e}") from e

    def _require_word(self, what: str) -> str:
        word = self._read_word()
        if word is None:
            raise StreamFormatError(f"Unexpected end of stream while reading {what}")
        return word

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------
    def read_token(self) -> str:
        if self._pending is not None:
            tok, self._pending = self._pending, None
            return tok
        return self._require_word("a token")

    def peek_token(self) -> Optional[str]:
        if self._pending is None:
            self._pending = self._read_word()
        return self._pending

    def expect_token(self, token: str) -> None:
        got = self.read_token()
        if got != token:
            raise StreamFormatError(f"Expected token {token!r}, got {got!r}")

    def at_end(self) -> bool:
        """Return True if nothing but whitespace remains."""
        return self.peek_token() is None

    # ------------------------------------------------------------------
    # Numbers
    # ------------------------------------------------------------------
    def read_int(self) -> int:
        if self._binary:
            size = self._read_exact(1)[0]
            if size != 4:
                raise StreamFormatError(f"Expected int32 size marker 4, got {size}")
            return int(struct.unpack("<i", self._read_exact(4))[0])

        word = self._require_word("an integer")
        try:
            return int(word)
        except ValueError as e:
            raise StreamFormatError(f"Malformed integer {word!r}") from e

    def read_float(self) -> float:
        if self._binary:
            size = self._read_exact(1)[0]
            if size == 4:
                return float(struct.unpack("<f", self._read_exact(4))[0])
            if size == 8:
                return float(struct.unpack("<d", self._read_exact(8))[0])
            raise StreamFormatError(f"Unsupported float size marker {size}")

        word = self._require_word("a float")
        return _parse_float(word)

    # ------------------------------------------------------------------
    # Arrays
    # ------------------------------------------------------------------
    def read_matrix(self) -> np.ndarray:
        if self._binary:
            self.expect_token("FM")
            rows, cols = self.read_int(), self.read_int()
            if rows < 0 or cols < 0:
                raise StreamFormatError(f"Negative matrix size {rows}x{cols}")
            data = self._read_exact(rows * cols * 4)
            return np.frombuffer(data, dtype="<f4").astype(np.float32).reshape(rows, cols)

        self.expect_token("[")
        rows_data: List[List[float]] = []
        current: List[float] = []
        while True:
            self._skip_whitespace(newlines=False)
            b = self._peek_byte()
            if not b:
                raise StreamFormatError("Unexpected end of stream inside matrix")
            if b == b"\n":
                self._read_byte()
                if current:
                    rows_data.append(current)
                    current = []
                continue
            word = self._require_word("a matrix element")
            if word == "]":
                break
            if word.endswith("]"):
                current.append(_parse_float(word[:-1]))
                break
            current.append(_parse_float(word))
        if current:
            rows_data.append(current)

        return _rows_to_matrix(rows_data)

    def read_vector(self) -> np.ndarray:
        if self._binary:
            self.expect_token("FV")
            dim = self.read_int()
            if dim < 0:
                raise StreamFormatError(f"Negative vector size {dim}")
            data = self._read_exact(dim * 4)
            return np.frombuffer(data, dtype="<f4").astype(np.float32)

        self.expect_token("[")
        values: List[float] = []
        while True:
            word = self._require_word("a vector element")
            if word == "]":
                break
            values.append(_parse_float(word))
        return np.asarray(values, dtype=np.float32)


def detect_binary(stream: BinaryIO) -> bool:
    """
    Consume the binary header if present and report the encoding.

    Parameters
    ----------
    stream : BinaryIO
        Seekable stream positioned at the start of a model.

    Returns
    -------
    bool
        True if the stream starts with the binary header (which is consumed),
        False otherwise (the stream is rewound to where it started).
    """
    start = stream.tell()
    head = stream.read(len(BINARY_HEADER))
    if head == BINARY_HEADER:
        return True
    stream.seek(start)
    return False


def _format_float(value: float) -> str:
    # 9 significant digits round-trip any float32
    return f"{float(np.float32(value)):.9g}"


def _parse_float(word: str) -> float:
    try:
        return float(word)
    except ValueError as e:
        raise StreamFormatError(f"Malformed float {word!r}") from e


def _rows_to_matrix(rows: List[List[float]]) -> np.ndarray:
    if not rows:
        return np.zeros((0, 0), dtype=np.float32)
    widths: Tuple[int, ...] = tuple(sorted({len(r) for r in rows}))
    if len(widths) != 1:
        raise StreamFormatError(f"Ragged matrix rows, widths {widths}")
    return np.asarray(rows, dtype=np.float32)
