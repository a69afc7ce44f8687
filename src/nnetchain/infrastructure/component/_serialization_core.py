"""
Component registry and factories.

Every concrete component class is registered under its type marker (for
example ``"<AffineTransform>"``) with `@register_component()`. The registry
backs the three ways a component is constructed from outside Python code:

- `read_component`: from a record of the model stream.
- `init_component`: from one prototype line.
- `component_from_config`: from a JSON architecture node.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Type

from ...domain._errors import StreamFormatError
from ...domain._stream import ITokenReader

logger = logging.getLogger(__name__)

_COMPONENT_REGISTRY: dict[str, Type[Any]] = {}


def register_component(marker: Optional[str] = None) -> Callable[[Type[Any]], Type[Any]]:
    """
    Decorator to register a component class under a type marker.

    Parameters
    ----------
    marker : Optional[str]
        The marker token, defaults to ``"<ClassName>"``. It is also stored on
        the class as `MARKER`.
    """

    def deco(cls: Type[Any]) -> Type[Any]:
        key = marker or f"<{cls.__name__}>"
        if not (key.startswith("<") and key.endswith(">")):
            raise ValueError(f"Component marker must look like '<Name>', got {key!r}")
        cls.MARKER = key
        _COMPONENT_REGISTRY[key] = cls
        return cls

    return deco


def registered_markers() -> tuple[str, ...]:
    """Return the sorted markers of all registered component classes."""
    return tuple(sorted(_COMPONENT_REGISTRY))


def _lookup(marker: str) -> Type[Any]:
    try:
        return _COMPONENT_REGISTRY[marker]
    except KeyError:
        raise ValueError(
            f"Unknown component type '{marker}'. Register it via @register_component."
        ) from None


def read_component(reader: ITokenReader, end_token: str = "</Nnet>") -> Any:
    """
    Read one component record from a model stream.

    Parameters
    ----------
    reader : ITokenReader
        Source positioned at a component marker or at `end_token`.
    end_token : str
        Token closing the enclosing network.

    Returns
    -------
    Component or None
        The component, or None once `end_token` has been consumed.

    Raises
    ------
    StreamFormatError
        On end of stream, an unknown marker, or a malformed record.
    """
    marker = reader.read_token()
    if marker == end_token:
        return None
    if marker not in _COMPONENT_REGISTRY:
        raise StreamFormatError(f"Unknown component marker {marker!r} in model stream")

    cls = _COMPONENT_REGISTRY[marker]
    output_dim = reader.read_int()
    input_dim = reader.read_int()
    try:
        comp = cls._for_read(input_dim, output_dim)
        comp._read_data(reader)
    except ValueError as e:
        raise StreamFormatError(f"Invalid {marker} record: {e}") from e
    return comp


def parse_proto_line(line: str) -> tuple[str, Dict[str, str]]:
    """
    Split a prototype line into its marker and ``<Option> value`` pairs.

    Values of an option run until the next ``<...>`` token and are joined by
    single spaces, so options may carry several values.

    Raises
    ------
    ValueError
        If the line is empty, does not start with a marker, or an option is
        given twice.
    """
    words = line.split()
    if not words or not words[0].startswith("<"):
        raise ValueError(f"Prototype line must start with a component marker: {line!r}")

    marker, options = words[0], {}
    key: Optional[str] = None
    values: List[str] = []
    for w in words[1:] + ["<>"]:
        if w.startswith("<") and w.endswith(">"):
            if key is not None:
                if key in options:
                    raise ValueError(f"Duplicate prototype option {key} in {line!r}")
                options[key] = " ".join(values)
            key, values = w, []
        elif key is None:
            raise ValueError(f"Value {w!r} before any option in {line!r}")
        else:
            values.append(w)
    return marker, options


def init_component(line: str) -> Any:
    """
    Build a freshly initialized component from one prototype line.

    Example
    -------
    ``<AffineTransform> <InputDim> 40 <OutputDim> 10 <ParamStddev> 0.05``

    Raises
    ------
    ValueError
        If the marker is unknown, `<InputDim>` / `<OutputDim>` are missing or
        not integers, or the component rejects an option.
    """
    marker, options = parse_proto_line(line)
    cls = _lookup(marker)

    dims = []
    for key in ("<InputDim>", "<OutputDim>"):
        if key not in options:
            raise ValueError(f"Prototype for {marker} is missing {key}")
        try:
            dims.append(int(options.pop(key)))
        except ValueError as e:
            raise ValueError(f"{key} of {marker} must be an integer") from e

    logger.debug("Initializing %s %d -> %d with %s", marker, dims[0], dims[1], options)
    return cls.from_proto(dims[0], dims[1], options)


def component_to_config(c: Any) -> dict[str, Any]:
    """
    Convert a component into a JSON-serializable architecture node.

    Node format
    -----------
    {"type": "<AffineTransform>", "config": {...}}
    """
    return {"type": c.get_type(), "config": c.get_config()}


def component_from_config(node: dict[str, Any]) -> Any:
    """
    Rebuild a component from an architecture node.

    Raises
    ------
    ValueError
        If the type marker is not registered.
    """
    cls = _lookup(str(node["type"]))
    return cls.from_config(node.get("config", {}) or {})
