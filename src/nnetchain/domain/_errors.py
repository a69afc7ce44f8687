"""
Network-level exceptions for nnetchain.

This module defines the fatal error conditions raised by the network container
and its collaborators. None of them are meant to be caught and retried: each
signals a programming error (broken topology, unsupported access path) or
corrupted data (diverged parameters, malformed model streams), and the
operation that discovered it is abandoned.

All errors derive from `NnetError`, itself a `RuntimeError`, so callers can
catch the whole family at a process boundary if they need to.
"""

from __future__ import annotations

from typing import Optional


class NnetError(RuntimeError):
    """
    Base class of every fatal nnetchain error.
    """


class StructuralError(NnetError):
    """
    Raised when the network topology violates a structural invariant.

    Two conditions are structural:

    - adjacent components disagree on dimensions
      (`component[i].output_dim != component[i + 1].input_dim`)
    - the propagate/backpropagate buffer lists do not hold exactly
      `num_components + 1` entries

    Attributes
    ----------
    index : Optional[int]
        Index of the offending component (the left one of a mismatching
        pair), or None when the violation is not tied to one component.
    """

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        """
        Initialize the StructuralError.

        Parameters
        ----------
        message : str
            Human-readable description of the violation.
        index : Optional[int], optional
            Index of the component where the violation was detected.
        """
        if index is not None:
            message = f"{message} (component {index})"
        super().__init__(message)
        self.index = index


class NumericalDivergenceError(NnetError):
    """
    Raised when the network parameters are no longer finite.

    The check looks only at the sum of all flattened parameters,
    so the error reports which kind of non-finite value poisoned the sum
    rather than where it sits.

    Attributes
    ----------
    kind : str
        Either "inf" or "nan".
    """

    _HINTS = {
        "inf": "weight explosion, try lower learning rate?",
        "nan": "try lower learning rate?",
    }

    def __init__(self, kind: str) -> None:
        """
        Initialize the NumericalDivergenceError.

        Parameters
        ----------
        kind : str
            "inf" or "nan".
        """
        hint = self._HINTS.get(kind, "")
        super().__init__(f"'{kind}' in network parameters ({hint})")
        self.kind = kind


class UnsupportedCapabilityError(NnetError):
    """
    Raised when a component is asked for a capability its kind does not offer.

    Vectorized weight marshaling (`get_weights` / `set_weights`) is only
    implemented by components that opt in to it. Any other updatable component
    met on that path stops the operation instead of being skipped.

    Attributes
    ----------
    capability : str
        Name of the requested capability (e.g. "weight marshaling").
    component_type : str
        Type marker of the offending component (e.g. "<RecurrentCell>").
    index : Optional[int]
        Position of the component in the network, if known.
    """

    def __init__(
        self, capability: str, component_type: str, index: Optional[int] = None
    ) -> None:
        """
        Initialize the UnsupportedCapabilityError.

        Parameters
        ----------
        capability : str
            The capability that was requested.
        component_type : str
            Type marker of the component lacking it.
        index : Optional[int], optional
            Component index within the network.
        """
        where = f" at index {index}" if index is not None else ""
        super().__init__(
            f"Unimplemented {capability} of updatable component "
            f"{component_type}{where}."
        )
        self.capability = capability
        self.component_type = component_type
        self.index = index


class StreamFormatError(NnetError):
    """
    Raised when a persisted model stream cannot be decoded.

    Covers truncated streams (end of stream before the closing token),
    unexpected or unknown tokens, malformed numeric fields, and dimension
    mismatches between successively read components.
    """
