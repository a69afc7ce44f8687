"""
Domain layer of nnetchain.

Backend-agnostic contracts (component protocols, stream protocols), the
training configuration record, and the fatal error types. Nothing here
depends on NumPy.
"""

from ._errors import (
    NnetError,
    StructuralError,
    NumericalDivergenceError,
    UnsupportedCapabilityError,
    StreamFormatError,
)
from ._train_options import TrainOptions
from ._component import IComponent, IUpdatableComponent, IWeightMarshaling
from ._stream import ITokenReader, ITokenWriter

__all__ = [
    NnetError.__name__,
    StructuralError.__name__,
    NumericalDivergenceError.__name__,
    UnsupportedCapabilityError.__name__,
    StreamFormatError.__name__,
    TrainOptions.__name__,
    IComponent.__name__,
    IUpdatableComponent.__name__,
    IWeightMarshaling.__name__,
    ITokenReader.__name__,
    ITokenWriter.__name__,
]
