"""
nnetchain: chain heterogeneous layers into one trainable network.

The public entry point is `Nnet`, an ordered chain of components with
training (`propagate` / `backpropagate`) and inference (`feedforward`)
passes, flat parameter access, and text/binary/JSON persistence.
"""

from .domain import (
    NnetError,
    NumericalDivergenceError,
    StreamFormatError,
    StructuralError,
    TrainOptions,
    UnsupportedCapabilityError,
)
from .infrastructure import (
    AffineTransform,
    Dropout,
    Nnet,
    ParallelComponent,
    RecurrentCell,
    Sigmoid,
    Softmax,
    Tanh,
)

__version__ = "1.0.0"

__all__ = [
    NnetError.__name__,
    NumericalDivergenceError.__name__,
    StreamFormatError.__name__,
    StructuralError.__name__,
    TrainOptions.__name__,
    UnsupportedCapabilityError.__name__,
    AffineTransform.__name__,
    Dropout.__name__,
    Nnet.__name__,
    ParallelComponent.__name__,
    RecurrentCell.__name__,
    Sigmoid.__name__,
    Softmax.__name__,
    Tanh.__name__,
]
