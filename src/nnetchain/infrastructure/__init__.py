"""
Infrastructure layer of nnetchain.

Importing this package registers every built-in component class with the
component registry, so model streams, prototype files and JSON checkpoints
can refer to them by marker.
"""

from ._component import Component, UpdatableComponent
from .fully_connected import AffineGradient, AffineTransform
from ._activations import Sigmoid, Softmax, Tanh
from .layers import Dropout
from .recurrent import RecurrentCell, RecurrentGradient
from .models import BufferPool, Nnet, check_consistency
from .composite import ParallelComponent, ParallelGradient
from .component import (
    init_component,
    read_component,
    register_component,
    registered_markers,
)
from .encoding import TokenReader, TokenWriter
from .utils import WeightInitializer

__all__ = [
    Component.__name__,
    UpdatableComponent.__name__,
    AffineGradient.__name__,
    AffineTransform.__name__,
    Sigmoid.__name__,
    Softmax.__name__,
    Tanh.__name__,
    Dropout.__name__,
    RecurrentCell.__name__,
    RecurrentGradient.__name__,
    BufferPool.__name__,
    Nnet.__name__,
    check_consistency.__name__,
    ParallelComponent.__name__,
    ParallelGradient.__name__,
    init_component.__name__,
    read_component.__name__,
    register_component.__name__,
    registered_markers.__name__,
    TokenReader.__name__,
    TokenWriter.__name__,
    WeightInitializer.__name__,
]
