"""
Weight initialization public API.

Importing this module registers every built-in initializer (Xavier, Kaiming,
Gaussian, uniform and constants) in the `WeightInitializer` registry as a
side effect, so they can be selected by name from component constructors and
prototype lines.
"""

from ._xavier import *
from ._kaiming import *
from ._random import *
from ._constants import *
from ._base import WeightInitializer

__all__ = [
    WeightInitializer.__name__,
]
