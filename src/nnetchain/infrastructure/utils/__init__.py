from ._matrix import as_matrix, as_param_vector, empty_matrix, l1_shrink_
from ._statistics import moment_statistics
from .weight_initializer import WeightInitializer

__all__ = [
    as_matrix.__name__,
    as_param_vector.__name__,
    empty_matrix.__name__,
    l1_shrink_.__name__,
    moment_statistics.__name__,
    WeightInitializer.__name__,
]
