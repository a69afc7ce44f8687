"""
Abstract interfaces and utilities for weight initialization.

This module defines the abstract base class for the initializer dispatcher
used by trainable components, along with the fan-in / fan-out helpers shared
by concrete initialization strategies.

The registry and the strategies themselves live in the infrastructure layer;
this module only fixes the contract and the shape arithmetic.
"""

from abc import ABC
from typing import Any, Callable, Dict, Tuple, TypeVar

from ..types._matrix import MatrixLike

T = TypeVar("T", bound=Callable[..., MatrixLike])


class _WeightInitializer(ABC):
    """
    Abstract base class for weight initializer dispatchers.

    Design notes
    ------------
    - Initializers are identified by string names.
    - Each initializer is a callable that fills an array in place and
      returns it.
    """

    INITIALIZERS: Dict[str, Callable] = {}

    def __init__(self, initializer_name: str) -> None:
        """
        Construct a dispatcher bound to one registered initializer.

        Parameters
        ----------
        initializer_name:
            The registry key of the initializer.
        """
        ...

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[T], T]:
        """
        Return a decorator registering an initializer under `name`.
        """
        ...

    @classmethod
    def available(cls) -> Tuple[str, ...]:
        """
        Return the sorted names of all registered initializers.
        """
        ...

    @classmethod
    def get(cls, name: str) -> Callable[..., MatrixLike]:
        """
        Return the initializer callable registered under `name`.
        """
        ...

    def __call__(self, array: MatrixLike, *args: Any, **kwargs: Any) -> MatrixLike:
        """
        Apply the bound initializer to `array` in place.
        """
        ...


def _calculate_fan_in(shape: Tuple[int, ...]) -> int:
    """
    Compute the fan-in of a parameter shape.

    Parameters
    ----------
    shape:
        Shape of the parameter array. Weight matrices are laid out as
        `(output_dim, input_dim)`.

    Returns
    -------
    int
        The number of inputs feeding one output unit.
    """
    if len(shape) == 0:
        return 1
    if len(shape) == 1:
        return int(shape[0])
    return int(shape[1])


def _calculate_fan_in_and_fan_out(shape: Tuple[int, ...]) -> Tuple[int, int]:
    """
    Compute (fan_in, fan_out) of a parameter shape.

    Parameters
    ----------
    shape:
        Shape of the parameter array, `(output_dim, input_dim)` for matrices.

    Returns
    -------
    Tuple[int, int]
        Fan-in and fan-out.

    Raises
    ------
    ValueError
        If the shape has more than two dimensions; components only carry
        vectors and matrices.
    """
    if len(shape) == 0:
        return 1, 1
    if len(shape) == 1:
        return int(shape[0]), int(shape[0])
    if len(shape) == 2:
        fan_out, fan_in = shape
        return int(fan_in), int(fan_out)
    raise ValueError(f"Expected a vector or matrix shape, got {shape}")
