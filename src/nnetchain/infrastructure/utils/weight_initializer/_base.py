"""
Weight initializer registry and dispatch utilities.

Initializers are plain functions registered by name. Each one fills a NumPy
array in place and returns it, which lets components allocate their parameter
storage once and delegate only the filling:

    @WeightInitializer.register_initializer("kaiming")
    def kaiming(arr: np.ndarray) -> np.ndarray:
        ...

    WeightInitializer("kaiming")(self.linearity)
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, TypeVar

import numpy as np

from ....domain.utils._weight_initialization import _WeightInitializer

T = TypeVar("T", bound=Callable[..., np.ndarray])


class WeightInitializer(_WeightInitializer):
    """
    Registry-backed weight initializer dispatcher.

    Notes
    -----
    - Initializers are stored by string name in a class-level registry.
    - An initializer must mutate `arr` in place and return it.
    """

    INITIALIZERS: ClassVar[Dict[str, Callable[..., np.ndarray]]] = {}

    def __init__(self, initializer_name: str) -> None:
        try:
            self._initializer: Callable[..., np.ndarray] = self.INITIALIZERS[
                initializer_name
            ]
        except KeyError as e:
            available = ", ".join(sorted(self.INITIALIZERS)) or "<none>"
            raise ValueError(
                f"Unsupported initializer name: {initializer_name!r}. "
                f"Available: {available}"
            ) from e
        self.name = initializer_name

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[T], T]:
        """
        Decorator to register a weight initializer under `name`.

        Parameters
        ----------
        name:
            Registry key used to retrieve the initializer later.
        overwrite:
            If False (default), raises if `name` is already registered.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Initializer name must be a non-empty string")

        def decorator(func: T) -> T:
            if not overwrite and name in cls.INITIALIZERS:
                raise ValueError(f"Initializer already registered: {name!r}")
            cls.INITIALIZERS[name] = func
            return func

        return decorator

    @classmethod
    def available(cls) -> tuple[str, ...]:
        """Return registered initializer names (sorted)."""
        return tuple(sorted(cls.INITIALIZERS))

    @classmethod
    def get(cls, name: str) -> Callable[..., np.ndarray]:
        """Get a registered initializer callable by name."""
        return cls.INITIALIZERS[name]

    def __call__(self, arr: np.ndarray, *args: Any, **kwargs: Any) -> np.ndarray:
        return self._initializer(arr, *args, **kwargs)
