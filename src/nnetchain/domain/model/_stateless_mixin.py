"""
Stateless component mixin.

This module defines `StatelessConfigMixin`, a helper mixin for components whose
behavior is fully determined by their class and their dimensions (fixed
activations, for instance).

It provides the persistence and configuration hooks such components need
without introducing special cases in the serializers: the stream record has
no data section, the JSON config holds only the dimensions, and prototype
options are not accepted.
"""

from typing import Any, Dict, Mapping

from typing_extensions import Self

from .._stream import ITokenReader, ITokenWriter


class StatelessConfigMixin:
    """
    Mixin providing configuration and persistence hooks for stateless components.

    Classes using it must accept `(input_dim, output_dim)` in their constructor
    and expose `input_dim` / `output_dim` attributes.
    """

    def get_config(self) -> Dict[str, Any]:
        """
        Return a JSON-serializable configuration dictionary.

        Returns
        -------
        Dict[str, Any]
            The component dimensions.
        """
        return {
            "input_dim": int(self.input_dim),  # type: ignore[attr-defined]
            "output_dim": int(self.output_dim),  # type: ignore[attr-defined]
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        """
        Reconstruct the component from a configuration dictionary.

        Parameters
        ----------
        cfg : Dict[str, Any]
            Configuration produced by `get_config`.

        Returns
        -------
        StatelessConfigMixin
            A newly constructed component.
        """
        return cls(int(cfg["input_dim"]), int(cfg["output_dim"]))  # type: ignore[call-arg]

    @classmethod
    def from_proto(
        cls, input_dim: int, output_dim: int, options: Mapping[str, str]
    ) -> Self:
        """
        Build the component from a parsed prototype line.

        Raises
        ------
        ValueError
            If the prototype carries any option; stateless components take none.
        """
        if options:
            raise ValueError(
                f"{cls.__name__} takes no prototype options, got: "
                f"{', '.join(sorted(options))}"
            )
        return cls(input_dim, output_dim)  # type: ignore[call-arg]

    def _write_data(self, writer: ITokenWriter) -> None:
        return None

    def _read_data(self, reader: ITokenReader) -> None:
        return None
