from ._recurrent_cell import RecurrentCell, RecurrentGradient

__all__ = [
    RecurrentCell.__name__,
    RecurrentGradient.__name__,
]
