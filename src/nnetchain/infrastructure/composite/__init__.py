from ._parallel_component import ParallelComponent, ParallelGradient

__all__ = [
    ParallelComponent.__name__,
    ParallelGradient.__name__,
]
