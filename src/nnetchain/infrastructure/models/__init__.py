from ._buffer_pool import BufferPool
from ._consistency import check_consistency
from ._nnet import CHECKPOINT_FORMAT, Nnet

__all__ = [
    BufferPool.__name__,
    check_consistency.__name__,
    Nnet.__name__,
    "CHECKPOINT_FORMAT",
]
