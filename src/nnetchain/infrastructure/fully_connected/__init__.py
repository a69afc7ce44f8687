from ._affine_transform import AffineGradient, AffineTransform

__all__ = [
    AffineGradient.__name__,
    AffineTransform.__name__,
]
