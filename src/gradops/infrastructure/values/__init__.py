from ._value import Value, Vector, Matrix, Batch, as_value, layout_of

__all__ = [
    Value.__name__,
    Vector.__name__,
    Matrix.__name__,
    Batch.__name__,
    as_value.__name__,
    layout_of.__name__,
]
