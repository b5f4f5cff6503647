"""
Shape-class enumeration.

A shape class is the rank category of a numeric value. The set is closed:
every value handled by gradops is exactly one of a vector, a matrix, or an
ordered batch of matrices, and rank dispatch is keyed on these members.
"""

from enum import Enum


class ShapeClass(Enum):
    """
    Enumeration of supported shape classes.

    Attributes
    ----------
    VECTOR : ShapeClass
        Ordered sequence of N scalars (rank 1).
    MATRIX : ShapeClass
        R x C grid of scalars, row-major (rank 2).
    BATCH : ShapeClass
        Ordered sequence of matrices (rank 3).
    """

    VECTOR = "vector"
    MATRIX = "matrix"
    BATCH = "batch"

    @property
    def rank(self) -> int:
        """Number of array dimensions a value of this class carries."""
        return _RANKS[self]

    def __str__(self) -> str:
        return self.value


_RANKS = {
    ShapeClass.VECTOR: 1,
    ShapeClass.MATRIX: 2,
    ShapeClass.BATCH: 3,
}
