"""
Numeric values (NumPy backend).

This module provides the closed set of value types every gradops operation
consumes and produces:

- `Vector`: ordered sequence of N scalars (1-D ndarray)
- `Matrix`: R x C grid of scalars (2-D ndarray, row-major)
- `Batch`: ordered sequence of `Matrix` values

Together they form a tagged variant over `ShapeClass`; each concrete type
carries its `kind` as a class attribute, which is what rank dispatch keys on.

Design notes
------------
- Values are immutable. Construction copies the source data into a fresh
  ndarray and clears its ``writeable`` flag, so a value saved on a context
  during forward cannot change before backward reads it.
- Kernels build results with `_wrap`, which takes ownership of a freshly
  allocated array without copying it again.
- `Batch` members may have different shapes (a ragged batch). Operations only
  require that *paired* members match.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Iterable, Iterator, Optional, Tuple

import numpy as np

from ...domain._errors import UnsupportedShapeError
from ...domain._numeric import NumericLike
from ...domain._shape import ShapeClass
from .._config import get_default_dtype


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


class Value(ABC):
    """
    Base class of the value variant.

    Subclasses are `Vector`, `Matrix` and `Batch`; no other subclass is
    expected, and dispatch treats any other kind as unsupported.
    """

    kind: ClassVar[ShapeClass]

    @property
    @abstractmethod
    def shape(self) -> Tuple[Optional[int], ...]:
        """Shape descriptor of the value."""
        ...

    @property
    @abstractmethod
    def size(self) -> int:
        """Total number of scalars."""
        ...

    @property
    @abstractmethod
    def dtype(self) -> np.dtype:
        """Element dtype."""
        ...

    @abstractmethod
    def tolist(self) -> list:
        """Return the contents as (nested) Python lists."""
        ...

    @abstractmethod
    def to_numpy(self) -> np.ndarray:
        """Return a writable ndarray copy of the contents."""
        ...

    @abstractmethod
    def copy(self) -> "Value":
        """Return an equal value backed by new storage."""
        ...

    def __array__(self, dtype: Any = None, copy: Optional[bool] = None) -> np.ndarray:
        arr = self.to_numpy()
        return arr if dtype is None else arr.astype(dtype, copy=False)


class _DenseValue(Value):
    """Shared implementation of the single-ndarray variants."""

    __slots__ = ("_array",)

    def __init__(self, data: Any, dtype: Any = None) -> None:
        """
        Copy `data` into a new read-only ndarray.

        Parameters
        ----------
        data : array-like
            Source values. Must have exactly ``self.kind.rank`` dimensions.
        dtype : dtype-like, optional
            Element dtype. Defaults to the configured default dtype.

        Raises
        ------
        UnsupportedShapeError
            If `data` has the wrong number of dimensions, or its rows have
            differing lengths.
        """
        try:
            arr = np.array(data, dtype=dtype if dtype is not None else get_default_dtype())
        except ValueError as e:
            raise UnsupportedShapeError(type(self).__name__, ("inhomogeneous",)) from e
        if arr.ndim != self.kind.rank:
            raise UnsupportedShapeError(type(self).__name__, (f"rank-{arr.ndim}",))
        self._array = _readonly(arr)

    @classmethod
    def _wrap(cls, arr: np.ndarray):
        obj = cls.__new__(cls)
        obj._array = _readonly(arr)
        return obj

    @property
    def array(self) -> np.ndarray:
        """The underlying read-only ndarray."""
        return self._array

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._array.shape

    @property
    def size(self) -> int:
        return int(self._array.size)

    @property
    def dtype(self) -> np.dtype:
        return self._array.dtype

    def __len__(self) -> int:
        return self._array.shape[0]

    def __getitem__(self, key: Any) -> Any:
        return self._array[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._array)

    def tolist(self) -> list:
        return self._array.tolist()

    def to_numpy(self) -> np.ndarray:
        return self._array.copy()

    def copy(self):
        return type(self)._wrap(self._array.copy())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._array.tolist()!r})"


class Vector(_DenseValue):
    """Ordered sequence of N scalars."""

    kind = ShapeClass.VECTOR


class Matrix(_DenseValue):
    """R x C grid of scalars, iterated row-major."""

    kind = ShapeClass.MATRIX


class Batch(Value):
    """
    Ordered sequence of matrices.

    Parameters
    ----------
    matrices : Iterable
        `Matrix` values or 2-D array-likes. A 3-D ndarray is accepted and split
        along its first axis.
    dtype : dtype-like, optional
        Element dtype for members built from array-likes. Existing `Matrix`
        members are kept as they are unless `dtype` is given and differs.

    Notes
    -----
    Members are independent values, so a batch may be ragged. `shape` reports
    ``(n, r, c)`` when every member is r x c and ``(n, None, None)`` otherwise;
    `matrix_shapes` always lists the individual shapes.
    """

    kind = ShapeClass.BATCH

    __slots__ = ("_matrices",)

    def __init__(self, matrices: Iterable[Any], dtype: Any = None) -> None:
        members = []
        for m in matrices:
            if isinstance(m, Matrix) and (dtype is None or m.dtype == np.dtype(dtype)):
                members.append(m)
            else:
                members.append(Matrix(m, dtype=dtype))
        self._matrices: Tuple[Matrix, ...] = tuple(members)

    @classmethod
    def _wrap(cls, matrices: Tuple[Matrix, ...]) -> "Batch":
        obj = cls.__new__(cls)
        obj._matrices = tuple(matrices)
        return obj

    @property
    def matrices(self) -> Tuple[Matrix, ...]:
        return self._matrices

    @property
    def matrix_shapes(self) -> Tuple[Tuple[int, ...], ...]:
        return tuple(m.shape for m in self._matrices)

    @property
    def is_ragged(self) -> bool:
        return len(set(self.matrix_shapes)) > 1

    @property
    def shape(self) -> Tuple[Optional[int], ...]:
        shapes = set(self.matrix_shapes)
        if not shapes:
            return (0, 0, 0)
        if len(shapes) == 1:
            return (len(self._matrices),) + shapes.pop()
        return (len(self._matrices), None, None)

    @property
    def size(self) -> int:
        return sum(m.size for m in self._matrices)

    @property
    def dtype(self) -> np.dtype:
        if not self._matrices:
            return get_default_dtype()
        return np.result_type(*(m.dtype for m in self._matrices))

    def __len__(self) -> int:
        return len(self._matrices)

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, slice):
            return Batch._wrap(self._matrices[key])
        return self._matrices[key]

    def __iter__(self) -> Iterator[Matrix]:
        return iter(self._matrices)

    def tolist(self) -> list:
        return [m.tolist() for m in self._matrices]

    def to_numpy(self) -> np.ndarray:
        """
        Stack the members into a 3-D ndarray.

        Raises
        ------
        ValueError
            If the batch is ragged.
        """
        if self.is_ragged:
            raise ValueError(
                f"Cannot stack a ragged batch with member shapes {self.matrix_shapes}."
            )
        if not self._matrices:
            return np.zeros((0, 0, 0), dtype=self.dtype)
        return np.stack([m.array for m in self._matrices])

    def copy(self) -> "Batch":
        return Batch._wrap(tuple(m.copy() for m in self._matrices))

    def __repr__(self) -> str:
        return f"Batch({self.tolist()!r})"


def layout_of(value: Value) -> Tuple[Any, ...]:
    """
    Return the shape class and dimensions of `value` as a comparable tuple.

    Two values with equal layouts can be combined elementwise. For a batch
    every member shape is included, so ragged batches compare member by
    member.
    """
    if isinstance(value, Batch):
        return (value.kind, value.matrix_shapes)
    return (value.kind, value.shape)


_BY_RANK = {cls.kind.rank: cls for cls in (Vector, Matrix, Batch)}


def as_value(obj: Any, dtype: Any = None) -> Value:
    """
    Coerce `obj` into a `Vector`, `Matrix` or `Batch`.

    Parameters
    ----------
    obj : Value or array-like
        - an existing `Value` is returned unchanged (or converted when `dtype`
          is given and differs);
        - 1-D, 2-D and 3-D array-likes become `Vector`, `Matrix` and `Batch`;
        - a list or tuple of 2-D array-likes with differing shapes becomes a
          ragged `Batch`.
    dtype : dtype-like, optional
        Element dtype. Defaults to the configured default dtype.

    Returns
    -------
    Value
        The coerced value.

    Raises
    ------
    UnsupportedShapeError
        If `obj` has rank 0 or rank greater than 3, or cannot be read as a
        value of uniform rank.
    """
    if isinstance(obj, Value):
        if dtype is None or obj.dtype == np.dtype(dtype):
            return obj
        return type(obj)(obj, dtype=dtype)

    if isinstance(obj, NumericLike):
        ndim = obj.ndim
    else:
        try:
            ndim = np.ndim(obj)
        except ValueError as e:
            # numpy refuses inhomogeneous nesting; the only such input we accept
            # is a sequence of differently sized matrices.
            if isinstance(obj, (list, tuple)):
                return Batch(obj, dtype=dtype)
            raise UnsupportedShapeError("as_value", ("inhomogeneous",)) from e

    cls = _BY_RANK.get(ndim)
    if cls is None:
        raise UnsupportedShapeError("as_value", (f"rank-{ndim}",))
    return cls(obj, dtype=dtype)
