"""
Domain-level structural typing for the numeric storage boundary.

gradops does not implement numeric storage itself. It relies on a dense
array container from the infrastructure layer (NumPy) and only needs a
small capability set from it:

- index-get (``__getitem__``)
- index-set (``__setitem__``)
- dimensions (``shape`` / ``ndim``)
- element-count (``size``)

:class:`NumericLike` captures that set as a ``runtime_checkable`` Protocol so
that the value layer can accept any conforming container without the domain
layer importing NumPy.
"""

from __future__ import annotations

from typing import Any, Protocol, Tuple, runtime_checkable


@runtime_checkable
class NumericLike(Protocol):
    """
    Minimal dense numeric container.

    Notes
    -----
    ``numpy.ndarray`` satisfies this protocol. Runtime checks only confirm the
    members exist; element semantics are backend-defined.
    """

    @property
    def shape(self) -> Tuple[int, ...]:
        """Size of each dimension."""
        ...

    @property
    def ndim(self) -> int:
        """Number of dimensions."""
        ...

    @property
    def size(self) -> int:
        """Total number of elements."""
        ...

    def __getitem__(self, key: Any) -> Any: ...

    def __setitem__(self, key: Any, value: Any) -> None: ...
