from typing import Any, Callable, Optional, Sequence, Tuple, Type, TypeVar
from dataclasses import dataclass, field

from ...domain._errors import (
    ContextError,
    ContextMismatchError,
    ContextUnderflowError,
)

S = TypeVar("S")


@dataclass
class Context:
    """
    Per-invocation record linking a forward call to its backward call.

    A `Context` is allocated by the caller immediately before a forward call,
    populated by that forward call, and read by the matching backward call.
    It must not be reused for a second invocation.

    Attributes
    ----------
    parents : Sequence[Tensor]
        Tensor records the operation was applied to. Empty when the operation
        is invoked directly on values rather than through a tensor wrapper.
    backward_fn : Optional[Callable[[Any], Sequence[Optional[Any]]]]
        Maps the gradient w.r.t. the output to gradients w.r.t. each parent,
        in the same order. Set by the tensor wrappers.
    saved_values : list[Any]
        Values appended by forward for use in backward. Append-only.

    Notes
    -----
    Each operation saves a single frozen record specific to that operation
    (e.g. `MulSaved`), and reads it back with
    ``ctx.read(0, MulSaved)``. The type check turns a context produced by a
    different operation into a `ContextMismatchError`.
    """

    parents: Sequence[Any] = ()
    backward_fn: Optional[Callable[[Any], Sequence[Optional[Any]]]] = None
    saved_values: list = field(default_factory=list)

    def save_for_backward(self, *values: Any) -> None:
        """
        Append values, in call order, for use during the backward computation.

        Parameters
        ----------
        *values : Any
            Values to store. No deduplication is performed.
        """
        self.saved_values.extend(values)

    def __len__(self) -> int:
        return len(self.saved_values)

    def read(self, index: int, expected_type: Optional[Type[S]] = None) -> S:
        """
        Return the saved value at `index`.

        Parameters
        ----------
        index : int
            Position in `saved_values`. Negative indices are not accepted.
        expected_type : type, optional
            If given, the saved value must be an instance of this type.

        Returns
        -------
        Any
            The saved value.

        Raises
        ------
        ContextUnderflowError
            If forward saved fewer than ``index + 1`` values.
        ContextMismatchError
            If the value is not an instance of `expected_type`.
        """
        if index < 0 or index >= len(self.saved_values):
            raise ContextUnderflowError(index, len(self.saved_values))
        value = self.saved_values[index]
        if expected_type is not None and not isinstance(value, expected_type):
            raise ContextMismatchError(expected_type.__name__, type(value).__name__)
        return value

    def backward(self, grad_out: Any) -> Tuple[Optional[Any], ...]:
        """
        Run the attached backward function.

        Raises
        ------
        ContextError
            If no backward function was attached.
        """
        if self.backward_fn is None:
            raise ContextError("Context has no backward function attached.")
        return tuple(self.backward_fn(grad_out))
