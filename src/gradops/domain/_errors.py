"""
Contract-violation exceptions for gradops.

This module defines the typed errors raised when an operation is invoked with
operands it cannot accept, or when a backward pass is run against a context
that was not populated by the matching forward pass.

Every failure in gradops is immediate and terminal for the computation that
triggered it: operations never retry, never fall back to a degraded result,
and never continue past a violated precondition. The exceptions carry the
offending attributes so that callers (and tests) can inspect the failure
without parsing messages.
"""

from __future__ import annotations

from typing import Any, Sequence


class ShapeMismatchError(ValueError):
    """
    Raised when operand dimensions disagree where equality is required.

    Typical triggers are a dot product of vectors with different lengths,
    elementwise operations on batches of different lengths, an upstream
    gradient whose shape does not match the forward output, or two operands
    belonging to different shape classes.

    Attributes
    ----------
    op : str
        Name of the operation that rejected its operands.
    expected : Any
        The shape (or shape class) the operation required.
    actual : Any
        The shape (or shape class) it received.
    """

    def __init__(self, op: str, expected: Any, actual: Any) -> None:
        """
        Initialize the ShapeMismatchError.

        Parameters
        ----------
        op : str
            Operation name (e.g., "dot", "mul").
        expected : Any
            Required shape or shape class.
        actual : Any
            Received shape or shape class.
        """
        super().__init__(f"{op}: expected {expected}, got {actual}.")
        self.op = op
        self.expected = expected
        self.actual = actual


class UnsupportedShapeError(TypeError):
    """
    Raised when an operation is not defined for the shape class of an operand.

    For example, ReLU is only defined over vectors; invoking it on a matrix
    raises this error. It is also raised when an input cannot be interpreted
    as a vector, matrix, or batch of matrices at all.

    Attributes
    ----------
    op : str
        Name of the operation (or constructor) that rejected the operand.
    kinds : tuple
        The shape classes (or raw descriptions) that were received.
    """

    def __init__(self, op: str, kinds: Sequence[Any]) -> None:
        """
        Initialize the UnsupportedShapeError.

        Parameters
        ----------
        op : str
            Operation name.
        kinds : Sequence[Any]
            Shape classes of the received operands.
        """
        kinds = tuple(kinds)
        shown = ", ".join(getattr(k, "value", str(k)) for k in kinds)
        super().__init__(f"{op} is not defined for ({shown}).")
        self.op = op
        self.kinds = kinds


class ContextError(RuntimeError):
    """
    Base class for misuse of an operation context.

    Raised directly when a context is asked to run a backward pass but no
    backward function was attached to it.
    """


class ContextUnderflowError(ContextError):
    """
    Raised when a saved slot is read before forward populated it.

    This always indicates a programmer error: backward was invoked on a
    context that never went through the matching forward call.

    Attributes
    ----------
    index : int
        The slot that was requested.
    size : int
        The number of values actually saved.
    """

    def __init__(self, index: int, size: int) -> None:
        super().__init__(
            f"Context holds {size} saved value(s); slot {index} is not available. "
            "Was backward called without a matching forward?"
        )
        self.index = index
        self.size = size


class ContextMismatchError(ContextError):
    """
    Raised when a context holds saved state recorded by a different operation.

    Attributes
    ----------
    expected : str
        Name of the saved-record type the backward pass requires.
    actual : str
        Name of the saved-record type found in the context.
    """

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"Context holds {actual}, but this backward pass requires {expected}."
        )
        self.expected = expected
        self.actual = actual
