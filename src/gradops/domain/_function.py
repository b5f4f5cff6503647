"""
Differentiable operation interface.

This module defines the abstract base class for the primitive operations of
gradops. Concrete subclasses of `Function` implement a forward computation
and the matching backward gradient computation, coordinated through a
per-invocation context object.

The design follows function-level autograd systems (e.g., PyTorch's
`autograd.Function`): operations hold no state of their own, and everything
the backward pass needs is recorded on the context during forward.
"""

from abc import ABC, abstractmethod
from typing import Any, Tuple


class Function(ABC):
    """
    Abstract base class for differentiable operations.

    Subclasses must implement both `forward` and `backward` as static methods.
    Any value required for gradient computation must be saved on the provided
    `ctx` object during the forward pass.

    Notes
    -----
    - Methods are declared as `@staticmethod` so a `Function` class can be
      reused across any number of invocations; all per-call state lives in
      the context.
    - `backward` always returns a tuple with one gradient per forward input,
      in the same order, each shaped like the corresponding input.
    """

    @staticmethod
    @abstractmethod
    def forward(ctx, *inputs: Any) -> Any:
        """
        Perform the forward computation.

        Parameters
        ----------
        ctx : Context
            Fresh context used to record values for the backward pass.
        *inputs : Value or array-like
            Operands of the operation.

        Returns
        -------
        Value
            Newly allocated output value.
        """
        ...

    @staticmethod
    @abstractmethod
    def backward(ctx, grad_out: Any) -> Tuple[Any, ...]:
        """
        Compute gradients with respect to the forward inputs.

        Parameters
        ----------
        ctx : Context
            The context populated by the matching forward call.
        grad_out : Value or array-like
            Gradient of the loss with respect to the forward output.

        Returns
        -------
        tuple[Value, ...]
            One gradient per forward input, in input order.
        """
        ...
