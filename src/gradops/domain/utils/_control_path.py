"""
Operand-based method dispatch (a.k.a. "control-path" templating) via decorators.

This module provides a small mechanism for routing a single static method call
to one of several registered implementations based on a *state* computed from
the call's own arguments.

Core idea
---------
- You define a *base* static method on a class (its signature and docstring
  become the canonical ones).
- You then register multiple "control paths" for that method, each keyed by:
    (ClassName, MethodName, StateVal)
- At call time, the wrapper computes the state from the arguments using the
  `state_of` function given to `create_path_builder()` and dispatches to the
  implementation registered for it.

In gradops the state is the tuple of operand shape classes, so a kernel such
as ``RankKernels.elementwise`` can have separate paths for
``(VECTOR, VECTOR)``, ``(MATRIX, MATRIX)`` and ``(BATCH, BATCH)``, and every
other combination falls through to a single, typed failure.

Important notes
---------------
- This design mutates the class: the first time you decorate a control path,
  the original method name is replaced with a static wrapper that performs
  dispatch. Later registrations update the same mapping.
- Registered implementations are stored in a closure-local mapping owned by
  `create_path_builder()`. Different builders do not share mappings.
- Sub-methods receive exactly the arguments passed to the wrapper.
"""

from typing import (
    Callable,
    Hashable,
    Optional,
    Dict,
    FrozenSet,
    Tuple,
    Type,
    Any,
)
from typing_extensions import ParamSpec, TypeVar
from collections import namedtuple
from functools import wraps

P = ParamSpec("P")
R = TypeVar("R")

TrapFn = Callable[[Callable[..., Any], Hashable, Tuple[Any, ...]], BaseException]
"""Builds the exception raised when no control path matches a call."""


def create_path_builder(state_of: Callable[..., Hashable]) -> Callable[
    [
        Type,
        Callable[P, R],
        Hashable,
        Optional[TrapFn],
    ],
    Callable[[Callable[P, R]], Callable[P, R]],
]:
    """
    Create and return a "path builder" used to register control paths.

    The returned function (`templator`) is used like this:

        rank_path = create_path_builder(lambda *args: tuple(...))

        class Kernels:
            @staticmethod
            def foo(x): ...

        @rank_path(Kernels, Kernels.foo, state=("A",))
        def foo_A(x):
            ...

    When `Kernels.foo(x)` is called, `state_of(x)` selects the path.

    Parameters
    ----------
    state_of : Callable[..., Hashable]
        Function mapping the call arguments to the dispatch state.

    Returns
    -------
    Callable
        A function with signature:

            (cls, method, state, trap_exception=None) -> decorator

        It also exposes ``templator.registered(cls, method)``, returning the
        set of states that currently have a control path.
    """

    MethodKey = namedtuple(
        "MethodKey",
        [
            "ClassName",
            "MethodName",
            "StateVal",
        ],
    )
    """
    Tuple-like key used to uniquely identify a control path.

    Fields
    ------
    ClassName : str
        The owning class name.
    MethodName : str
        The base method name being templated.
    StateVal : Hashable
        The state value that selects this implementation.
    """

    methods_map: Dict[MethodKey, Callable] = {}
    """Mapping from (class, method, state) keys to registered implementations."""

    def templator(
        cls: Type,
        method: Callable[P, R],
        state: Hashable,
        trap_exception: Optional[TrapFn] = None,
    ) -> Callable[[Callable[P, R]], Callable[P, R]]:
        """
        Build a decorator that registers a control path implementation.

        Parameters
        ----------
        cls : Type
            The class whose static method should be wrapped for dispatch.
        method : Callable[P, R]
            The base method being templated. Its metadata is copied onto the
            installed wrapper via `functools.wraps(method)`.
        state : Hashable
            The state value that selects the decorated implementation.
        trap_exception : Optional[TrapFn]
            Called as ``trap_exception(method, state, args)`` when no path
            matches a call; the returned exception is raised. If None, the
            wrapper raises `NotImplementedError`.

        Returns
        -------
        Callable[[Callable[P, R]], Callable[P, R]]
            A decorator that registers `sub_method` for `(cls, method, state)`
            and installs the dispatcher on `cls`.

        Raises
        ------
        TypeError
            If `state` is not hashable.
        """
        try:
            hash(state)
        except TypeError:
            raise TypeError(
                f"The argument for 'state' must be hashable. Got {repr(state)}"
            )

        smk: MethodKey = MethodKey(cls.__name__, method.__name__, state)
        """Static method key for the control path being registered by this call."""

        def decorator(sub_method: Callable[P, R]) -> Callable[P, R]:
            """
            Register `sub_method` as the implementation for the configured state.

            Returns
            -------
            Callable[P, R]
                The original `sub_method`, unchanged, so registrations stack.
            """
            methods_map[smk] = sub_method

            @wraps(method)
            def wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                cur_state = state_of(*args, **kwargs)
                cur_smk = MethodKey(cls.__name__, method.__name__, cur_state)
                if sm := methods_map.get(cur_smk):
                    return sm(*args, **kwargs)
                if trap_exception is None:
                    raise NotImplementedError(
                        "Missing control path (state={}) for {}".format(
                            repr(cur_state), repr(method.__name__)
                        )
                    )
                raise trap_exception(method, cur_state, args)

            setattr(cls, method.__name__, staticmethod(wrapper))
            return sub_method

        return decorator

    def registered(cls: Type, method: Callable[..., Any]) -> FrozenSet[Hashable]:
        """Return the states that have a control path for `cls.method`."""
        return frozenset(
            key.StateVal
            for key in methods_map
            if key.ClassName == cls.__name__ and key.MethodName == method.__name__
        )

    templator.registered = registered
    return templator
