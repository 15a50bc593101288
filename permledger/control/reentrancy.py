"""
permledger.control.reentrancy: non-reentrancy latch keyed by a scope tag.

Typical pattern:

    with guard.enter("supply"):
        ...  # critical section, may notify observers

If the latch for a scope is already held, entering it again raises
:class:`~permledger.errors.Reentrant`. The latch is released on every exit path.
It is not journaled: it guards control flow, not state.

:func:`nonreentrant` wraps a method of an object that exposes a ``_guard``
attribute:

    class Ledger:
        @nonreentrant("supply")
        def mint(self, caller, to, amount): ...
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Set, TypeVar

from ..errors import Reentrant

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_SCOPE = "default"


class ReentrancyGuard:
    def __init__(self) -> None:
        self._entered: Set[str] = set()

    def require_not_entered(self, scope: str = DEFAULT_SCOPE) -> None:
        if scope in self._entered:
            raise Reentrant(scope=scope)

    @contextmanager
    def enter(self, scope: str = DEFAULT_SCOPE) -> Iterator[None]:
        self.require_not_entered(scope)
        self._entered.add(scope)
        try:
            yield
        finally:
            self._entered.discard(scope)


def nonreentrant(scope: str = DEFAULT_SCOPE) -> Callable[[F], F]:
    def deco(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            with self._guard.enter(scope):
                return fn(self, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return deco


__all__ = ["ReentrancyGuard", "nonreentrant", "DEFAULT_SCOPE"]
