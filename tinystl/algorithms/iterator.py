"""Iterator capabilities.

Algorithms pick their strategy from what an iterator can do rather than from
marker types. Three capability levels exist, each a superset of the previous:

=================  =====================================================
FORWARD            ``value``, ``increment()``, ``copy()``, ``==``
BIDIRECTIONAL      + ``decrement()``
RANDOM_ACCESS      + ``it += n``, ``it + n``, ``it - other``, ordering
=================  =====================================================

An iterator advertises its level with a ``category`` class attribute. The
protocols below are the ``TypeVar`` bounds and casts that let a type checker
reject, for instance, ``copy_backward`` over a forward-only iterator. They are
runtime-checkable, so ``isinstance`` reports what an object supports.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Protocol, TypeVar, cast, runtime_checkable


class IteratorCategory(IntEnum):
    FORWARD = 1
    BIDIRECTIONAL = 2
    RANDOM_ACCESS = 3


@runtime_checkable
class ForwardIterator(Protocol):
    category: IteratorCategory
    value: Any

    def increment(self) -> Any: ...

    def copy(self) -> Any: ...

    def __eq__(self, other: object) -> bool: ...


@runtime_checkable
class BidirectionalIterator(ForwardIterator, Protocol):
    def decrement(self) -> Any: ...


@runtime_checkable
class RandomAccessIterator(BidirectionalIterator, Protocol):
    def __iadd__(self, n: int) -> Any: ...

    def __add__(self, n: int) -> Any: ...

    def __sub__(self, other: Any) -> Any: ...

    def __lt__(self, other: Any) -> bool: ...


FwdIt = TypeVar("FwdIt", bound=ForwardIterator)


def iterator_category(it: object) -> IteratorCategory:
    """Return the capability level advertised by ``it`` (FORWARD if none)."""
    return getattr(type(it), "category", IteratorCategory.FORWARD)


def advance(it: FwdIt, n: int) -> FwdIt:
    """Move ``it`` by ``n`` positions in place and return it.

    Random-access iterators jump in O(1). Others step one position at a time;
    a negative ``n`` needs at least bidirectional capability.
    """
    category = iterator_category(it)
    if category >= IteratorCategory.RANDOM_ACCESS:
        jumper = cast(RandomAccessIterator, it)
        jumper += n
        return cast(FwdIt, jumper)
    if n < 0:
        if category < IteratorCategory.BIDIRECTIONAL:
            raise ValueError("cannot move a forward iterator backwards")
        for _ in range(-n):
            cast(BidirectionalIterator, it).decrement()
        return it
    for _ in range(n):
        it.increment()
    return it


def distance(first: ForwardIterator, last: ForwardIterator) -> int:
    """Number of increments needed to get from ``first`` to ``last``."""
    if iterator_category(first) >= IteratorCategory.RANDOM_ACCESS:
        span: int = cast(RandomAccessIterator, last) - first
        return span
    it = first.copy()
    n = 0
    while it != last:
        it.increment()
        n += 1
    return n
