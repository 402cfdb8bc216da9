from __future__ import annotations
from typing import Any, TypeVar

from .iterator import BidirectionalIterator, ForwardIterator

FwdOut = TypeVar("FwdOut", bound=ForwardIterator)
BidiOut = TypeVar("BidiOut", bound=BidirectionalIterator)


def copy(first: ForwardIterator, last: ForwardIterator, result: FwdOut) -> FwdOut:
    """Assign ``[first, last)`` onto the run starting at ``result``, front to back.

    Safe when the destination starts before the source. Returns an iterator
    one past the last element written. The arguments are not modified.
    """
    first = first.copy()
    result = result.copy()
    while first != last:
        result.value = first.value
        result.increment()
        first.increment()
    return result


def copy_backward(
    first: BidirectionalIterator, last: BidirectionalIterator, result: BidiOut
) -> BidiOut:
    """Assign ``[first, last)`` onto the run ending at ``result``, back to front.

    Safe when the destination ends after the source. Returns an iterator to
    the first element written. The arguments are not modified.
    """
    last = last.copy()
    result = result.copy()
    while first != last:
        last.decrement()
        result.decrement()
        result.value = last.value
    return result


def fill(first: ForwardIterator, last: ForwardIterator, value: Any) -> None:
    """Assign ``value`` to every position in ``[first, last)``."""
    first = first.copy()
    while first != last:
        first.value = value
        first.increment()
