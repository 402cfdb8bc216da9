"""Scoped construction helpers.

Growth paths acquire storage and then place elements into it. If placing an
element fails, everything acquired for that step has to be given back before
the error reaches the caller. These helpers keep that cleanup in one place:

- :func:`uninitialized_fill` constructs a run of slots and, on failure,
  destroys exactly the prefix it managed to construct.
- :func:`release_on_error` runs a release callback when the managed block
  raises, then lets the exception continue.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from .allocator import Allocator, RawBlock

T = TypeVar("T")

logger = logging.getLogger(__name__)


def uninitialized_fill(
    allocator: Allocator[T], block: RawBlock, first: int, last: int, value: Optional[T]
) -> None:
    """Construct copies of ``value`` into ``block[first:last]``.

    On failure the slots constructed so far are destroyed and the original
    error is re-raised; the run is either fully constructed or untouched.
    """
    cur = first
    try:
        while cur != last:
            allocator.construct(block, cur, value)
            cur += 1
    except BaseException:
        allocator.destroy(block, first, cur)
        raise


@contextmanager
def release_on_error(release: Callable[[], None]) -> Iterator[None]:
    """Call ``release()`` if the ``with`` body raises, then re-raise.

    Example::

        with release_on_error(lambda: index_map.deallocate_node(node)):
            allocator.construct(buf.slots, 0, value)
    """
    try:
        yield
    except BaseException:
        logger.debug("rolling back partially acquired storage")
        release()
        raise
