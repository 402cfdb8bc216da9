"""Buffer index ("map") for the segmented deque.

The map is a raw block of slots, each holding an owning :class:`Buffer`
handle or ``None``. Only the slots between the deque's start and finish nodes
are live; the spare slots on either side absorb growth at that end.

When one end runs out of spare slots the live range is either recentred
inside the current block (when the block is more than twice the size needed)
or copied into a larger, freshly allocated block.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Generic, Iterator, Optional, Tuple, TypeVar

from ..memory.allocator import Allocator, RawBlock
from ..memory.construct import release_on_error

if TYPE_CHECKING:
    from .deque_iterator import DequeIterator

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Target buffer footprint in bytes when no explicit buffer size is configured.
DEFAULT_BUFFER_BYTES = 512

# Smallest map ever allocated.
MIN_MAP_SIZE = 8


def deque_buf_size(configured: int, item_size: int) -> int:
    """Number of element slots per buffer.

    A non-zero ``configured`` size wins. Otherwise small elements share a
    buffer of about DEFAULT_BUFFER_BYTES, and elements of that size or larger
    get one slot each.
    """
    if configured != 0:
        return configured
    if item_size < DEFAULT_BUFFER_BYTES:
        return DEFAULT_BUFFER_BYTES // item_size
    return 1


class Buffer(Generic[T]):
    """Owning handle for one fixed-capacity element buffer."""

    __slots__ = ("slots", "capacity", "_allocator")

    def __init__(self, allocator: Allocator[T], capacity: int) -> None:
        self._allocator = allocator
        self.capacity = capacity
        self.slots: Optional[RawBlock] = allocator.allocate(capacity)

    @property
    def released(self) -> bool:
        return self.slots is None

    def release(self) -> None:
        """Give the storage back; releasing twice is a no-op."""
        if self.slots is None:
            return
        slots, self.slots = self.slots, None
        self._allocator.deallocate(slots, self.capacity)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        state = "released" if self.released else "live"
        return f"Buffer(capacity={self.capacity}, {state})"


class IndexMap(Generic[T]):
    """Resizable index of buffer handles with spare slots at both ends.

    ``data_allocator`` supplies element buffers, ``map_allocator`` the map
    block itself. Node numbers are plain indices into the block; they change
    whenever the live range is moved, which is why reallocation resets the
    caller's start/finish iterators.
    """

    __slots__ = ("_data_allocator", "_map_allocator", "buffer_size", "_block", "_size")

    def __init__(
        self, data_allocator: Allocator[T], map_allocator: Allocator, buffer_size: int
    ) -> None:
        self._data_allocator = data_allocator
        self._map_allocator = map_allocator
        self.buffer_size = buffer_size
        self._block: Optional[RawBlock] = None
        self._size = 0

    # ------------------------------- internals -------------------------------

    def _new_block(self, size: int) -> RawBlock:
        block = self._map_allocator.allocate(size)
        for i in range(size):
            block[i] = None
        return block

    # ------------------------------ node access ------------------------------

    @property
    def map_size(self) -> int:
        return self._size

    def __len__(self) -> int:  # pragma: no cover - trivial
        return self._size

    def __getitem__(self, node: int) -> Optional[Buffer[T]]:
        """Handle stored at ``node``; ``None`` for spare or out-of-range slots."""
        if 0 <= node < self._size:
            return self._block[node]
        return None

    def allocate_node(self, node: int) -> Buffer[T]:
        """Allocate a buffer and install its handle at ``node``."""
        buf: Buffer[T] = Buffer(self._data_allocator, self.buffer_size)
        self._block[node] = buf
        return buf

    def deallocate_node(self, node: int) -> None:
        """Release the buffer at ``node`` and clear the slot."""
        buf = self._block[node]
        if buf is not None:
            buf.release()
        self._block[node] = None

    def live_nodes(self, start_node: int, finish_node: int) -> Iterator[Buffer[T]]:
        for node in range(start_node, finish_node + 1):
            yield self._block[node]

    # ------------------------------- lifecycle -------------------------------

    def initialize(self, num_elements: int) -> Tuple[int, int]:
        """Allocate the map and enough buffers for ``num_elements``.

        The live range is centred with at least one spare slot on each side.
        Returns ``(start_node, finish_node)``. If any allocation fails, the
        buffers obtained so far and the map block are released first.
        """
        num_nodes = num_elements // self.buffer_size + 1
        size = max(MIN_MAP_SIZE, num_nodes + 2)
        block = self._new_block(size)
        self._block, self._size = block, size

        nstart = (size - num_nodes) // 2
        nfinish = nstart + num_nodes - 1
        with release_on_error(lambda: self.release(nstart, nfinish)):
            for node in range(nstart, nfinish + 1):
                self.allocate_node(node)
        return nstart, nfinish

    def release(self, start_node: int, finish_node: int) -> None:
        """Release every live buffer and the map block."""
        if self._block is None:
            return
        for node in range(start_node, finish_node + 1):
            self.deallocate_node(node)
        block, size = self._block, self._size
        self._block, self._size = None, 0
        self._map_allocator.deallocate(block, size)

    # --------------------------------- growth --------------------------------

    def reserve_at_back(
        self, start: DequeIterator[T], finish: DequeIterator[T], nodes_to_add: int = 1
    ) -> MapReservation:
        """Ensure ``nodes_to_add`` spare slots exist after ``finish``."""
        if nodes_to_add + 1 > self._size - finish.node:
            return self.reallocate(start, finish, nodes_to_add, add_at_front=False)
        return MapReservation()

    def reserve_at_front(
        self, start: DequeIterator[T], finish: DequeIterator[T], nodes_to_add: int = 1
    ) -> MapReservation:
        """Ensure ``nodes_to_add`` spare slots exist before ``start``."""
        if nodes_to_add > start.node:
            return self.reallocate(start, finish, nodes_to_add, add_at_front=True)
        return MapReservation()

    def reallocate(
        self,
        start: DequeIterator[T],
        finish: DequeIterator[T],
        nodes_to_add: int,
        add_at_front: bool,
    ) -> MapReservation:
        """Make room for ``nodes_to_add`` more buffers on one side.

        Buffers keep their contents and ``start``/``finish`` keep their
        in-buffer offsets; only node numbers change. If a new block cannot be
        allocated the map is left exactly as it was.

        The move is provisional: the returned :class:`MapReservation` must be
        used as a context manager around the work that needs the room. A
        clean exit frees the old block; an exception puts the old layout and
        node numbers back.
        """
        old_nstart, old_nfinish = start.node, finish.node
        old_num_nodes = old_nfinish - old_nstart + 1
        new_num_nodes = old_num_nodes + nodes_to_add
        slack = nodes_to_add if add_at_front else 0

        def reset_nodes(nstart: int) -> None:
            start.set_node(nstart)
            finish.set_node(nstart + old_num_nodes - 1)

        if self._size > 2 * new_num_nodes:
            # Enough room overall: slide the live range toward the centre.
            new_nstart = (self._size - new_num_nodes) // 2 + slack
            self._move_range(old_nstart, new_nstart, old_num_nodes)
            logger.debug(
                "recentred map of %d slots: nodes %d..%d -> %d..%d",
                self._size, old_nstart, old_nfinish,
                new_nstart, new_nstart + old_num_nodes - 1,
            )
            reset_nodes(new_nstart)

            def undo() -> None:
                self._move_range(new_nstart, old_nstart, old_num_nodes)
                reset_nodes(old_nstart)

            return MapReservation(undo=undo)

        old_block, old_size = self._block, self._size
        new_size = old_size + max(old_size, nodes_to_add) + 2
        new_block = self._new_block(new_size)
        new_nstart = (new_size - new_num_nodes) // 2 + slack
        for i in range(old_num_nodes):
            new_block[new_nstart + i] = old_block[old_nstart + i]
        logger.debug(
            "grew map %d -> %d slots: nodes %d..%d -> %d..%d",
            old_size, new_size, old_nstart, old_nfinish,
            new_nstart, new_nstart + old_num_nodes - 1,
        )
        self._block, self._size = new_block, new_size
        reset_nodes(new_nstart)

        def undo() -> None:
            self._block, self._size = old_block, old_size
            self._map_allocator.deallocate(new_block, new_size)
            reset_nodes(old_nstart)

        def commit() -> None:
            self._map_allocator.deallocate(old_block, old_size)

        return MapReservation(undo=undo, commit=commit)

    def _move_range(self, src: int, dst: int, count: int) -> None:
        """Move ``count`` handles from ``src`` to ``dst`` and clear the rest."""
        block = self._block
        if dst < src:
            for i in range(count):
                block[dst + i] = block[src + i]
        else:
            for i in reversed(range(count)):
                block[dst + i] = block[src + i]
        for node in range(src, src + count):
            if not dst <= node < dst + count:
                block[node] = None


class MapReservation:
    """Pending map reallocation returned by the ``reserve_*`` methods.

    Leaving the ``with`` block normally makes the move final. If the block
    raises, the map goes back to the layout it had before the reservation.
    A reservation that moved nothing does nothing either way.
    """

    __slots__ = ("_undo", "_commit")

    def __init__(
        self,
        undo: Optional[Callable[[], None]] = None,
        commit: Optional[Callable[[], None]] = None,
    ) -> None:
        self._undo = undo
        self._commit = commit

    def __enter__(self) -> MapReservation:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            if self._commit is not None:
                self._commit()
        elif self._undo is not None:
            logger.debug("undoing map reallocation after %s", exc_type.__name__)
            self._undo()
        return False
