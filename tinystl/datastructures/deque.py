from __future__ import annotations
from typing import Any, Generic, Iterable, Iterator, List, Optional, TypeVar, Union

from ..algorithms.algorithm import copy, copy_backward
from ..errors import BoundsError
from ..memory.allocator import Allocator
from ..memory.construct import release_on_error, uninitialized_fill
from .deque_iterator import DequeIterator
from .index_map import IndexMap, deque_buf_size

T = TypeVar("T")

Position = Union[DequeIterator[T], int]


class Deque(Generic[T]):
    """A double-ended sequence stored in fixed-size buffers.

    Implementation notes
    --------------------
    • Elements live in buffers of ``buffer_size`` slots obtained from
      ``allocator``. An :class:`IndexMap` (allocated from ``map_allocator``)
      keeps the buffers in order, with spare slots at both ends.
    • ``start`` points at the first element, ``finish`` one past the last.
      The buffer under ``finish`` is always allocated, so pushing at the back
      only needs a new buffer once the current one is completely full.
    • Pushes and pops at either end are O(1); a map reallocation happens only
      when one end runs out of spare slots.
    • insert/erase in the middle shift whichever side is shorter.
    • Failed growth (allocation or construction) leaves the deque unchanged.

    Indexing, ``front``/``back`` and pops are unchecked, as for the raw
    container. Pass ``checked=True`` (or use :meth:`at`) to get
    :class:`~tinystl.errors.BoundsError` instead.
    """

    __slots__ = ("_alloc", "_map", "_start", "_finish", "_checked")

    def __init__(
        self,
        it: Optional[Iterable[T]] = None,
        *,
        buffer_size: int = 0,
        allocator: Optional[Allocator[T]] = None,
        map_allocator: Optional[Allocator[Any]] = None,
        checked: bool = False,
    ) -> None:
        self._setup(buffer_size, allocator, map_allocator, checked)
        self._create_map_and_nodes(0)

        if it is not None:
            try:
                for v in it:
                    self.push_back(v)
            except BaseException:
                self.close()
                raise

    @classmethod
    def filled(
        cls,
        n: int,
        value: T,
        *,
        buffer_size: int = 0,
        allocator: Optional[Allocator[T]] = None,
        map_allocator: Optional[Allocator[Any]] = None,
        checked: bool = False,
    ) -> "Deque[T]":
        """Build a deque of ``n`` copies of ``value``.

        The map and buffers are sized for exactly ``n`` elements up front. If
        any copy fails, the copies made so far are destroyed and all storage
        is returned before the error propagates.
        """
        dq: Deque[T] = cls.__new__(cls)
        dq._setup(buffer_size, allocator, map_allocator, checked)
        dq._fill_initialize(n, value)
        return dq

    # ------------------------------- internals -------------------------------

    def _setup(
        self,
        buffer_size: int,
        allocator: Optional[Allocator[T]],
        map_allocator: Optional[Allocator[Any]],
        checked: bool,
    ) -> None:
        if buffer_size < 0:
            raise ValueError("buffer_size must be >= 0")
        self._alloc: Allocator[T] = allocator if allocator is not None else Allocator()
        map_alloc = map_allocator if map_allocator is not None else Allocator()
        size = deque_buf_size(buffer_size, self._alloc.item_size)
        self._map: IndexMap[T] = IndexMap(self._alloc, map_alloc, size)
        self._checked = checked

    def _create_map_and_nodes(self, num_elements: int) -> None:
        nstart, nfinish = self._map.initialize(num_elements)
        self._start: DequeIterator[T] = DequeIterator(self._map, nstart, 0)
        self._finish: DequeIterator[T] = DequeIterator(
            self._map, nfinish, num_elements % self._map.buffer_size
        )

    def _fill_initialize(self, n: int, value: T) -> None:
        self._create_map_and_nodes(n)
        start, finish = self._start, self._finish
        bs = self._map.buffer_size
        done = start.node

        def rollback() -> None:
            # Full buffers before ``done`` were constructed; uninitialized_fill
            # has already cleaned up the one that failed.
            for node in range(start.node, done):
                self._alloc.destroy(self._map[node].slots, 0, bs)
            self._map.release(start.node, finish.node)

        with release_on_error(rollback):
            for node in range(start.node, finish.node):
                uninitialized_fill(self._alloc, self._map[node].slots, 0, bs, value)
                done = node + 1
            uninitialized_fill(self._alloc, finish.buffer.slots, 0, finish.cur, value)

    def _position(self, pos: Position) -> DequeIterator[T]:
        """Accept an iterator or a logical index."""
        if isinstance(pos, DequeIterator):
            return pos.copy()
        if self._checked and not 0 <= pos <= self.size():
            raise BoundsError("deque position out of range")
        return self._start + pos

    @staticmethod
    def _normalize_index(idx: int, size: int) -> int:
        """Map negative indices and validate bounds.

        Returns the non-negative index in [0, size).
        Raises BoundsError if out of range.
        """
        if idx < 0:
            idx += size
        if idx < 0 or idx >= size:
            raise BoundsError("deque index out of range")
        return idx

    def _require_nonempty(self, what: str) -> None:
        if self._checked and self.empty():
            raise BoundsError(f"{what} from empty deque")

    def _destroy_range(self, first: DequeIterator[T], last: DequeIterator[T]) -> None:
        """Destroy every element in ``[first, last)``, buffer by buffer."""
        bs = self._map.buffer_size
        for node in range(first.node, last.node + 1):
            lo = first.cur if node == first.node else 0
            hi = last.cur if node == last.node else bs
            if lo < hi:
                self._alloc.destroy(self._map[node].slots, lo, hi)

    def _push_back_aux(self, value: T) -> None:
        # Only reached when the value goes into the last slot of the buffer,
        # so the next buffer has to exist before finish can move onto it.
        with self._map.reserve_at_back(self._start, self._finish):
            finish = self._finish
            node = finish.node + 1
            self._map.allocate_node(node)
            with release_on_error(lambda: self._map.deallocate_node(node)):
                self._alloc.construct(finish.buffer.slots, finish.cur, value)
        finish.set_node(node)
        finish.cur = 0

    def _push_front_aux(self, value: T) -> None:
        with self._map.reserve_at_front(self._start, self._finish):
            start = self._start
            node = start.node - 1
            buf = self._map.allocate_node(node)
            with release_on_error(lambda: self._map.deallocate_node(node)):
                self._alloc.construct(buf.slots, self._map.buffer_size - 1, value)
        start.set_node(node)
        start.cur = self._map.buffer_size - 1

    def _pop_front(self) -> T:
        start = self._start
        value = start.value
        self._alloc.destroy(start.buffer.slots, start.cur)
        if start.cur != self._map.buffer_size - 1:
            start.cur += 1
        else:
            self._map.deallocate_node(start.node)
            start.set_node(start.node + 1)
            start.cur = 0
        return value

    def _pop_back(self) -> T:
        finish = self._finish
        if finish.cur != 0:
            finish.cur -= 1
        else:
            self._map.deallocate_node(finish.node)
            finish.set_node(finish.node - 1)
            finish.cur = self._map.buffer_size - 1
        value = finish.value
        self._alloc.destroy(finish.buffer.slots, finish.cur)
        return value

    def _insert_aux(self, pos: DequeIterator[T], value: T) -> DequeIterator[T]:
        index = pos - self._start
        if index < self.size() // 2:
            # Grow at the front and slide the leading run one step left.
            self.push_front(self.front())
            front1 = self._start + 1
            front2 = front1 + 1
            pos = self._start + index
            copy(front2, pos + 1, front1)
        else:
            # Grow at the back and slide the trailing run one step right.
            self.push_back(self.back())
            back1 = self._finish - 1
            back2 = back1 - 1
            pos = self._start + index
            copy_backward(pos, back2, back1)
        pos.value = value
        return pos

    # --------------------------------- API -----------------------------------

    @property
    def buffer_size(self) -> int:
        """Element slots per buffer."""
        return self._map.buffer_size

    @property
    def map_size(self) -> int:
        """Slots in the buffer index, live and spare."""
        return self._map.map_size

    def begin(self) -> DequeIterator[T]:
        return self._start.copy()

    def end(self) -> DequeIterator[T]:
        return self._finish.copy()

    def size(self) -> int:
        return self._finish - self._start

    def empty(self) -> bool:
        return self._finish == self._start

    def front(self) -> T:
        self._require_nonempty("front")
        return self._start.value

    def back(self) -> T:
        self._require_nonempty("back")
        return (self._finish - 1).value

    def at(self, idx: int) -> T:
        """Checked access; negative indices count from the back.

        Raises:
            BoundsError: if ``idx`` is out of range.
        """
        i = self._normalize_index(idx, self.size())
        return self._start[i]

    def push_back(self, value: T) -> None:
        """Append ``value``. Amortized O(1)."""
        finish = self._finish
        if finish.cur != self._map.buffer_size - 1:
            self._alloc.construct(finish.buffer.slots, finish.cur, value)
            finish.cur += 1
        else:
            self._push_back_aux(value)

    def push_front(self, value: T) -> None:
        """Prepend ``value``. Amortized O(1)."""
        start = self._start
        if start.cur != 0:
            self._alloc.construct(start.buffer.slots, start.cur - 1, value)
            start.cur -= 1
        else:
            self._push_front_aux(value)

    def pop_back(self) -> T:
        """Remove and return the last element. O(1)."""
        self._require_nonempty("pop")
        return self._pop_back()

    def pop_front(self) -> T:
        """Remove and return the first element. O(1)."""
        self._require_nonempty("pop")
        return self._pop_front()

    def insert(self, position: Position, value: T) -> DequeIterator[T]:
        """Insert ``value`` before ``position`` and return an iterator to it.

        Complexity: O(min(elements before, elements after)).
        """
        pos = self._position(position)
        if pos == self._start:
            self.push_front(value)
            return self.begin()
        if pos == self._finish:
            self.push_back(value)
            return self._finish - 1
        return self._insert_aux(pos, value)

    def erase(self, first: Position, last: Optional[Position] = None) -> DequeIterator[T]:
        """Remove the element at ``first``, or the run ``[first, last)``.

        Returns an iterator to the element that followed the erased ones.
        Complexity: O(min(elements before, elements after)).
        """
        if last is None:
            return self._erase_one(self._position(first))
        return self._erase_range(self._position(first), self._position(last))

    def _erase_one(self, pos: DequeIterator[T]) -> DequeIterator[T]:
        if self._checked and not pos < self._finish:
            raise BoundsError("cannot erase the end position")
        nxt = pos + 1
        index = pos - self._start
        if index < (self.size() >> 1):
            copy_backward(self._start, pos, nxt)
            self._pop_front()
        else:
            copy(nxt, self._finish, pos)
            self._pop_back()
        return self._start + index

    def _erase_range(self, first: DequeIterator[T], last: DequeIterator[T]) -> DequeIterator[T]:
        if first == self._start and last == self._finish:
            self.clear()
            return self.end()

        n = last - first
        elems_before = first - self._start
        size = self.size()
        if elems_before < 0 or not 0 <= n <= size - elems_before:
            raise BoundsError("erase range must lie inside the deque")
        if n == 0:
            return first

        if elems_before < (size - n) // 2:
            copy_backward(self._start, first, last)
            new_start = self._start + n
            self._destroy_range(self._start, new_start)
            for node in range(self._start.node, new_start.node):
                self._map.deallocate_node(node)
            self._start = new_start
        else:
            copy(last, self._finish, first)
            new_finish = self._finish - n
            self._destroy_range(new_finish, self._finish)
            for node in range(new_finish.node + 1, self._finish.node + 1):
                self._map.deallocate_node(node)
            self._finish = new_finish
        return self._start + elems_before

    def clear(self) -> None:
        """Remove all elements, keeping the first buffer for reuse."""
        start, finish = self._start, self._finish
        bs = self._map.buffer_size

        for node in range(start.node + 1, finish.node):
            self._alloc.destroy(self._map[node].slots, 0, bs)
            self._map.deallocate_node(node)

        if start.node != finish.node:
            self._alloc.destroy(start.buffer.slots, start.cur, bs)
            self._alloc.destroy(finish.buffer.slots, 0, finish.cur)
            self._map.deallocate_node(finish.node)
        else:
            self._alloc.destroy(start.buffer.slots, start.cur, finish.cur)

        self._finish = start.copy()

    def close(self) -> None:
        """Destroy every element and return all storage. Idempotent.

        The deque must not be used afterwards.
        """
        if self._map.map_size == 0:
            return
        self._destroy_range(self._start, self._finish)
        self._map.release(self._start.node, self._finish.node)

    def __enter__(self) -> "Deque[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def segments(self) -> List[List[T]]:
        """Live values of each allocated buffer, in node order.

        The buffer under ``finish`` is always included, so it may be empty.
        """
        out: List[List[T]] = []
        start, finish = self._start, self._finish
        bs = self._map.buffer_size
        for node, buf in enumerate(self._map.live_nodes(start.node, finish.node), start.node):
            lo = start.cur if node == start.node else 0
            hi = finish.cur if node == finish.node else bs
            out.append([buf.slots[i] for i in range(lo, hi)])
        return out

    def __len__(self) -> int:
        return self.size()

    def __bool__(self) -> bool:  # pragma: no cover - trivial
        return not self.empty()

    def __getitem__(self, idx: int) -> T:
        """Indexed access. Unchecked unless the deque was built with ``checked=True``."""
        if self._checked:
            idx = self._normalize_index(idx, self.size())
        return self._start[idx]

    def __setitem__(self, idx: int, value: T) -> None:
        if self._checked:
            idx = self._normalize_index(idx, self.size())
        self._start[idx] = value

    def __iter__(self) -> Iterator[T]:
        """Yield items from front to back."""
        for chunk in self.segments():
            yield from chunk

    def __reversed__(self) -> Iterator[T]:
        it = self._finish.copy()
        while it != self._start:
            it.decrement()
            yield it.value

    def to_py(self) -> List[Any]:
        """Convert to a plain Python ``list``.

        If an element implements `to_py()`, that method is used to convert it,
        enabling recursive conversion of nested containers.
        """
        out: List[Any] = []
        for v in self:
            if hasattr(v, "to_py") and callable(getattr(v, "to_py")):
                out.append(v.to_py())
            else:
                out.append(v)
        return out

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"Deque({self.to_py()!r})"
