from __future__ import annotations
from typing import TYPE_CHECKING, Generic, Optional, TypeVar

from ..algorithms.iterator import IteratorCategory

if TYPE_CHECKING:
    from .index_map import Buffer, IndexMap

T = TypeVar("T")


class DequeIterator(Generic[T]):
    """Random-access cursor over a segmented sequence.

    A position is ``(node, cur)``: ``node`` indexes the map and ``cur`` is the
    offset inside that node's buffer, always in ``[0, buffer_size)`` for a
    valid iterator. All cross-buffer arithmetic lives here.

    Iterators do not own anything. Freeing a buffer invalidates iterators into
    it, and moving the map invalidates the ``node`` numbers of every iterator
    except the container's own start/finish.
    """

    category = IteratorCategory.RANDOM_ACCESS

    __slots__ = ("_map", "buffer_size", "node", "buffer", "cur")

    def __init__(self, index_map: IndexMap[T], node: int = 0, cur: int = 0) -> None:
        self._map = index_map
        self.buffer_size: int = index_map.buffer_size
        self.node = node
        self.buffer: Optional[Buffer[T]] = index_map[node]
        self.cur = cur

    def set_node(self, node: int) -> None:
        """Point at ``node``; ``cur`` must be set by the caller."""
        self.node = node
        self.buffer = self._map[node]

    def copy(self) -> DequeIterator[T]:
        other = DequeIterator.__new__(DequeIterator)
        other._map = self._map
        other.buffer_size = self.buffer_size
        other.node = self.node
        other.buffer = self.buffer
        other.cur = self.cur
        return other

    __copy__ = copy

    # ------------------------------ dereference ------------------------------

    @property
    def value(self) -> T:
        return self.buffer.slots[self.cur]  # type: ignore[union-attr]

    @value.setter
    def value(self, v: T) -> None:
        self.buffer.slots[self.cur] = v  # type: ignore[union-attr]

    def __getitem__(self, n: int) -> T:
        return (self + n).value

    def __setitem__(self, n: int, v: T) -> None:
        (self + n).value = v

    # ------------------------------- stepping --------------------------------

    def increment(self) -> DequeIterator[T]:
        self.cur += 1
        if self.cur == self.buffer_size:
            self.set_node(self.node + 1)
            self.cur = 0
        return self

    def decrement(self) -> DequeIterator[T]:
        if self.cur == 0:
            self.set_node(self.node - 1)
            self.cur = self.buffer_size
        self.cur -= 1
        return self

    def post_increment(self) -> DequeIterator[T]:
        old = self.copy()
        self.increment()
        return old

    def post_decrement(self) -> DequeIterator[T]:
        old = self.copy()
        self.decrement()
        return old

    # ------------------------------ arithmetic -------------------------------

    def __iadd__(self, n: int) -> DequeIterator[T]:
        offset = n + self.cur
        if 0 <= offset < self.buffer_size:
            self.cur += n
        else:
            # Floor division, so leftward moves land on the right node.
            node_offset = offset // self.buffer_size
            self.set_node(self.node + node_offset)
            self.cur = offset - node_offset * self.buffer_size
        return self

    def __isub__(self, n: int) -> DequeIterator[T]:
        return self.__iadd__(-n)

    def __add__(self, n: int) -> DequeIterator[T]:
        if not isinstance(n, int):
            return NotImplemented
        tmp = self.copy()
        tmp += n
        return tmp

    __radd__ = __add__

    def __sub__(self, other):
        """``it - n`` is an iterator; ``it - other`` is the signed distance."""
        if isinstance(other, DequeIterator):
            return (
                self.buffer_size * (self.node - other.node - 1)
                + self.cur
                + (self.buffer_size - other.cur)
            )
        if isinstance(other, int):
            tmp = self.copy()
            tmp -= other
            return tmp
        return NotImplemented

    # ------------------------------ comparisons ------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DequeIterator):
            return NotImplemented
        return self.node == other.node and self.cur == other.cur

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None  # type: ignore[assignment]

    def __lt__(self, other: DequeIterator[T]) -> bool:
        if self.node == other.node:
            return self.cur < other.cur
        return self.node < other.node

    def __gt__(self, other: DequeIterator[T]) -> bool:
        return other < self

    def __le__(self, other: DequeIterator[T]) -> bool:
        return not other < self

    def __ge__(self, other: DequeIterator[T]) -> bool:
        return not self < other

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"DequeIterator(node={self.node}, cur={self.cur})"
