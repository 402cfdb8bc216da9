from .deque import Deque
from .deque_iterator import DequeIterator
from .index_map import Buffer, IndexMap, MapReservation, deque_buf_size

__all__ = [
    "Deque",
    "DequeIterator",
    "IndexMap",
    "Buffer",
    "MapReservation",
    "deque_buf_size",
]
