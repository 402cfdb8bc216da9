from __future__ import annotations
import ctypes
from typing import Any, Callable, Generic, Optional, TypeVar

from ..errors import AllocationError, ConstructionError

T = TypeVar("T")

# Raw storage is an array of object references, so one "element" is one pointer.
POINTER_SIZE = ctypes.sizeof(ctypes.py_object)

RawBlock = Any  # a ctypes ``py_object`` array


def _identity(value: T) -> T:
    return value


class Allocator(Generic[T]):
    """Raw storage provider with in-place construct/destroy.

    Implementation notes
    --------------------
    • Storage is a ctypes array of `py_object` (not Python's built-in list).
      A freshly allocated slot is NULL; reading it raises ``ValueError``.
    • ``construct`` places a copy of the value, produced by ``copier``
      (identity by default). A failing copier surfaces as ConstructionError.
    • ``destroy`` resets slots to ``None``; it never fails.
    • ``max_slots`` caps the number of slots outstanding at once. Exceeding it
      raises AllocationError, which is how exhaustion is provoked in tests.

    The allocator knows nothing about segmentation; containers decide how
    many slots to ask for.
    """

    __slots__ = (
        "item_size",
        "max_slots",
        "_copier",
        "allocated",
        "live",
        "allocations",
        "deallocations",
    )

    def __init__(
        self,
        *,
        item_size: Optional[int] = None,
        max_slots: Optional[int] = None,
        copier: Optional[Callable[[T], T]] = None,
    ) -> None:
        self.item_size: int = item_size if item_size else POINTER_SIZE
        self.max_slots = max_slots
        self._copier: Callable[[T], T] = copier if copier is not None else _identity

        # Accounting, read by tests and the benchmark.
        self.allocated = 0  # slots currently handed out
        self.live = 0  # constructed and not yet destroyed
        self.allocations = 0
        self.deallocations = 0

    # ------------------------------- storage ---------------------------------

    def allocate(self, n: int) -> Optional[RawBlock]:
        """Return a raw block of ``n`` uninitialised slots (``None`` when n == 0).

        Raises:
            AllocationError: if the slot limit would be exceeded or the
                interpreter is out of memory.
        """
        if n <= 0:
            return None
        if self.max_slots is not None and self.allocated + n > self.max_slots:
            raise AllocationError(
                f"cannot allocate {n} slots: {self.allocated} of {self.max_slots} in use"
            )
        try:
            block = (n * ctypes.py_object)()
        except MemoryError as exc:
            raise AllocationError(f"cannot allocate {n} slots") from exc
        self.allocated += n
        self.allocations += 1
        return block

    def deallocate(self, block: Optional[RawBlock], n: int) -> None:
        """Return ``block`` (of ``n`` slots) to the allocator."""
        if block is None:
            return
        self.allocated -= n
        self.deallocations += 1

    # ----------------------------- construction ------------------------------

    def construct(self, block: RawBlock, index: int, value: Optional[T] = None) -> None:
        """Place a copy of ``value`` at ``block[index]``.

        Raises:
            ConstructionError: if copying the value failed. The slot is left
                untouched.
        """
        try:
            obj = self._copier(value)  # type: ignore[arg-type]
        except ConstructionError:
            raise
        except Exception as exc:
            raise ConstructionError(f"cannot construct {value!r}") from exc
        block[index] = obj
        self.live += 1

    def destroy(self, block: RawBlock, first: int, last: Optional[int] = None) -> None:
        """Destroy ``block[first]``, or every slot in ``[first, last)``."""
        if last is None:
            last = first + 1
        for i in range(first, last):
            block[i] = None
        if last > first:
            self.live -= last - first

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return (
            f"Allocator(allocated={self.allocated}, live={self.live}, "
            f"allocations={self.allocations}, deallocations={self.deallocations})"
        )
