"""Error taxonomy shared by the containers.

Only failures the library can detect cheaply are reported:

- :class:`AllocationError` when raw storage cannot be obtained.
- :class:`ConstructionError` when placing an element fails.
- :class:`BoundsError` from the checked accessors (``Deque.at`` and the
  ``checked=True`` variant).

Out-of-range indices, stale iterators and reads from an empty container are
caller contract violations. The unchecked operations do not validate them and
their behaviour is unspecified.
"""


class TinySTLError(Exception):
    """Base class for every error raised by tinystl."""


class AllocationError(TinySTLError, MemoryError):
    """Raw storage for a buffer or map block could not be obtained."""


class ConstructionError(TinySTLError):
    """An element could not be placed into raw storage.

    The element's own exception is available as ``__cause__``.
    """


class BoundsError(TinySTLError, IndexError):
    """A checked accessor was given a position outside ``[0, size)``."""
