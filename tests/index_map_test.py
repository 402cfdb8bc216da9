import logging

import pytest

from tinystl.datastructures import Buffer, Deque, deque_buf_size
from tinystl.errors import AllocationError, ConstructionError
from tinystl.memory.allocator import POINTER_SIZE, Allocator


def rejecting(bad):
    def copier(v):
        if v == bad:
            raise ValueError(f"cannot copy {v!r}")
        return v
    return copier


def test_buffer_size_targets_512_bytes():
    assert deque_buf_size(0, 8) == 64
    assert deque_buf_size(0, 100) == 5
    assert deque_buf_size(0, 512) == 1
    assert deque_buf_size(0, 4096) == 1
    assert deque_buf_size(16, 8) == 16


def test_default_deque_uses_pointer_sized_slots():
    assert Deque().buffer_size == 512 // POINTER_SIZE
    assert Deque(allocator=Allocator(item_size=1024)).buffer_size == 1


def test_buffer_release_is_idempotent():
    a = Allocator()
    buf = Buffer(a, 4)
    assert not buf.released
    buf.release()
    buf.release()
    assert buf.released
    assert a.allocated == 0
    assert a.deallocations == 1


def test_initial_map_centres_a_single_buffer():
    data_alloc, map_alloc = Allocator(), Allocator()
    dq = Deque(buffer_size=4, allocator=data_alloc, map_allocator=map_alloc)
    assert dq.map_size == 8
    assert dq.begin().node == 3
    assert dq.end() == dq.begin()
    assert data_alloc.allocations == 1
    assert data_alloc.allocated == 4
    assert map_alloc.allocated == 8


def test_fill_sizes_map_for_every_node():
    dq = Deque.filled(40, 0, buffer_size=4)
    # 40 // 4 + 1 nodes plus one spare slot at each end
    assert dq.map_size == 13
    assert dq.begin().node == 1
    assert len(dq.segments()) == 11
    assert dq.segments()[-1] == []


def test_recentres_within_block_when_mostly_spare():
    data_alloc, map_alloc = Allocator(), Allocator()
    dq = Deque(range(4), buffer_size=1, allocator=data_alloc, map_allocator=map_alloc)
    assert dq.end().node == 7
    for _ in range(3):
        dq.pop_front()
    assert dq.begin().node == 6

    dq.push_back(4)
    assert dq.map_size == 8
    assert map_alloc.allocations == 1
    assert dq.begin().node == 2
    assert dq.to_py() == [3, 4]
    assert dq.segments() == [[3], [4], []]
    assert data_alloc.allocated == 3


def test_grows_map_when_front_is_exhausted():
    map_alloc = Allocator()
    dq = Deque(buffer_size=4, map_allocator=map_alloc)
    for v in range(13):
        dq.push_front(v)
    assert dq.map_size == 18
    assert dq.begin().node == 6
    assert dq.end().node == 10
    assert dq.to_py() == list(range(12, -1, -1))
    assert map_alloc.allocations == 2
    assert map_alloc.allocated == 18


def test_failed_map_growth_leaves_deque_intact():
    map_alloc = Allocator(max_slots=8)
    dq = Deque(range(4), buffer_size=1, map_allocator=map_alloc)
    with pytest.raises(AllocationError):
        dq.push_back(4)
    assert dq.to_py() == [0, 1, 2, 3]
    assert dq.map_size == 8
    assert dq.begin().node == 3
    assert map_alloc.allocated == 8

    dq.push_front(-1)
    assert dq.to_py() == [-1, 0, 1, 2, 3]


def test_buffer_failure_after_map_growth_restores_old_map():
    data_alloc = Allocator(max_slots=5)
    map_alloc = Allocator()
    dq = Deque(range(4), buffer_size=1, allocator=data_alloc, map_allocator=map_alloc)
    it = dq.begin() + 2
    with pytest.raises(AllocationError):
        dq.push_back(4)
    assert dq.map_size == 8
    assert dq.begin().node == 3
    assert dq.end().node == 7
    assert map_alloc.allocated == 8
    assert map_alloc.allocations - map_alloc.deallocations == 1
    assert it - dq.begin() == 2
    assert it.value == 2
    assert dq.to_py() == [0, 1, 2, 3]

    # once a buffer is free again the same growth goes through
    dq.pop_front()
    dq.push_back(4)
    assert dq.to_py() == [1, 2, 3, 4]
    assert dq.map_size == 18
    assert map_alloc.allocated == 18


def test_construction_failure_after_recentre_moves_buffers_back(caplog):
    caplog.set_level(logging.DEBUG, logger="tinystl.datastructures.index_map")
    data_alloc, map_alloc = Allocator(copier=rejecting("bad")), Allocator()
    dq = Deque(range(4), buffer_size=1, allocator=data_alloc, map_allocator=map_alloc)
    for _ in range(3):
        dq.pop_front()
    with pytest.raises(ConstructionError):
        dq.push_back("bad")
    assert any("undoing map reallocation" in r.getMessage() for r in caplog.records)
    assert dq.begin().node == 6
    assert dq.end().node == 7
    assert dq.segments() == [[3], []]
    assert data_alloc.allocated == 2
    assert data_alloc.live == 1
    assert map_alloc.allocations == 1

    dq.push_back(4)
    assert dq.begin().node == 2
    assert dq.to_py() == [3, 4]


def test_construction_failure_after_front_growth_restores_old_map():
    data_alloc, map_alloc = Allocator(copier=rejecting("bad")), Allocator()
    dq = Deque(buffer_size=4, allocator=data_alloc, map_allocator=map_alloc)
    for v in range(12):
        dq.push_front(v)
    with pytest.raises(ConstructionError):
        dq.push_front("bad")
    assert dq.map_size == 8
    assert dq.begin().node == 0
    assert dq.to_py() == list(range(11, -1, -1))
    assert map_alloc.allocated == 8
    assert data_alloc.allocated == 16

    dq.push_front(12)
    assert dq.map_size == 18
    assert dq.begin().node == 6
    assert map_alloc.allocated == 18


def test_map_growth_is_logged(caplog):
    caplog.set_level(logging.DEBUG, logger="tinystl.datastructures.index_map")
    Deque(range(20), buffer_size=4)
    assert any("grew map 8 -> 18" in r.getMessage() for r in caplog.records)
