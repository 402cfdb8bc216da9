"""Timing harness for the deque.

Each operation builds a fresh deque from random data, runs one workload and
returns the deque so its storage can be measured. Sizes grow exponentially
from ``base_input``; results are printed and written to a CSV file.
"""

import csv
import random
import statistics
import time
from typing import Callable, Dict, List, Tuple

from .datastructures import Deque
from .memory.allocator import Allocator

# ----------------------------
# Helper Functions
# ----------------------------

Workload = Callable[[List[int], Allocator, Allocator], Deque]


def generate_random_list(size: int) -> List[int]:
    """Generate a list of random integers of given size."""
    return [random.randint(0, 1000000) for _ in range(size)]


def measure_true_space(data_alloc: Allocator, map_alloc: Allocator) -> int:
    """Bytes of raw storage still handed out to one deque (buffers + map)."""
    return data_alloc.allocated * data_alloc.item_size + map_alloc.allocated * map_alloc.item_size


def measure_operation_time(operation: Workload, input_size: int, iterations: int = 5) -> Tuple[float, float, float, float]:
    """Run the operation multiple times and return average + std deviation (ms, bytes)."""
    times = []
    space_used = []
    for _ in range(iterations):
        data = generate_random_list(input_size)
        data_alloc, map_alloc = Allocator(), Allocator()
        start = time.perf_counter()
        dq = operation(data, data_alloc, map_alloc)
        end = time.perf_counter()
        times.append((end - start) * 1000)  # convert to milliseconds
        space_used.append(measure_true_space(data_alloc, map_alloc))
        dq.close()

    avg_time = statistics.mean(times)
    std_time = statistics.stdev(times) if len(times) > 1 else 0.0
    avg_space = statistics.mean(space_used)
    std_space = statistics.stdev(space_used) if len(space_used) > 1 else 0.0
    return avg_time, std_time, avg_space, std_space


# ----------------------------
# Operations to Benchmark
# ----------------------------

def _build(data: List[int], data_alloc: Allocator, map_alloc: Allocator) -> Deque:
    return Deque(data, allocator=data_alloc, map_allocator=map_alloc)


def bench_push_back(data, data_alloc, map_alloc):
    return _build(data, data_alloc, map_alloc)


def bench_push_front(data, data_alloc, map_alloc):
    dq = Deque(allocator=data_alloc, map_allocator=map_alloc)
    for item in data:
        dq.push_front(item)
    return dq


def bench_pop_both(data, data_alloc, map_alloc):
    dq = _build(data, data_alloc, map_alloc)
    while len(dq) > 1:
        dq.pop_front()
        dq.pop_back()
    return dq


def bench_index(data, data_alloc, map_alloc):
    dq = _build(data, data_alloc, map_alloc)
    n = len(dq)
    for i in range(0, n, max(1, n // 64)):
        _ = dq[i]
    return dq


def bench_insert_middle(data, data_alloc, map_alloc):
    dq = _build(data, data_alloc, map_alloc)
    for item in data[:3]:
        dq.insert(len(dq) // 2, item)
    return dq


def bench_erase_middle(data, data_alloc, map_alloc):
    dq = _build(data, data_alloc, map_alloc)
    for _ in range(min(3, len(dq))):
        dq.erase(len(dq) // 2)
    return dq


OPERATIONS: Dict[str, Workload] = {
    "push_back": bench_push_back,
    "push_front": bench_push_front,
    "pop_both": bench_pop_both,
    "index": bench_index,
    "insert_middle": bench_insert_middle,
    "erase_middle": bench_erase_middle,
}


# ----------------------------
# Benchmark Runner
# ----------------------------

def run_benchmarks(output_file: str, base_input: int = 100, steps: int = 12, iterations: int = 5) -> int:
    """Run exponential performance tests for Deque operations.

    Returns the number of measurements written.
    """
    input_sizes = [base_input * (2 ** i) for i in range(steps)]
    rows = 0

    with open(output_file, "w", newline="") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow([
            "Input Size",
            "Operation",
            "Average Time (ms)",
            "Std Dev Time (ms)",
            "Average Space (bytes)",
            "Std Dev Space (bytes)"
        ])

        for op_name, op_func in OPERATIONS.items():
            for size in input_sizes:
                avg_time, std_time, avg_space, std_space = measure_operation_time(op_func, size, iterations)
                writer.writerow([
                    size,
                    op_name,
                    f"{avg_time:.3f}",
                    f"{std_time:.3f}",
                    f"{avg_space:.0f}",
                    f"{std_space:.0f}"
                ])
                rows += 1
                print(f"{op_name:<14} | Size: {size:<8} | Avg Time: {avg_time:.3f} ms | Std Time: {std_time:.3f} ms | Avg Space: {avg_space:.0f} B | Std Space: {std_space:.0f} B")

    print(f"\nBenchmark completed. Results saved to {output_file}")
    return rows
