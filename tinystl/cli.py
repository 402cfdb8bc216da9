"""
tinystl Command-Line Interface (CLI)

Small front end for poking at the segmented deque:
- `demo`  builds a deque, applies a few edits and prints its buffer layout
- `bench` runs the timing harness and writes the results to CSV

Usage examples:
    python -m tinystl.cli demo --buffer-size 4 --count 10 --erase 3
    python -m tinystl.cli demo --buffer-size 4 --count 6 --push-front 99 --insert 2 42
    python -m tinystl.cli -v bench --path deque_bench.csv --base 100 --steps 6
"""

import argparse
import logging
import sys

from .benchmark import run_benchmarks
from .datastructures import Deque
from .memory.allocator import Allocator


# -------------------------------------------------------------------
# Utility: pretty-print deque state
# -------------------------------------------------------------------
def print_layout(dq, data_alloc):
    """Display sequence, boundary values and per-buffer contents."""
    print(f"sequence: {dq.to_py()}")
    print(f"size={len(dq)} buffer_size={dq.buffer_size} map_size={dq.map_size}")
    if dq.empty():
        print("front=- back=-")
    else:
        print(f"front={dq.front()!r} back={dq.back()!r}")
    first = dq.begin().node
    for offset, chunk in enumerate(dq.segments()):
        print(f"  node {first + offset}: {chunk}")
    print(f"buffers allocated: {data_alloc.allocations - data_alloc.deallocations}")


# -------------------------------------------------------------------
# Core command handlers
# -------------------------------------------------------------------

def cmd_demo(args):
    """Build 0..count-1, apply the requested edits, show the result."""
    data_alloc = Allocator()
    with Deque(range(args.count), buffer_size=args.buffer_size, allocator=data_alloc, checked=True) as dq:
        for value in args.push_front or []:
            dq.push_front(value)
        if args.insert is not None:
            index, value = args.insert
            dq.insert(index, value)
        if args.erase is not None:
            dq.erase(args.erase)
        print_layout(dq, data_alloc)


def cmd_bench(args):
    """Run the exponential-size benchmark and write a CSV report."""
    run_benchmarks(args.path, base_input=args.base, steps=args.steps, iterations=args.iterations)


# -------------------------------------------------------------------
# CLI parser setup
# -------------------------------------------------------------------
def build_parser():
    """Build the argparse command-line parser with subcommands."""
    p = argparse.ArgumentParser(prog="python -m tinystl.cli", description="Segmented deque playground")
    p.add_argument("-v", "--verbose", action="store_true", help="Log map growth at DEBUG level")
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- layout demo ---
    s = sub.add_parser("demo", help="Build a deque and print its buffer layout")
    s.add_argument("--buffer-size", type=int, default=4)
    s.add_argument("--count", type=int, default=10)
    s.add_argument("--push-front", type=int, action="append", metavar="VALUE")
    s.add_argument("--insert", type=int, nargs=2, metavar=("INDEX", "VALUE"))
    s.add_argument("--erase", type=int, metavar="INDEX")
    s.set_defaults(func=cmd_demo)

    # --- benchmarks ---
    s = sub.add_parser("bench", help="Benchmark deque operations to CSV")
    s.add_argument("--path", required=True)
    s.add_argument("--base", type=int, default=100)
    s.add_argument("--steps", type=int, default=12)
    s.add_argument("--iterations", type=int, default=5)
    s.set_defaults(func=cmd_bench)

    return p


# -------------------------------------------------------------------
# Entry point
# -------------------------------------------------------------------
def main(argv=None):
    """CLI entry point when invoked via `python -m tinystl.cli`."""
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
