import csv

from tinystl.benchmark import OPERATIONS
from tinystl.cli import main


def test_demo_prints_layout_after_erase(capsys):
    main(["demo", "--buffer-size", "4", "--count", "10", "--erase", "3"])
    out = capsys.readouterr().out
    assert "sequence: [0, 1, 2, 4, 5, 6, 7, 8, 9]" in out
    assert "size=9 buffer_size=4 map_size=8" in out
    assert "front=0 back=9" in out
    assert "node 3: [0, 1, 2]" in out
    assert "node 5: [8, 9]" in out
    assert "buffers allocated: 3" in out


def test_demo_push_front_and_insert(capsys):
    main(["demo", "--count", "3", "--push-front", "7", "--push-front", "8", "--insert", "1", "42"])
    out = capsys.readouterr().out
    assert "sequence: [8, 42, 7, 0, 1, 2]" in out
    assert "front=8 back=2" in out


def test_bench_writes_csv(tmp_path, capsys):
    path = tmp_path / "bench.csv"
    main(["bench", "--path", str(path), "--base", "4", "--steps", "2", "--iterations", "2"])
    with open(path, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == "Input Size"
    assert len(rows) == 1 + len(OPERATIONS) * 2
    assert {r[1] for r in rows[1:]} == set(OPERATIONS)
    assert "Benchmark completed" in capsys.readouterr().out
