import csv

import pytest

import experiments as exp


def test_generators_are_deterministic():
    for name in exp.GENERATOR_REGISTRY:
        _, a = exp.generate_dataset(name, 256, seed=5)
        _, b = exp.generate_dataset(name, 256, seed=5)
        assert a == b
        assert len(a) == 256


def test_unknown_generator_raises():
    with pytest.raises(ValueError):
        exp.generate_dataset("nope", 10, seed=0)


def test_entropy_bits():
    assert exp.entropy_bits({}) == 0.0
    assert exp.entropy_bits({1: 10}) == 0.0
    assert exp.entropy_bits({1: 1, 2: 1}) == pytest.approx(1.0)
    assert exp.entropy_bits({i: 3 for i in range(256)}) == pytest.approx(8.0)


@pytest.mark.parametrize("name", ["uniform256", "zipf64", "constant", "english_like"])
def test_run_one(name):
    _, data = exp.generate_dataset(name, 4096, seed=1)
    row = exp.run_one(data)
    assert row.correctness_ok == 1
    assert row.file_size_bytes == 4096
    assert row.artifact_bytes == row.header_bytes + row.payload_bytes
    # Huffman stays within one bit of the entropy bound
    assert row.entropy_bits_per_symbol <= row.bits_per_symbol + 1e-9
    assert row.bits_per_symbol <= row.entropy_bits_per_symbol + 1


def test_run_one_empty():
    row = exp.run_one(b"")
    assert row.correctness_ok == 1
    assert row.unique_symbols == 0
    assert row.payload_bytes == 0


def test_main_writes_outputs(tmp_path, capsys):
    rc = exp.main([
        "--outdir", str(tmp_path),
        "--runs", "2",
        "--exp1_size_kb", "1",
        "--exp1_generators", "uniform128,constant",
        "--no_exp2",
        "--exp3_size_kb", "1",
    ])
    assert rc == 0

    with (tmp_path / "metrics.csv").open(newline="") as f:
        rows = list(csv.DictReader(f))
    exp1 = [r for r in rows if r["exp_name"] == "exp1_distribution"]
    exp3 = [r for r in rows if r["exp_name"] == "exp3_throughput"]
    assert len(exp1) == 2 * 2
    assert len(exp3) == 2 * len(exp.GENERATOR_REGISTRY)
    assert all(r["correctness_ok"] == "1" for r in rows)

    with (tmp_path / "summary.csv").open(newline="") as f:
        summary = list(csv.DictReader(f))
    assert len(summary) == 2 + len(exp.GENERATOR_REGISTRY)
    assert all(float(r["correctness_ok_rate"]) == 1.0 for r in summary)

    assert (tmp_path / "exp1_bits_per_symbol.png").exists()
    assert (tmp_path / "exp1_compression_ratio.png").exists()
    assert (tmp_path / "exp3_throughput.png").exists()
    assert not list(tmp_path.glob("exp2_*.png"))
    assert "Correctness rate across all runs: 1.000" in capsys.readouterr().out


def test_main_rejects_unknown_generator(tmp_path, capsys):
    rc = exp.main([
        "--outdir", str(tmp_path),
        "--runs", "1",
        "--exp1_generators", "bogus",
        "--no_exp2", "--no_exp3",
    ])
    assert rc == 2
    assert "unknown generator" in capsys.readouterr().err


def test_main_rejects_zero_runs(tmp_path, capsys):
    rc = exp.main(["--outdir", str(tmp_path), "--runs", "0"])
    assert rc == 2
    captured = capsys.readouterr()
    assert captured.err.startswith("error:")
    assert captured.out == ""
