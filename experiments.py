"""
Codec benchmark: Huffman artifact size and speed across input distributions

Runs repeated compress / decompress cycles over synthetic datasets and
compares the artifact against the order-0 entropy bound.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 256 --exp2_max_mb 2
  python experiments.py --outdir results --exp1_generators uniform256,zipf128,constant

Notes:
  Every run checks decompress(compress(x)) == x; correctness_ok records it.
"""

from __future__ import annotations

import argparse
import bisect
import csv
import math
import random
import statistics
import sys
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import huffman as huff


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def entropy_bits(ft: Dict[int, int]) -> float:
    """Order-0 Shannon entropy in bits per symbol"""
    total = sum(ft.values())
    if total == 0:
        return 0.0
    return -sum((c / total) * math.log2(c / total) for c in ft.values())


# Synthetic dataset generators

def _sample(rng: random.Random, symbols: Sequence[int], weights: Sequence[float], size: int) -> bytes:
    # inverse-CDF sampling, one bisect per output byte
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w
        cdf.append(acc)
    top = cdf[-1]
    last = len(cdf) - 1
    return bytes(symbols[min(bisect.bisect_left(cdf, rng.random() * top), last)] for _ in range(size))

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_constant(size: int, value: int = 7, seed: int = 0) -> bytes:
    return bytes([value]) * size

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    others = [i for i in range(256) if i != dominant]
    return bytes(dominant if rng.random() < dom_frac else rng.choice(others) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample(rng, list(range(alphabet)), weights, size)

ENGLISH_WEIGHTS = {" ": 13.0, "\n": 1.5}
for _ch in "etaoinshrdlu":
    ENGLISH_WEIGHTS[_ch] = ENGLISH_WEIGHTS[_ch.upper()] = 6.0
for _ch in "cmfwgypbvk":
    ENGLISH_WEIGHTS[_ch] = ENGLISH_WEIGHTS[_ch.upper()] = 2.5
for _ch in "jxqz":
    ENGLISH_WEIGHTS[_ch] = ENGLISH_WEIGHTS[_ch.upper()] = 1.2

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    symbols = [ord(ch) for ch in ENGLISH_WEIGHTS]
    return _sample(rng, symbols, list(ENGLISH_WEIGHTS.values()), size)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "constant": lambda size, seed: gen_constant(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        known = ", ".join(sorted(GENERATOR_REGISTRY))
        raise ValueError(f"unknown generator {name!r} (known: {known})")
    return name, fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    unique_symbols: int

    build_tree_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    header_bytes: int
    payload_bytes: int
    artifact_bytes: int
    pad_bits: int
    compression_ratio: float
    bits_per_symbol: float
    entropy_bits_per_symbol: float

    correctness_ok: int  # 1 or 0


def run_one(data: bytes) -> MetricRow:
    # tree build is timed separately; compress() repeats it internally
    t0 = now_ns()
    ft = huff.freq_table(data)
    if ft:
        huff.generate_huffman_codes(huff.build_huffman_tree(ft))
    t1 = now_ns()

    blob = huff.compress_bytes(data)
    t2 = now_ns()
    decoded = huff.decompress_bytes(blob)
    t3 = now_ns()

    artifact = huff.CompressedArtifact.from_bytes(blob)
    build_tree_ms = ns_to_ms(t1 - t0)
    encode_ms = ns_to_ms(t2 - t1)
    decode_ms = ns_to_ms(t3 - t2)

    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        unique_symbols=len(ft),
        build_tree_ms=build_tree_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=encode_ms + decode_ms,
        header_bytes=len(blob) - len(artifact.payload),
        payload_bytes=len(artifact.payload),
        artifact_bytes=len(blob),
        pad_bits=artifact.pad_bits,
        compression_ratio=len(blob) / max(1, len(data)),
        bits_per_symbol=artifact.bit_count / max(1, len(data)),
        entropy_bits_per_symbol=entropy_bits(ft),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


SUMMARY_METRICS = (
    "compression_ratio", "bits_per_symbol", "entropy_bits_per_symbol",
    "encode_ms", "decode_ms", "build_tree_ms", "total_ms",
)

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(row)


# Plotting

def _mean(rows: List[MetricRow], field: str) -> float:
    vals = [getattr(r, field) for r in rows]
    return statistics.mean(vals) if vals else float("nan")

def _save(outdir: Path, name: str) -> Path:
    path = outdir / name
    plt.tight_layout()
    plt.savefig(path, dpi=200)
    plt.close()
    return path

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> List[Path]:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return []

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))
    by_ds = {d: [r for r in exp_rows if r.dataset_name == d] for d in datasets}
    saved = []

    plt.figure()
    plt.plot(x, [_mean(by_ds[d], "bits_per_symbol") for d in datasets], marker="o", label="huffman")
    plt.plot(x, [_mean(by_ds[d], "entropy_bits_per_symbol") for d in datasets], marker="x", linestyle="--", label="entropy bound")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Experiment 1: Code Length vs Entropy by Distribution")
    plt.legend()
    saved.append(_save(outdir, "exp1_bits_per_symbol.png"))

    plt.figure()
    plt.bar(x, [_mean(by_ds[d], "compression_ratio") for d in datasets])
    plt.axhline(1.0, color="gray", linewidth=0.8)
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Artifact Bytes / Original Bytes")
    plt.title("Experiment 1: Compression Ratio by Distribution")
    saved.append(_save(outdir, "exp1_compression_ratio.png"))

    plt.figure()
    plt.plot(x, [_mean(by_ds[d], "encode_ms") for d in datasets], marker="o", label="compress")
    plt.plot(x, [_mean(by_ds[d], "decode_ms") for d in datasets], marker="o", label="decompress")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Time (ms)")
    plt.title("Experiment 1: Codec Time by Distribution")
    plt.legend()
    saved.append(_save(outdir, "exp1_time.png"))
    return saved


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> List[Path]:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return []

    saved = []
    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))
        by_size = {s: [r for r in dist_rows if r.file_size_bytes == s] for s in sizes}

        plt.figure()
        plt.plot(sizes, [_mean(by_size[s], "encode_ms") for s in sizes], marker="o", label="compress")
        plt.plot(sizes, [_mean(by_size[s], "decode_ms") for s in sizes], marker="o", label="decompress")
        plt.xscale("log", base=2)
        plt.xlabel("File Size (bytes)")
        plt.ylabel("Time (ms)")
        plt.title(f"Experiment 2: Codec Time vs Size ({dist})")
        plt.legend()
        saved.append(_save(outdir, f"exp2_time_{dist}.png"))

        plt.figure()
        plt.plot(sizes, [_mean(by_size[s], "compression_ratio") for s in sizes], marker="o")
        plt.xscale("log", base=2)
        plt.xlabel("File Size (bytes)")
        plt.ylabel("Artifact Bytes / Original Bytes")
        plt.title(f"Experiment 2: Compression Ratio vs Size ({dist})")
        saved.append(_save(outdir, f"exp2_compression_ratio_{dist}.png"))
    return saved


def plot_experiment_3(rows: List[MetricRow], outdir: Path) -> List[Path]:
    exp_rows = [r for r in rows if r.exp_name == "exp3_throughput"]
    if not exp_rows:
        return []

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mb_per_s(d: str, field: str) -> float:
        items = [r for r in exp_rows if r.dataset_name == d]
        ms = _mean(items, field)
        return (items[0].file_size_bytes / (1024 * 1024)) / (ms / 1000.0) if ms > 0 else float("nan")

    plt.figure()
    width = 0.4
    plt.bar([i - width / 2 for i in x], [mb_per_s(d, "encode_ms") for d in datasets], width, label="compress")
    plt.bar([i + width / 2 for i in x], [mb_per_s(d, "decode_ms") for d in datasets], width, label="decompress")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Throughput (MB/s)")
    plt.title("Experiment 3: Codec Throughput by Dataset")
    plt.legend()
    return [_save(outdir, "exp3_throughput.png")]


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Benchmark the Huffman codec on synthetic data")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_exp3", action="store_true", help="Disable experiment 3 (throughput)")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=512, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str, default="uniform256,zipf128,repetitive90,english_like,constant",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=1, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_mb", type=int, default=4, help="Experiment 2 max size in MB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")

    # Experiment 3 controls
    ap.add_argument("--exp3_size_kb", type=int, default=1024, help="Experiment 3 file size in KB")
    return ap


def run_experiments(args: argparse.Namespace) -> List[MetricRow]:
    rows: List[MetricRow] = []

    def record(exp_name: str, gen_name: str, size_b: int, seed: int, run_id: int) -> None:
        dataset_name, data = generate_dataset(gen_name, size_b, seed)
        row = run_one(data)
        row.exp_name = exp_name
        row.dataset_name = dataset_name
        row.run_id = run_id
        rows.append(row)

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                record("exp1_distribution", gen_name, fixed_size, args.seed + run_id, run_id)

    # Experiment 2: size scaling (multiple sizes, powers of 2)
    if not args.no_exp2:
        min_bytes = max(1, args.exp2_min_kb) * 1024
        max_bytes = max(1, args.exp2_max_mb) * 1024 * 1024
        sizes: List[int] = []
        s = min_bytes
        while s <= max_bytes:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    record("exp2_size_scaling", gen_name, size_b, args.seed + 10_000 + size_b + run_id, run_id)

    # Experiment 3: throughput on every registered generator
    if not args.no_exp3:
        size_b = max(1, args.exp3_size_kb) * 1024
        for gen_name in sorted(GENERATOR_REGISTRY):
            for run_id in range(1, args.runs + 1):
                record("exp3_throughput", gen_name, size_b, args.seed + 200_000 + run_id, run_id)

    return rows


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.runs < 1:
        print("error: --runs must be at least 1", file=sys.stderr)
        return 2

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    try:
        rows = run_experiments(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    # Plots
    plot_experiment_1(rows, outdir)
    plot_experiment_2(rows, outdir)
    plot_experiment_3(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    print("Charts saved in:", outdir.resolve())
    return 0 if ok_rate == 1.0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
