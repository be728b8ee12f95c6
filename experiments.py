"""
Benchmark: Huffman text coder on synthetic datasets

Runs the full pipeline (table build, encode + pack, unpack + decode) with
repeated runs and records sizes, timings and how close the average code
length gets to the Shannon entropy.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 64 --exp2_max_kb 1024
  python experiments.py --outdir results --exp1_generators ascii_uniform,zipf64,english_like,cjk_like
"""

from __future__ import annotations

import argparse
import csv
import math
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt

from bitpack import encode_symbols, pack_bits, unpack_bits
from codetable import parse_code_table, serialize_code_table
from huffman import build_code_table, count_frequencies, decode_bits


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def shannon_entropy(ft: Dict[str, int]) -> float:
    """Bits per symbol."""
    total = sum(ft.values())
    if total == 0:
        return 0.0
    return -sum((f / total) * math.log2(f / total) for f in ft.values())

def fixed_width_bits(distinct: int) -> int:
    # smallest fixed code that could tell the symbols apart
    return max(1, math.ceil(math.log2(distinct))) if distinct > 1 else 1


# Synthetic dataset generators

def _sample(chars: Sequence[str], weights: Sequence[float], size: int, rng: random.Random) -> str:
    return "".join(rng.choices(chars, weights=weights, k=size))

def gen_ascii_uniform(size: int, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = [chr(c) for c in range(32, 127)]
    return _sample(chars, [1.0] * len(chars), size, rng)

def gen_zipf_like(size: int, alphabet: int = 64, s: float = 1.2, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = [chr(0x21 + i) for i in range(alphabet)]
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample(chars, weights, size, rng)

def gen_repetitive(size: int, dominant: str = "A", dom_frac: float = 0.90, seed: int = 0) -> str:
    rng = random.Random(seed)
    others = [chr(c) for c in range(32, 127) if chr(c) != dominant]
    out = []
    for _ in range(size):
        if rng.random() < dom_frac:
            out.append(dominant)
        else:
            out.append(rng.choice(others))
    return "".join(out)

def gen_english_like(size: int, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = (
        " etaoinshrdlcumwfgypbvkjxq"
        "ETAOINSHRDLCUMWFGYPBVKJXQ"
        ".,\n"
    )
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch in ".,\n":
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample(list(chars), weights, size, rng)

def gen_cjk_like(size: int, alphabet: int = 500, s: float = 1.0, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = [chr(0x4E00 + i) for i in range(alphabet)] + ["，", "。", "\n"]
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)] + [0.05, 0.03, 0.01]
    return _sample(chars, weights, size, rng)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], str]] = {
    "ascii_uniform": lambda size, seed: gen_ascii_uniform(size, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "zipf16": lambda size, seed: gen_zipf_like(size, alphabet=16, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant="A", dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant="A", dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "cjk_like": lambda size, seed: gen_cjk_like(size, seed=seed),
}

def generate_dataset(name: str, size_chars: int, seed: int) -> Tuple[str, str]:
    """
    Unknown names fall back to ascii_uniform so one typo does not stop a long run
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        return f"{name}_fallback_ascii_uniform", gen_ascii_uniform(size_chars, seed=seed)
    return name, fn(size_chars, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    input_chars: int
    input_utf8_bytes: int
    run_id: int
    unique_symbols: int

    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    packed_bytes: int
    table_bytes: int
    pad_bits: int
    compression_ratio: float  # (packed + table) / utf-8 input

    avg_code_length: float
    entropy_bits: float
    fixed_width_bits: int
    coding_efficiency: float  # entropy / avg code length
    correctness_ok: int  # 1 or 0


def run_one(text: str) -> MetricRow:
    # build: frequencies, tree, codes, table text
    t0 = now_ns()
    ft = count_frequencies(text)
    code_table = build_code_table(ft)
    table_text = serialize_code_table(ft, code_table)
    t1 = now_ns()

    # encode + pack
    bitstring, _ = encode_symbols(text, code_table)
    packed = pack_bits(bitstring)
    t2 = now_ns()

    # parse table back, unpack + decode
    parsed, _ = parse_code_table(table_text)
    decoded, _ = decode_bits(unpack_bits(packed), parsed.code_to_symbol)
    t3 = now_ns()

    build_ms = ns_to_ms(t1 - t0)
    encode_ms = ns_to_ms(t2 - t1)
    decode_ms = ns_to_ms(t3 - t2)

    input_bytes = len(text.encode("utf-8"))
    table_bytes = len(table_text.encode("utf-8"))
    avg_len = len(bitstring) / max(1, len(text))
    entropy = shannon_entropy(ft)

    return MetricRow(
        exp_name="",
        dataset_name="",
        input_chars=len(text),
        input_utf8_bytes=input_bytes,
        run_id=0,
        unique_symbols=len(ft),
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        packed_bytes=len(packed),
        table_bytes=table_bytes,
        pad_bits=packed[0],
        compression_ratio=(len(packed) + table_bytes) / max(1, input_bytes),
        avg_code_length=avg_len,
        entropy_bits=entropy,
        fixed_width_bits=fixed_width_bits(len(ft)),
        coding_efficiency=(entropy / avg_len) if avg_len else 0.0,
        correctness_ok=1 if decoded == text else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


SUMMARY_METRICS = (
    "compression_ratio",
    "avg_code_length",
    "coding_efficiency",
    "build_ms",
    "encode_ms",
    "decode_ms",
    "total_ms",
)

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, input_chars and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.input_chars)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "input_chars", "n_runs", "entropy_bits"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_c = key
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "input_chars": size_c,
                "n_runs": len(items),
                "entropy_bits": statistics.mean(x.entropy_bits for x in items),
            }
            for m in SUMMARY_METRICS:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            out["correctness_ok_rate"] = sum(x.correctness_ok for x in items) / len(items)
            w.writerow(out)


# Plotting

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))

    def mean_for(dataset: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset]
        return statistics.mean(vals) if vals else float("nan")

    x = list(range(len(datasets)))

    plt.figure()
    plt.plot(x, [mean_for(d, "compression_ratio") for d in datasets], marker="o")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("(Packed + Table Bytes) / UTF-8 Bytes")
    plt.title("Experiment 1: Compression Ratio by Distribution")
    plt.tight_layout()
    plt.savefig(outdir / "exp1_compression_ratio.png", dpi=200)
    plt.close()

    plt.figure()
    plt.plot(x, [mean_for(d, "avg_code_length") for d in datasets], marker="o", label="huffman avg code length")
    plt.plot(x, [mean_for(d, "entropy_bits") for d in datasets], marker="s", label="entropy")
    plt.plot(x, [mean_for(d, "fixed_width_bits") for d in datasets], marker="^", label="fixed-width code")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Experiment 1: Code Length vs Entropy")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_bits_per_symbol.png", dpi=200)
    plt.close()

    plt.figure()
    plt.plot(x, [mean_for(d, "encode_ms") for d in datasets], marker="o", label="encode")
    plt.plot(x, [mean_for(d, "decode_ms") for d in datasets], marker="o", label="decode")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Time (ms)")
    plt.title("Experiment 1: Encode/Decode Time by Distribution")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_time.png", dpi=200)
    plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    distributions = sorted(set(r.dataset_name for r in exp_rows))

    for dist in distributions:
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.input_chars for r in dist_rows))

        def mean_size(size: int, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.input_chars == size]
            return statistics.mean(vals) if vals else float("nan")

        plt.figure()
        for field, label in (("build_ms", "build"), ("encode_ms", "encode"), ("decode_ms", "decode")):
            plt.plot(sizes, [mean_size(s, field) for s in sizes], marker="o", label=label)
        plt.xlabel("Input Size (characters)")
        plt.ylabel("Time (ms)")
        plt.title(f"Experiment 2: Time vs Size ({dist})")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_time_{dist}.png", dpi=200)
        plt.close()

        plt.figure()
        plt.plot(sizes, [mean_size(s, "compression_ratio") for s in sizes], marker="o")
        plt.xlabel("Input Size (characters)")
        plt.ylabel("(Packed + Table Bytes) / UTF-8 Bytes")
        plt.title(f"Experiment 2: Compression Ratio vs Size ({dist})")
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_compression_ratio_{dist}.png", dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def power_of_two_sizes(min_chars: int, max_chars: int) -> List[int]:
    sizes: List[int] = []
    s = max(1, min_chars)
    while s <= max_chars:
        sizes.append(s)
        s *= 2
    return sizes

def main(argv: Sequence[str] | None = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=128, help="Experiment 1 fixed input size in K characters")
    ap.add_argument("--exp1_generators", type=str, default="ascii_uniform,zipf64,repetitive90,english_like,cjk_like",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in K characters (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=512, help="Experiment 2 max size in K characters")
    ap.add_argument("--exp2_generators", type=str, default="english_like,cjk_like",
                    help="Comma-separated dataset generator names for experiment 2")

    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                dataset_name, text = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                row = run_one(text)
                row.exp_name = "exp1_distribution"
                row.dataset_name = dataset_name
                row.run_id = run_id
                rows.append(row)

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        sizes = power_of_two_sizes(args.exp2_min_kb * 1024, args.exp2_max_kb * 1024)
        for gen_name in parse_csv_list(args.exp2_generators):
            for size_c in sizes:
                for run_id in range(1, args.runs + 1):
                    dataset_name, text = generate_dataset(gen_name, size_c, args.seed + 10_000 + size_c + run_id)
                    row = run_one(text)
                    row.exp_name = "exp2_size_scaling"
                    row.dataset_name = dataset_name
                    row.run_id = run_id
                    rows.append(row)

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
