"""
Huffman text compressor: file-level compress/decompress plus a small CLI

Compression writes two artifacts, a readable code table and a packed
bitstream. Decompression needs both.

How to run:
  python compressor.py compress --input resources/data.txt
  python compressor.py decompress --output output/decoded.txt
  python compressor.py roundtrip
"""

from __future__ import annotations

import argparse
import os
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from bitpack import encode_symbols, pack_bits, unpack_bits
from codetable import parse_code_table, serialize_code_table
from huffman import (
    CodeTable,
    CodingWarning,
    EmptyCodeTable,
    HuffmanError,
    build_code_table,
    count_frequencies,
    decode_bits,
    total_bit_length,
)

DEFAULT_INPUT = "resources/data.txt"
DEFAULT_TABLE = "output/codeTable.txt"
DEFAULT_PACKED = "output/compressed.bin"
DEFAULT_DECODED = "output/decoded.txt"
DEFAULT_ENCODING = "utf-8"


@dataclass
class CompressResult:
    frequencies: Dict[str, int]
    code_table: CodeTable
    table_text: str
    packed: bytes
    total_bits: int
    warnings: List[CodingWarning] = field(default_factory=list)

    @property
    def pad_bits(self) -> int:
        return self.packed[0]


@dataclass
class DecompressResult:
    text: str
    code_table: CodeTable
    warnings: List[CodingWarning] = field(default_factory=list)


# In-memory pipeline

def compress_text(text: str) -> CompressResult:
    """Raises EmptyAlphabet for empty text."""
    frequencies = count_frequencies(text)
    code_table = build_code_table(frequencies)
    bitstring, warnings = encode_symbols(text, code_table)
    return CompressResult(
        frequencies=frequencies,
        code_table=code_table,
        table_text=serialize_code_table(frequencies, code_table),
        packed=pack_bits(bitstring),
        total_bits=total_bit_length(frequencies, code_table),
        warnings=list(warnings),
    )


def decompress_artifacts(table_text: str, packed: bytes) -> DecompressResult:
    """Raises EmptyCodeTable when no table row is usable, CorruptBitstream on a bad padding byte."""
    code_table, warnings = parse_code_table(table_text)
    if len(code_table) == 0:
        raise EmptyCodeTable("code table has no valid entries")

    bitstring = unpack_bits(packed)
    text, residual = decode_bits(bitstring, code_table.code_to_symbol)
    result_warnings: List[CodingWarning] = list(warnings)
    if residual is not None:
        result_warnings.append(residual)
    return DecompressResult(text=text, code_table=code_table, warnings=result_warnings)


# File helpers

def read_text(path: str, encoding: str = DEFAULT_ENCODING) -> str:
    # newline="" keeps \r\n and \r as they are, they are symbols too
    with open(path, "r", encoding=encoding, newline="") as f:
        return f.read()


def _write_temp(directory: Path, data: bytes) -> Path:
    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".huff-", suffix=".tmp")
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    return Path(tmp)


def write_artifacts(outputs: Sequence[Tuple[str, bytes]]) -> None:
    """
    Write every (path, bytes) pair or none of them
    Each file goes to a temp file beside its target first, then all are moved into place
    """
    outputs = list(outputs) # walked twice below
    temps: List[Path] = []
    placed: List[Path] = []
    try:
        for path, data in outputs:
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            temps.append(_write_temp(target.parent, data))
        for (path, _), tmp in zip(outputs, temps):
            os.replace(tmp, path)
            placed.append(Path(path))
    except BaseException:
        for tmp in temps:
            tmp.unlink(missing_ok=True)
        for p in placed:
            p.unlink(missing_ok=True)
        raise


def compress_file(input_path: str, table_path: str, packed_path: str,
                  encoding: str = DEFAULT_ENCODING) -> CompressResult:
    text = read_text(input_path, encoding)
    result = compress_text(text) # nothing is written if this raises
    write_artifacts([
        (table_path, result.table_text.encode("utf-8")),
        (packed_path, result.packed),
    ])
    return result


def decompress_file(packed_path: str, table_path: str, output_path: str,
                    encoding: str = DEFAULT_ENCODING) -> DecompressResult:
    table_text = read_text(table_path, "utf-8")
    packed = Path(packed_path).read_bytes()
    result = decompress_artifacts(table_text, packed)
    write_artifacts([(output_path, result.text.encode(encoding))])
    return result


# CLI

def report_warnings(warnings: List[CodingWarning], label: str) -> None:
    for w in warnings:
        print(f"[{label}] warning: {w}", file=sys.stderr)


def run_compress(args: argparse.Namespace) -> None:
    result = compress_file(args.input, args.table, args.packed, args.encoding)
    report_warnings(result.warnings, "compress")
    print(f"[compress] {sum(result.frequencies.values())} symbols, {len(result.frequencies)} distinct")
    print(f"[compress] total code length {result.total_bits} bits, padding {result.pad_bits} bits")
    print(f"[compress] wrote {args.table}")
    print(f"[compress] wrote {args.packed} ({len(result.packed)} bytes)")


def run_decompress(args: argparse.Namespace) -> None:
    result = decompress_file(args.packed, args.table, args.output, args.encoding)
    report_warnings(result.warnings, "decompress")
    print(f"[decompress] {len(result.code_table)} codes read from {args.table}")
    print(f"[decompress] wrote {args.output} ({len(result.text)} symbols)")


def run_roundtrip(args: argparse.Namespace) -> None:
    run_compress(args)
    run_decompress(args)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman text compressor")
    sub = ap.add_subparsers(dest="mode", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--table", default=DEFAULT_TABLE, help="code table path (text)")
        p.add_argument("--packed", default=DEFAULT_PACKED, help="packed bitstream path (binary)")
        p.add_argument("--encoding", default=DEFAULT_ENCODING, help="text encoding of input/output")

    c = sub.add_parser("compress", help="text -> code table + packed bitstream")
    c.add_argument("--input", default=DEFAULT_INPUT, help="text to compress")
    add_common(c)
    c.set_defaults(func=run_compress)

    d = sub.add_parser("decompress", help="code table + packed bitstream -> text")
    d.add_argument("--output", default=DEFAULT_DECODED, help="decoded text path")
    add_common(d)
    d.set_defaults(func=run_decompress)

    r = sub.add_parser("roundtrip", help="compress then decompress")
    r.add_argument("--input", default=DEFAULT_INPUT, help="text to compress")
    r.add_argument("--output", default=DEFAULT_DECODED, help="decoded text path")
    add_common(r)
    r.set_defaults(func=run_roundtrip)

    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except (HuffmanError, OSError, UnicodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
