"""
huffzip: compress / restore a single file with the Huffman codec

How to run:
  python huffzip.py compress video.mp4               # writes video.mp4.huf
  python huffzip.py decompress video.mp4.huf -o out.mp4
  python huffzip.py info video.mp4.huf
"""

from __future__ import annotations

import argparse
import math
import sys
from pathlib import Path
from typing import List, Optional

import huffman as huff

SUFFIX = ".huf"
SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]


def format_bytes(n: int, decimals: int = 2) -> str:
    """1024-based size with trailing zeros dropped, e.g. 1536 -> '1.5 KB'"""
    if n == 0:
        return "0 Bytes"
    dm = max(0, decimals)
    i = min(int(math.log(n, 1024)), len(SIZE_UNITS) - 1)
    # log() can land just below an exact power of 1024
    if i + 1 < len(SIZE_UNITS) and n >= 1024 ** (i + 1):
        i += 1
    value = round(n / (1024 ** i), dm)
    text = f"{value:.{dm}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


def default_output(src: Path, mode: str) -> Path:
    if mode == "compress":
        return src.with_name(src.name + SUFFIX)
    if src.suffix == SUFFIX:
        return src.with_suffix("")
    return src.with_name(src.name + ".out")


def write_output(dst: Path, data: bytes, force: bool) -> None:
    try:
        with dst.open("wb" if force else "xb") as f:
            f.write(data)
    except FileExistsError:
        raise FileExistsError(f"{dst} already exists (use --force to overwrite)") from None


def cmd_compress(args: argparse.Namespace) -> int:
    src = Path(args.input)
    data = src.read_bytes()
    blob = huff.compress_bytes(data)
    dst = Path(args.output) if args.output else default_output(src, "compress")
    write_output(dst, blob, args.force)

    ratio = len(blob) / max(1, len(data))
    print(f"{src} -> {dst}")
    print(f"  original   {format_bytes(len(data))}")
    print(f"  compressed {format_bytes(len(blob))} (ratio {ratio:.3f})")
    return 0


def cmd_decompress(args: argparse.Namespace) -> int:
    src = Path(args.input)
    data = huff.decompress_bytes(src.read_bytes())
    dst = Path(args.output) if args.output else default_output(src, "decompress")
    write_output(dst, data, args.force)
    print(f"{src} -> {dst} ({format_bytes(len(data))})")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    src = Path(args.input)
    artifact = huff.CompressedArtifact.from_bytes(src.read_bytes())
    lengths = huff.code_lengths(artifact.frequencies)

    print(f"{src}")
    print(f"  distinct symbols {len(artifact.frequencies)}")
    print(f"  original size    {format_bytes(artifact.symbol_count)}")
    print(f"  payload          {format_bytes(len(artifact.payload))} ({artifact.bit_count} bits, {artifact.pad_bits} pad)")
    if lengths:
        print(f"  code lengths     {min(lengths.values())}..{max(lengths.values())} bits")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffzip", description="Huffman compress or restore a file")
    sub = ap.add_subparsers(dest="command", required=True)

    for name, help_text in (("compress", "compress INPUT into a .huf artifact"),
                            ("decompress", "restore the original bytes of a .huf artifact")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("input", help="Input file")
        p.add_argument("-o", "--output", help="Output file (default derived from INPUT)")
        p.add_argument("-f", "--force", action="store_true", help="Overwrite OUTPUT if it exists")

    p = sub.add_parser("info", help="show the header of a .huf artifact")
    p.add_argument("input", help="Artifact file")
    return ap


COMMANDS = {
    "compress": cmd_compress,
    "decompress": cmd_decompress,
    "info": cmd_info,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return COMMANDS[args.command](args)
    except (huff.HuffmanError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
