"""Command line interface for the book chunker."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .chunker import ChunkOptions
from .pipeline import DEFAULT_MIN_TEXT_LENGTH, BookChunker
from . import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="book-chunker",
        description=(
            "Split a cleaned plain-text book into chapter-aware chunks sized "
            "for sequential reading by language models."
        ),
    )
    parser.add_argument("--in", dest="input_path", type=Path, required=True, help="Cleaned UTF-8 text file")
    parser.add_argument("--out", dest="output_path", type=Path, help="Write JSON here instead of stdout")
    parser.add_argument("--target-tokens", type=int, help="Soft target chunk size (default 3000)")
    parser.add_argument("--max-tokens", type=int, help="Hard chunk size ceiling (default 4000)")
    parser.add_argument("--min-tokens", type=int, help="Smallest chunk worth flushing (default 500)")
    parser.add_argument("--chars-per-token", type=float, help="Token estimation factor (default 4)")
    parser.add_argument(
        "--min-length",
        type=int,
        default=DEFAULT_MIN_TEXT_LENGTH,
        help="Reject texts shorter than this many characters",
    )
    parser.add_argument("--stats-only", action="store_true", help="Omit chunk bodies from the output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print warnings and errors")
    parser.add_argument("--version", action="version", version=f"book-chunker {__version__}")
    return parser


def configure_logging(verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def create_options(namespace: argparse.Namespace) -> ChunkOptions:
    return ChunkOptions.from_env(
        target_tokens=namespace.target_tokens,
        max_tokens=namespace.max_tokens,
        min_tokens=namespace.min_tokens,
        chars_per_token=namespace.chars_per_token,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)
    try:
        options = create_options(args)
        chunker = BookChunker(options, min_text_length=args.min_length)
        result = chunker.process_file(args.input_path)
    except Exception as exc:
        logging.getLogger(__name__).error(str(exc))
        return 1

    payload = json.dumps(result.to_dict(include_chunks=not args.stats_only), indent=2, ensure_ascii=False)
    if args.output_path:
        args.output_path.parent.mkdir(parents=True, exist_ok=True)
        args.output_path.write_text(payload + "\n", encoding="utf-8")
        print(f"Wrote {result.total_chunks} chunks to {args.output_path}")
    else:
        sys.stdout.write(payload + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
