"""Command line entry point for the Name Normalizer library."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from .learning import LearningConfig
from .pipeline import NormalizerConfig
from .runner import normalize_file


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Suggest normalized spellings for author names.")
    parser.add_argument("input", type=Path, help="CSV or Excel file with one row per creator occurrence")
    parser.add_argument("output", type=Path, help="Where to write suggestions (.csv, .xlsx or .json)")
    parser.add_argument(
        "--name-column",
        default=None,
        help="Column holding full names to parse (default: use first_name/last_name columns)",
    )
    parser.add_argument(
        "--state",
        default=os.getenv("NAME_NORMALIZER_STATE"),
        help="SQLite file that keeps learned decisions between runs",
    )
    parser.add_argument(
        "--confidence-threshold",
        type=float,
        default=0.8,
        help="Minimum similarity for learned-mapping lookups",
    )
    parser.add_argument("--accept-all", action="store_true", help="Accept every suggestion and learn from it")
    parser.add_argument("--updates", type=Path, default=None, help="Where to write record updates with --accept-all")
    parser.add_argument(
        "--disable-tqdm",
        action="store_true",
        help="Disable progress bars",
    )
    parser.add_argument("--quiet", action="store_true", help="Do not print stage summaries")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    config = NormalizerConfig(
        verbose=not args.quiet,
        state_path=args.state,
        learning=LearningConfig(confidence_threshold=args.confidence_threshold),
    )

    result = normalize_file(
        args.input,
        args.output,
        config,
        name_column=args.name_column,
        updates_path=args.updates,
        accept_all=args.accept_all,
        use_tqdm=not args.disable_tqdm,
    )
    return 0 if result is not None else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
