#!/usr/bin/env python3
"""Add summary reports from separate naming runs into one report."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from variantnaming import combine_summaries  # noqa: E402
from variantnaming.merge import write_summary  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Merge *_summary.txt reports into one.")
    parser.add_argument("summaries", nargs="+", help="Summary files to add together")
    parser.add_argument("-o", "--output", default=None, help="Write here instead of stdout")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    missing = [path for path in args.summaries if not Path(path).is_file()]
    if missing:
        print(f"Error: summary file(s) not found: {', '.join(missing)}", file=sys.stderr)
        return 1

    try:
        stats = combine_summaries(args.summaries)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.output:
        write_summary(Path(args.output), stats)
    else:
        sys.stdout.write(stats.render())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
