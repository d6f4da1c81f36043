#!/usr/bin/env python3
"""Query or register variants with the ClinGen Allele Registry in batches.

Outputs, written to ``--out``:
  *_CAid*     original input lines plus the CA identifier column
  *_noCAid*   lines that could not be named (rejected or unknown to the registry)
  *_summary*  summary report (with ``--summary``)
  *_Error.txt / *_input.txt  error body and exact payload of a failed batch

Naming (``--name``) needs a registry account; pass a login file containing one
``[login]:[password]`` line with ``--login``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from variantnaming import FatalConfigError, InputDialect, NamingPipeline, RunConfig  # noqa: E402
from variantnaming.config import DEFAULT_BLOCK_SIZE, DEFAULT_REFERENCE_GENOME  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Query (default) or name variants with the ClinGen Allele Registry. "
            "Input is read as VCF unless a GTEx option is given."
        )
    )
    parser.add_argument("-i", "--input", required=True, help="Path to the input file")
    parser.add_argument(
        "-n",
        "--name",
        action="store_true",
        help="Name/register the variants instead of querying them",
    )
    dialect = parser.add_mutually_exclusive_group()
    dialect.add_argument(
        "--gtex_egenes",
        action="store_true",
        help="Input is a GTEx s/eQTL egenes file",
    )
    dialect.add_argument(
        "--gtex_pairs",
        action="store_true",
        help="Input is a GTEx s/eQTL gene/signif pairs file",
    )
    parser.add_argument("--gz", action="store_true", help="Input is gzipped")
    parser.add_argument(
        "-r",
        "--ref",
        default=DEFAULT_REFERENCE_GENOME,
        help="Reference genome of the input [hg19|grch37 or hg38|grch38] (default: hg38)",
    )
    parser.add_argument(
        "-b",
        "--block",
        type=int,
        default=DEFAULT_BLOCK_SIZE,
        help="Number of variants per registry request (default: 10000)",
    )
    parser.add_argument("-o", "--out", default=None, help="Output directory (default: cwd)")
    parser.add_argument(
        "-w",
        "--work",
        default=None,
        help="Existing working directory for intermediate files (default: <out>/tmp)",
    )
    parser.add_argument("-s", "--summary", action="store_true", help="Write the summary report")
    parser.add_argument(
        "-l",
        "--login",
        default=None,
        help="File with one [login]:[password] line, required with --name",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Batches submitted concurrently (default: 1)",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=0,
        help="Retries for a batch whose request timed out (default: 0)",
    )
    parser.add_argument(
        "--retry-backoff",
        type=float,
        default=5.0,
        help="Seconds before the first timeout retry; doubles on each attempt",
    )
    parser.add_argument(
        "--include-header",
        action="store_true",
        help="Start the *_noCAid* output with the input header and an ErrorComments column",
    )
    parser.add_argument(
        "--keep-work-files",
        action="store_true",
        help="Keep per-batch intermediate files (debugging)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for pipeline output.",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RunConfig:
    if args.gtex_egenes:
        dialect = InputDialect.GTEX_EGENES
    elif args.gtex_pairs:
        dialect = InputDialect.GTEX_PAIRS
    else:
        dialect = InputDialect.VCF

    return RunConfig(
        input_path=Path(args.input),
        output_dir=Path(args.out) if args.out else Path.cwd(),
        work_dir=Path(args.work) if args.work else None,
        dialect=dialect,
        gzipped=args.gz,
        reference_genome=args.ref,
        block_size=args.block,
        naming=args.name,
        summary=args.summary,
        credentials_path=Path(args.login) if args.login else None,
        include_header=args.include_header,
        workers=args.workers,
        max_retries=args.max_retries,
        retry_backoff=args.retry_backoff,
        keep_work_files=args.keep_work_files,
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        report = NamingPipeline(build_config(args)).run()
    except FatalConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(report.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
