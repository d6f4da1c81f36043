"""Shared utilities for input normalizers."""

from __future__ import annotations

import gzip
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import IO, Any

import pandas as pd

from variantnaming.config import FatalConfigError
from variantnaming.models import CanonicalVariantRecord, NormalizedItem, RejectedRecord, RejectionReason


def open_text_stream(path: str | Path, *, gzipped: bool = False) -> IO[str]:
    """Open an input file for forward-only text reading."""

    if gzipped:
        return gzip.open(path, "rt", newline="")
    return Path(path).open("r", newline="")


def strip_line_terminator(line: str) -> str:
    return line.rstrip("\r\n")


def check_required_columns(
    columns: Sequence[str],
    required: Iterable[str],
    *,
    source: str | Path,
) -> None:
    """Raise when the parsed header lacks any required column."""

    present = set(columns)
    missing = [column for column in required if column not in present]
    if missing:
        raise FatalConfigError(
            f"The header of {source} needs to have {', '.join(repr(col) for col in missing)} "
            "as column header(s)"
        )


def classify_allele(allele: str) -> RejectionReason | None:
    """Return why an allele cannot be submitted, or None when it can."""

    if not allele:
        return RejectionReason.MISSING_REQUIRED_COLUMN
    if "*" in allele:
        return RejectionReason.WILDCARD_ALLELE
    if "," in allele:
        return RejectionReason.MULTI_ALLELIC
    return None


def normalize_chromosome(value: str) -> str:
    """Drop a leading ``chr`` so names match the registry's contig IDs."""

    cleaned = value.strip()
    if cleaned[:3].lower() == "chr":
        return cleaned[3:]
    return cleaned


def build_item(
    *,
    source_line: str,
    chromosome: str | None,
    position: str | None,
    reference_allele: str | None,
    alternate_allele: str | None,
    variant_id: str | None,
) -> NormalizedItem:
    """Turn extracted fields into a canonical record or a rejection."""

    alt_reason = classify_allele(alternate_allele or "")
    if alt_reason is not None:
        return RejectedRecord(source_line=source_line, reason=alt_reason)

    ref_reason = classify_allele(reference_allele or "")
    if ref_reason is not None:
        return RejectedRecord(source_line=source_line, reason=ref_reason)

    chrom = normalize_chromosome(chromosome or "")
    if not chrom or not position:
        return RejectedRecord(
            source_line=source_line,
            reason=RejectionReason.MISSING_REQUIRED_COLUMN,
        )

    try:
        parsed_position = int(position)
    except ValueError:
        return RejectedRecord(
            source_line=source_line,
            reason=RejectionReason.MISSING_REQUIRED_COLUMN,
        )

    return CanonicalVariantRecord(
        source_line=source_line,
        chromosome=chrom,
        position=parsed_position,
        reference_allele=reference_allele,
        alternate_allele=alternate_allele,
        variant_id=variant_id or ".",
    )


class TabularNormalizerMixin:
    """Common conversions for pandas-backed table normalizers."""

    @staticmethod
    def _to_string(value: Any) -> str | None:
        if value is None or pd.isna(value):
            return None

        cleaned = str(value).strip()
        return cleaned or None
