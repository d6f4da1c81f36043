"""Dispatch from an input dialect to its normalizer."""

from __future__ import annotations

from pathlib import Path

from variantnaming.adapters import (
    GtexEgenesNormalizer,
    GtexPairsNormalizer,
    InputNormalizer,
    NormalizedInput,
    VcfNormalizer,
)
from variantnaming.config import FatalConfigError, InputDialect, ReferenceGenome

NORMALIZERS: dict[InputDialect, type[InputNormalizer]] = {
    InputDialect.VCF: VcfNormalizer,
    InputDialect.GTEX_EGENES: GtexEgenesNormalizer,
    InputDialect.GTEX_PAIRS: GtexPairsNormalizer,
}


def normalizer_for(dialect: str | InputDialect) -> type[InputNormalizer]:
    if isinstance(dialect, InputDialect):
        return NORMALIZERS[dialect]

    try:
        key = InputDialect(dialect.strip().lower())
    except ValueError as exc:
        available = ", ".join(item.value for item in InputDialect)
        raise FatalConfigError(f"Unknown input dialect {dialect!r}. Available: {available}") from exc
    return NORMALIZERS[key]


def normalize(
    input_path: str | Path,
    dialect: str | InputDialect,
    reference_genome: str | ReferenceGenome,
    *,
    gzipped: bool = False,
) -> NormalizedInput:
    """Open ``input_path`` in the given dialect and return its record stream."""

    normalizer_cls = normalizer_for(dialect)
    normalizer = normalizer_cls(
        input_path=input_path,
        reference_genome=reference_genome,
        gzipped=gzipped,
    )
    return normalizer.read()
