"""Normalizers for GTEx s/eQTL tables (egenes and signif pair layouts)."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Iterator
from itertools import islice
from pathlib import Path
from typing import IO, Any

import pandas as pd

from variantnaming.adapters.base import InputHeader, InputNormalizer, NormalizedInput
from variantnaming.adapters.common import (
    TabularNormalizerMixin,
    build_item,
    check_required_columns,
    open_text_stream,
    strip_line_terminator,
)
from variantnaming.config import DEFAULT_VCF_VERSION, FatalConfigError, ReferenceGenome, build_registry_header
from variantnaming.models import NormalizedItem, RejectedRecord, RejectionReason


class _GtexNormalizer(InputNormalizer, TabularNormalizerMixin):
    """Locate the header row, then stream the table in chunks of raw lines.

    Each chunk's required fields are framed with pandas while the raw line is
    kept as ``source_line``, so rows with extra or missing fields are never
    rewritten.
    """

    required_columns: tuple[str, ...] = ()

    def __init__(
        self,
        *,
        input_path: str | Path,
        reference_genome: str | ReferenceGenome,
        gzipped: bool = False,
        chunksize: int = 50_000,
    ) -> None:
        super().__init__(input_path=input_path, reference_genome=reference_genome, gzipped=gzipped)
        self.chunksize = chunksize

    def read(self) -> NormalizedInput:
        stream = open_text_stream(self.input_path, gzipped=self.gzipped)
        try:
            header, columns = self._read_header(stream)
        except BaseException:
            stream.close()
            raise

        return NormalizedInput(header, self._iter_items(stream, columns), stream)

    @abstractmethod
    def _is_header(self, line: str) -> bool:
        """Return True when ``line`` is this layout's column row."""

    @abstractmethod
    def _extract(self, row: dict[str, Any]) -> dict[str, str | None] | None:
        """Return submission fields for one row, or None if they cannot be split."""

    def _read_header(self, stream: IO[str]) -> tuple[InputHeader, list[str]]:
        while True:
            raw_line = stream.readline()
            if not raw_line:
                break

            line = strip_line_terminator(raw_line)
            if not line.strip():
                continue
            if not self._is_header(line):
                raise FatalConfigError(
                    f"Expected a {self.name} header row in {self.input_path}, found: {line[:80]!r}"
                )

            columns = line.split("\t")
            check_required_columns(columns, self.required_columns, source=self.input_path)
            header = InputHeader(
                original_header=line + "\n",
                column_header=line,
                registry_header=build_registry_header(self.reference_genome, DEFAULT_VCF_VERSION),
                vcf_version=DEFAULT_VCF_VERSION,
            )
            return header, columns

        raise FatalConfigError(f"No {self.name} header row found in {self.input_path}")

    def _frame(self, lines: list[str], index_of: dict[str, int]) -> pd.DataFrame:
        # Fields past the end of a short row are None; extra trailing fields are ignored.
        rows = []
        for line in lines:
            values = line.split("\t")
            rows.append(tuple(values[index] if index < len(values) else None for index in index_of.values()))
        return pd.DataFrame.from_records(rows, columns=list(index_of))

    def _iter_items(self, stream: IO[str], columns: list[str]) -> Iterator[NormalizedItem]:
        index_of = {name: columns.index(name) for name in self.required_columns}

        try:
            while True:
                chunk = list(islice(stream, self.chunksize))
                if not chunk:
                    return

                lines = [strip_line_terminator(raw_line) for raw_line in chunk]
                lines = [line for line in lines if line.strip()]
                if not lines:
                    continue

                frame = self._frame(lines, index_of)
                for source_line, values in zip(lines, frame.itertuples(index=False, name=None)):
                    fields = self._extract(dict(zip(frame.columns, values)))
                    if fields is None:
                        yield RejectedRecord(
                            source_line=source_line,
                            reason=RejectionReason.MISSING_REQUIRED_COLUMN,
                        )
                        continue
                    yield build_item(source_line=source_line, **fields)
        finally:
            stream.close()
class GtexEgenesNormalizer(_GtexNormalizer):
    """GTEx ``*.egenes`` tables with pre-split ``chr``/``variant_pos``/``ref``/``alt``."""

    name = "gtex_egenes"
    required_columns = ("variant_id", "chr", "variant_pos", "ref", "alt")

    def _is_header(self, line: str) -> bool:
        return "gene_name\tgene_chr" in line

    def _extract(self, row: dict[str, Any]) -> dict[str, str | None] | None:
        return {
            "chromosome": self._to_string(row["chr"]),
            "position": self._to_string(row["variant_pos"]),
            "reference_allele": self._to_string(row["ref"]),
            "alternate_allele": self._to_string(row["alt"]),
            "variant_id": self._to_string(row["variant_id"]),
        }


class GtexPairsNormalizer(_GtexNormalizer):
    """GTEx signif pair tables where ``variant_id`` is ``chr_pos_ref_alt[_build]``."""

    name = "gtex_pairs"
    required_columns = ("variant_id",)

    def _is_header(self, line: str) -> bool:
        return "variant_id" in line

    def _extract(self, row: dict[str, Any]) -> dict[str, str | None] | None:
        variant_id = self._to_string(row["variant_id"])
        if variant_id is None:
            return None

        parts = variant_id.split("_")
        if len(parts) < 4:
            return None

        return {
            "chromosome": parts[0],
            "position": parts[1],
            "reference_allele": parts[2],
            "alternate_allele": parts[3],
            "variant_id": variant_id,
        }
