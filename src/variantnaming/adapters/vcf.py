"""Normalizer for VCF-like tab-separated inputs."""

from __future__ import annotations

from collections.abc import Iterator
from typing import IO

from variantnaming.adapters.base import InputHeader, InputNormalizer, NormalizedInput
from variantnaming.adapters.common import (
    build_item,
    check_required_columns,
    open_text_stream,
    strip_line_terminator,
)
from variantnaming.config import REQUIRED_VCF_COLUMNS, FatalConfigError, build_registry_header
from variantnaming.models import NormalizedItem, RejectedRecord, RejectionReason


class VcfNormalizer(InputNormalizer):
    """Read ``##`` metadata, the ``#CHROM`` row, then one record per data row."""

    name = "vcf"

    def read(self) -> NormalizedInput:
        stream = open_text_stream(self.input_path, gzipped=self.gzipped)
        try:
            header, columns = self._read_header(stream)
        except BaseException:
            stream.close()
            raise

        offsets = {name: columns.index(name) for name in ("#CHROM", "POS", "ID", "REF", "ALT")}
        return NormalizedInput(header, self._iter_items(stream, offsets), stream)

    def _read_header(self, stream: IO[str]) -> tuple[InputHeader, list[str]]:
        vcf_version = ""
        original_lines: list[str] = []

        for raw_line in stream:
            line = strip_line_terminator(raw_line)

            if line.startswith("##fileformat"):
                vcf_version = line.split("=", 1)[1].strip() if "=" in line else ""
                original_lines.append(line)
                continue

            if "#CHROM" in line.upper():
                original_lines.append(line)
                columns = line.upper().replace("##CHROM", "#CHROM", 1).split("\t")
                if not vcf_version:
                    raise FatalConfigError(
                        f"VCF version could not be found in {self.input_path}; include it on "
                        "the first line, e.g. ##fileformat=VCFv4.2"
                    )
                check_required_columns(columns, REQUIRED_VCF_COLUMNS, source=self.input_path)
                header = InputHeader(
                    original_header="\n".join(original_lines) + "\n",
                    column_header=line,
                    registry_header=build_registry_header(self.reference_genome, vcf_version),
                    vcf_version=vcf_version,
                )
                return header, columns

            if line.startswith("##"):
                original_lines.append(line)
                continue

            if not line.strip():
                continue

            raise FatalConfigError(
                f"Header for {self.input_path} was not found before the first data row. "
                f"The following column titles are required: {' '.join(REQUIRED_VCF_COLUMNS)}"
            )

        raise FatalConfigError(
            f"Header for {self.input_path} was not found. "
            f"The following column titles are required: {' '.join(REQUIRED_VCF_COLUMNS)}"
        )

    def _iter_items(self, stream: IO[str], offsets: dict[str, int]) -> Iterator[NormalizedItem]:
        needed = max(offsets.values()) + 1
        try:
            for raw_line in stream:
                line = strip_line_terminator(raw_line)
                if not line.strip():
                    continue

                fields = line.split("\t")
                if len(fields) < needed:
                    yield RejectedRecord(
                        source_line=line,
                        reason=RejectionReason.MISSING_REQUIRED_COLUMN,
                    )
                    continue

                yield build_item(
                    source_line=line,
                    chromosome=fields[offsets["#CHROM"]],
                    position=fields[offsets["POS"]].strip(),
                    reference_allele=fields[offsets["REF"]].strip(),
                    alternate_allele=fields[offsets["ALT"]].strip(),
                    variant_id=fields[offsets["ID"]].strip(),
                )
        finally:
            stream.close()
