"""Canonical in-memory data models used by the naming pipeline."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Union


UNRESOLVED_IDENTIFIER = "_:CA"


def _is_single_allele(allele: str) -> bool:
    return bool(allele) and "," not in allele and "*" not in allele


@dataclass(frozen=True)
class CanonicalVariantRecord:
    """Single-ref/single-alt variant ready to be submitted to the registry.

    ``source_line`` keeps the originating input line (without its line
    terminator) so reconciled output can be written back in the input dialect.
    """

    source_line: str
    chromosome: str
    position: int
    reference_allele: str
    alternate_allele: str
    variant_id: str = "."

    def __post_init__(self) -> None:
        if not _is_single_allele(self.reference_allele):
            raise ValueError(f"Unsupported reference allele: {self.reference_allele!r}")
        if not _is_single_allele(self.alternate_allele):
            raise ValueError(f"Unsupported alternate allele: {self.alternate_allele!r}")

    def to_vcf_line(self) -> str:
        """Render the record as an 8-column VCF data line for submission."""

        return "\t".join(
            (
                self.chromosome,
                str(self.position),
                ".",
                self.reference_allele,
                self.alternate_allele,
                ".",
                ".",
                self.variant_id or ".",
            )
        )


class RejectionReason(str, Enum):
    """Why an input row was not turned into a canonical record."""

    WILDCARD_ALLELE = "wildcard_allele"
    MULTI_ALLELIC = "multi_allelic"
    MISSING_REQUIRED_COLUMN = "missing_required_column"

    @property
    def comment(self) -> str:
        return _REJECTION_COMMENTS[self]


_REJECTION_COMMENTS: dict[RejectionReason, str] = {
    RejectionReason.WILDCARD_ALLELE: (
        "Current version of Allele Registry cannot take * as an alt allele"
    ),
    RejectionReason.MULTI_ALLELIC: (
        "Allele Registry cannot take more than 1 alt allele, please split this "
        "entry into entries with just 1 alt allele"
    ),
    RejectionReason.MISSING_REQUIRED_COLUMN: (
        "Required variant fields are missing or malformed on this line"
    ),
}


@dataclass(frozen=True)
class RejectedRecord:
    """Input row that bypasses the registry and goes to the unresolved stream."""

    source_line: str
    reason: RejectionReason

    def to_output_line(self) -> str:
        return f"{self.source_line}\t{self.reason.comment}"


NormalizedItem = Union[CanonicalVariantRecord, RejectedRecord]


@dataclass(frozen=True)
class Batch:
    """Ordered window of records submitted together in one request."""

    index: int
    start: int
    records: tuple[CanonicalVariantRecord, ...]

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class Resolved:
    """Registry found (or registered) the allele."""

    identifier: str
    external_records: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Unresolved:
    """Registry has no allele identity for the submitted variant."""

    external_records: Mapping[str, Any] = field(default_factory=dict)


RegistryResult = Union[Resolved, Unresolved]


@dataclass(frozen=True)
class BatchError:
    """Failure that applies to every record of one batch."""

    message: str
    status_code: int | None = None
    payload: Any = None
    timed_out: bool = False

    def to_lines(self) -> list[str]:
        """Render the error body as ``key: value`` lines for the error artifact."""

        if isinstance(self.payload, Mapping):
            return [f"{key}: {value}" for key, value in self.payload.items()]

        lines = []
        if self.status_code is not None:
            lines.append(f"status: {self.status_code}")
        lines.append(f"message: {self.message}")
        if self.payload not in (None, ""):
            lines.append(f"body: {self.payload}")
        return lines


@dataclass(frozen=True)
class BatchSlot:
    """One submitted record paired with the registry result at its position."""

    record: CanonicalVariantRecord
    result: RegistryResult


def pair_results(batch: Batch, results: Sequence[RegistryResult]) -> list[BatchSlot]:
    """Pair each record of ``batch`` with the result at the same position."""

    if len(results) != len(batch.records):
        raise ValueError(
            f"Batch {batch.index} submitted {len(batch.records)} records but the "
            f"registry returned {len(results)} results"
        )
    return [BatchSlot(record=record, result=result) for record, result in zip(batch.records, results)]


_SUMMARY_TOTALS = (
    ("Total variants", "total_variants"),
    ("Total registered", "total_registered"),
    ("Total unregistered", "total_unregistered"),
)
_CROSS_REFERENCE_HEADING = "Variants seen in other records:"


@dataclass
class RunStatistics:
    """Additive counters folded per record, per batch and per run."""

    total_variants: int = 0
    total_registered: int = 0
    total_unregistered: int = 0
    cross_reference_counts: Counter = field(default_factory=Counter)

    def record_resolved(self, external_records: Mapping[str, Any] | None = None) -> None:
        self.total_variants += 1
        self.total_registered += 1
        self._count_cross_references(external_records)

    def record_unresolved(self, external_records: Mapping[str, Any] | None = None) -> None:
        self.total_variants += 1
        self.total_unregistered += 1
        self._count_cross_references(external_records)

    def record_rejected(self, count: int = 1) -> None:
        self.total_variants += count
        self.total_unregistered += count

    def _count_cross_references(self, external_records: Mapping[str, Any] | None) -> None:
        for name in external_records or {}:
            self.cross_reference_counts[name] += 1

    def merge(self, other: RunStatistics) -> RunStatistics:
        """Add ``other`` into this accumulator and return it."""

        self.total_variants += other.total_variants
        self.total_registered += other.total_registered
        self.total_unregistered += other.total_unregistered
        self.cross_reference_counts.update(other.cross_reference_counts)
        return self

    @classmethod
    def combined(cls, *stats: RunStatistics) -> RunStatistics:
        total = cls()
        for item in stats:
            total.merge(item)
        return total

    def render(self) -> str:
        """Render the plain-text summary report."""

        lines = [f"{label}: {getattr(self, attr)}" for label, attr in _SUMMARY_TOTALS]
        lines.append(_CROSS_REFERENCE_HEADING)
        for name in sorted(self.cross_reference_counts):
            lines.append(f"{name}: {self.cross_reference_counts[name]}")
        return "\n".join(lines) + "\n"

    @classmethod
    def parse(cls, text: str) -> RunStatistics:
        """Parse a summary report produced by :meth:`render`."""

        stats = cls()
        labels = dict(_SUMMARY_TOTALS)
        in_cross_references = False

        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            if line == _CROSS_REFERENCE_HEADING:
                in_cross_references = True
                continue

            name, sep, value = line.rpartition(":")
            if not sep:
                raise ValueError(f"Malformed summary line: {raw_line!r}")
            count = int(value.strip())

            if in_cross_references:
                stats.cross_reference_counts[name.strip()] += count
            elif name.strip() in labels:
                setattr(stats, labels[name.strip()], count)
            else:
                raise ValueError(f"Unknown summary field: {name.strip()!r}")

        return stats

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_variants": self.total_variants,
            "total_registered": self.total_registered,
            "total_unregistered": self.total_unregistered,
            "cross_reference_counts": dict(sorted(self.cross_reference_counts.items())),
        }


@dataclass
class BatchArtifact:
    """On-disk outputs and statistics of one processed batch."""

    batch_index: int
    record_count: int
    stats: RunStatistics = field(default_factory=RunStatistics)
    resolved_path: Path | None = None
    unresolved_path: Path | None = None
    error: BatchError | None = None
    error_path: Path | None = None
    input_path: Path | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None
