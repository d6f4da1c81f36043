"""Stitch per-batch artifacts into the final output pair and summary."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from variantnaming.config import OutputNames
from variantnaming.models import BatchArtifact, RunStatistics


@dataclass(frozen=True)
class MergeOptions:
    """Where and how final artifacts are written."""

    output_dir: Path
    names: OutputNames
    summary: bool = False
    rejected_count: int = 0


@dataclass
class MergeReport:
    """Final artifact locations and folded statistics of a run."""

    resolved_path: Path
    unresolved_path: Path
    stats: RunStatistics
    summary_path: Path | None = None
    batch_count: int = 0
    failed_batches: list[int] = field(default_factory=list)


def _concatenate(target: Path, parts: Iterable[Path]) -> None:
    # Raw byte copy: gzip parts concatenate into a valid multi-member gzip file.
    with target.open("wb") as out_stream:
        for part in parts:
            with part.open("rb") as in_stream:
                shutil.copyfileobj(in_stream, out_stream)


def merge(
    artifacts: Sequence[BatchArtifact],
    rejected_path: Path | None,
    options: MergeOptions,
    *,
    logger: logging.Logger | None = None,
) -> MergeReport:
    """Concatenate batch streams in batch order and fold their statistics.

    The unresolved output starts with the rejected stream, followed by each
    batch's registry-unresolved lines. Failed batches contribute no lines and
    no counts; their payloads stay in the error artifacts.
    """

    logger = logger or logging.getLogger("variantnaming.merge")
    ordered = sorted(artifacts, key=lambda item: item.batch_index)
    succeeded = [item for item in ordered if not item.failed]

    resolved_path = options.output_dir / options.names.resolved()
    unresolved_path = options.output_dir / options.names.unresolved()

    logger.info("Merging %d resolved batch files into %s", len(succeeded), resolved_path)
    _concatenate(resolved_path, [item.resolved_path for item in succeeded if item.resolved_path])

    unresolved_parts: list[Path] = []
    if rejected_path is not None and rejected_path.exists():
        unresolved_parts.append(rejected_path)
    unresolved_parts.extend(item.unresolved_path for item in succeeded if item.unresolved_path)
    logger.info("Merging %d unresolved files into %s", len(unresolved_parts), unresolved_path)
    _concatenate(unresolved_path, unresolved_parts)

    stats = RunStatistics.combined(*(item.stats for item in succeeded))
    stats.record_rejected(options.rejected_count)

    report = MergeReport(
        resolved_path=resolved_path,
        unresolved_path=unresolved_path,
        stats=stats,
        batch_count=len(ordered),
        failed_batches=[item.batch_index for item in ordered if item.failed],
    )

    if options.summary:
        report.summary_path = options.output_dir / options.names.summary()
        write_summary(report.summary_path, stats)
        logger.info("Created final summary file: %s", report.summary_path)

    return report


def write_summary(path: Path, stats: RunStatistics) -> None:
    path.write_text(stats.render())


def combine_summaries(paths: Iterable[str | Path]) -> RunStatistics:
    """Add summary reports written by separate runs into one accumulator."""

    total = RunStatistics()
    for path in paths:
        total.merge(RunStatistics.parse(Path(path).read_text()))
    return total
