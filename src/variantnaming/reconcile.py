"""Positional reconciliation of registry responses with submitted records."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from variantnaming.models import (
    Batch,
    BatchError,
    RegistryResult,
    Resolved,
    RunStatistics,
    pair_results,
)


@dataclass
class ReconciliationResult:
    """Output lines and statistics produced for one batch."""

    resolved_lines: list[str] = field(default_factory=list)
    unresolved_lines: list[str] = field(default_factory=list)
    stats: RunStatistics = field(default_factory=RunStatistics)
    error: BatchError | None = None


def reconcile(batch: Batch, response: Sequence[RegistryResult] | BatchError) -> ReconciliationResult:
    """Route each record of ``batch`` by the result at the same position.

    A :class:`BatchError` yields no lines and no statistics. A response whose
    length differs from the batch is treated as a batch error rather than
    matched by content.
    """

    if isinstance(response, BatchError):
        return ReconciliationResult(error=response)

    try:
        slots = pair_results(batch, response)
    except ValueError as exc:
        return ReconciliationResult(error=BatchError(message=str(exc)))

    result = ReconciliationResult()
    for slot in slots:
        source_line = slot.record.source_line
        if isinstance(slot.result, Resolved):
            result.resolved_lines.append(f"{source_line}\t{slot.result.identifier}")
            result.stats.record_resolved(slot.result.external_records)
        else:
            result.unresolved_lines.append(f"{source_line}\t")
            result.stats.record_unresolved(slot.result.external_records)
    return result
