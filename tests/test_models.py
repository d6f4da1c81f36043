import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from variantnaming.models import (  # noqa: E402
    Batch,
    BatchError,
    CanonicalVariantRecord,
    RejectedRecord,
    RejectionReason,
    Resolved,
    RunStatistics,
    Unresolved,
    pair_results,
)


def _record(position: int, alt: str = "G") -> CanonicalVariantRecord:
    return CanonicalVariantRecord(
        source_line=f"chr1\t{position}\t.\tA\t{alt}",
        chromosome="1",
        position=position,
        reference_allele="A",
        alternate_allele=alt,
    )


def test_record_renders_eight_column_vcf_line() -> None:
    record = CanonicalVariantRecord(
        source_line="raw",
        chromosome="7",
        position=117559590,
        reference_allele="ATCT",
        alternate_allele="A",
        variant_id="rs113993960",
    )

    assert record.to_vcf_line() == "7\t117559590\t.\tATCT\tA\t.\t.\trs113993960"


@pytest.mark.parametrize("alt", ["*", "G,T", ""])
def test_record_rejects_unsupported_alleles(alt: str) -> None:
    with pytest.raises(ValueError):
        _record(100, alt=alt)


def test_rejected_record_keeps_line_and_reason_comment() -> None:
    rejected = RejectedRecord(source_line="1\t5\t.\tA\tG,T", reason=RejectionReason.MULTI_ALLELIC)

    line = rejected.to_output_line()
    assert line.startswith("1\t5\t.\tA\tG,T\t")
    assert "more than 1 alt allele" in line


def test_summary_additivity() -> None:
    first = RunStatistics(total_variants=3, total_registered=2, total_unregistered=1)
    second = RunStatistics(total_variants=5, total_registered=4, total_unregistered=1)

    total = RunStatistics.combined(first, second)

    assert (total.total_variants, total.total_registered, total.total_unregistered) == (8, 6, 2)
    assert first.total_variants == 3


def test_statistics_count_cross_references() -> None:
    stats = RunStatistics()
    stats.record_resolved({"dbSNP": [{"rs": 1}], "ClinVarAlleles": [{}]})
    stats.record_resolved({"dbSNP": [{"rs": 2}]})
    stats.record_unresolved()
    stats.record_rejected(2)

    assert stats.total_variants == 5
    assert stats.total_registered == 2
    assert stats.total_unregistered == 3
    assert stats.cross_reference_counts == {"dbSNP": 2, "ClinVarAlleles": 1}


def test_summary_render_and_parse_agree() -> None:
    stats = RunStatistics(total_variants=4, total_registered=3, total_unregistered=1)
    stats.cross_reference_counts.update({"gnomAD": 2, "dbSNP": 3})

    text = stats.render()

    assert text.splitlines() == [
        "Total variants: 4",
        "Total registered: 3",
        "Total unregistered: 1",
        "Variants seen in other records:",
        "dbSNP: 3",
        "gnomAD: 2",
    ]
    assert RunStatistics.parse(text) == stats


def test_summary_parse_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError):
        RunStatistics.parse("Total things: 3\n")


def test_pair_results_requires_equal_lengths() -> None:
    batch = Batch(index=0, start=0, records=(_record(1), _record(2)))

    slots = pair_results(batch, [Resolved("CA1"), Unresolved()])
    assert [slot.record.position for slot in slots] == [1, 2]

    with pytest.raises(ValueError):
        pair_results(batch, [Resolved("CA1")])


def test_batch_error_renders_error_object_lines() -> None:
    error = BatchError(
        message="Registry returned an error response",
        status_code=200,
        payload={"errorType": "VcfParsingError", "line": 3},
    )

    assert error.to_lines() == ["errorType: VcfParsingError", "line: 3"]
    assert BatchError(message="boom", status_code=500, payload="oops").to_lines() == [
        "status: 500",
        "message: boom",
        "body: oops",
    ]
