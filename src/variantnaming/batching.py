"""Fixed-size windowing of canonical records and batch payload construction."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from variantnaming.models import Batch, CanonicalVariantRecord, NormalizedItem, RejectedRecord


def split_records(
    items: Iterable[NormalizedItem],
    on_rejected: Callable[[RejectedRecord], None],
) -> Iterator[CanonicalVariantRecord]:
    """Yield canonical records, handing every rejection to ``on_rejected``."""

    for item in items:
        if isinstance(item, RejectedRecord):
            on_rejected(item)
            continue
        yield item


def make_batches(records: Iterable[CanonicalVariantRecord], block_size: int) -> Iterator[Batch]:
    """Partition ``records`` into contiguous windows of ``block_size``.

    Only the last window may be shorter; an empty input yields no batches.
    Records are never reordered or dropped.
    """

    if block_size < 1:
        raise ValueError("block size must be >= 1")

    window: list[CanonicalVariantRecord] = []
    index = 0
    start = 0
    for record in records:
        window.append(record)
        if len(window) >= block_size:
            yield Batch(index=index, start=start, records=tuple(window))
            index += 1
            start += len(window)
            window = []
    if window:
        yield Batch(index=index, start=start, records=tuple(window))


def build_payload(registry_header: str, batch: Batch) -> str:
    """Concatenate the registry header and one VCF line per record, in order."""

    header = registry_header if registry_header.endswith("\n") else registry_header + "\n"
    lines = [record.to_vcf_line() for record in batch.records]
    return header + "".join(f"{line}\n" for line in lines)
