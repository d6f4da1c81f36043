"""Base interface for all input normalizers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from variantnaming.config import ReferenceGenome
from variantnaming.models import NormalizedItem


@dataclass(frozen=True)
class InputHeader:
    """Header artifact captured once, before any data row is emitted."""

    original_header: str
    column_header: str
    registry_header: str
    vcf_version: str


class NormalizedInput:
    """Header plus a lazy, single-pass stream of normalized items.

    The underlying file stays open until the stream is exhausted or
    :meth:`close` is called; use it as a context manager.
    """

    def __init__(
        self,
        header: InputHeader,
        items: Iterator[NormalizedItem],
        stream: IO[str],
    ) -> None:
        self.header = header
        self.items = items
        self._stream = stream

    def __iter__(self) -> Iterator[NormalizedItem]:
        return self.items

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> NormalizedInput:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class InputNormalizer(ABC):
    """Adapter that converts one input dialect into canonical records."""

    name: str

    def __init__(
        self,
        *,
        input_path: str | Path,
        reference_genome: str | ReferenceGenome,
        gzipped: bool = False,
    ) -> None:
        # Resolved before any I/O so an unsupported genome never reads input.
        self.reference_genome = ReferenceGenome.resolve(reference_genome)
        self.input_path = Path(input_path)
        self.gzipped = gzipped

    @abstractmethod
    def read(self) -> NormalizedInput:
        """Parse the header and return the lazy record stream."""
