"""Batch-unique intermediate artifacts written under the working directory."""

from __future__ import annotations

import gzip
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import IO

from variantnaming.adapters.base import InputHeader
from variantnaming.config import OutputNames
from variantnaming.models import Batch, BatchArtifact, RejectedRecord
from variantnaming.reconcile import ReconciliationResult


def open_artifact(path: str | Path, mode: str, *, gzipped: bool = False) -> IO:
    """Open a plain or gzip artifact; ``mode`` is a text or binary file mode."""

    if gzipped:
        return gzip.open(path, mode)
    return Path(path).open(mode)


def _write_lines(path: Path, lines: Iterable[str], *, gzipped: bool) -> None:
    with open_artifact(path, "wt", gzipped=gzipped) as stream:
        for line in lines:
            stream.write(line)
            stream.write("\n")


class BatchStageWriter:
    """Write each batch's streams to files keyed by batch index."""

    def __init__(
        self,
        *,
        work_dir: str | Path,
        error_dir: str | Path,
        names: OutputNames,
        gzipped: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.work_dir = Path(work_dir)
        self.error_dir = Path(error_dir)
        self.names = names
        self.gzipped = gzipped
        self.logger = logger or logging.getLogger("variantnaming.staging")

    def write(self, batch: Batch, result: ReconciliationResult, payload: str) -> BatchArtifact:
        prefix = self.names.batch_prefix(batch.index)
        artifact = BatchArtifact(
            batch_index=batch.index,
            record_count=len(batch),
            stats=result.stats,
            error=result.error,
        )

        if result.error is not None:
            # Error artifacts go next to the final outputs so work-dir cleanup keeps them.
            artifact.error_path = self.error_dir / f"{prefix}_Error.txt"
            artifact.input_path = self.error_dir / f"{prefix}_input.txt"
            artifact.error_path.write_text("\n".join(result.error.to_lines()) + "\n")
            artifact.input_path.write_text(payload)
            self.logger.warning(
                "Batch %d failed (%d records): %s | error=%s input=%s",
                batch.index + 1,
                len(batch),
                result.error.message,
                artifact.error_path,
                artifact.input_path,
            )
            return artifact

        artifact.resolved_path = self.work_dir / self.names.resolved(prefix)
        artifact.unresolved_path = self.work_dir / self.names.unresolved(prefix)
        _write_lines(artifact.resolved_path, result.resolved_lines, gzipped=self.gzipped)
        _write_lines(artifact.unresolved_path, result.unresolved_lines, gzipped=self.gzipped)
        return artifact


class RejectedStreamWriter:
    """Collect rejected input rows (with their reason) in submission order."""

    def __init__(
        self,
        path: str | Path,
        *,
        gzipped: bool = False,
        header: InputHeader | None = None,
    ) -> None:
        self.path = Path(path)
        self.gzipped = gzipped
        self.count = 0
        self._stream = open_artifact(self.path, "wt", gzipped=gzipped)
        if header is not None:
            self._write_header(header)

    def _write_header(self, header: InputHeader) -> None:
        for line in header.original_header.splitlines():
            if line == header.column_header:
                self._stream.write(f"{line}\tErrorComments\n")
            else:
                self._stream.write(f"{line}\n")

    def __call__(self, record: RejectedRecord) -> None:
        self._stream.write(record.to_output_line())
        self._stream.write("\n")
        self.count += 1

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> RejectedStreamWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def remove_work_files(paths: Iterable[Path | None]) -> int:
    """Delete intermediate files; return how many were removed."""

    removed = 0
    for path in paths:
        if path is not None and path.exists():
            path.unlink()
            removed += 1
    return removed
