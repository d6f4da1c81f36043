"""Batch submission and reconciliation pipeline orchestrator."""

from __future__ import annotations

import concurrent.futures as futures
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from variantnaming.batching import build_payload, make_batches, split_records
from variantnaming.client import RegistryClient, RegistryError, RegistryTimeoutError, load_credentials
from variantnaming.config import RunConfig
from variantnaming.dialects import normalize
from variantnaming.merge import MergeOptions, merge
from variantnaming.models import Batch, BatchArtifact, BatchError, RegistryResult, RunStatistics
from variantnaming.reconcile import reconcile
from variantnaming.staging import BatchStageWriter, RejectedStreamWriter, remove_work_files


@dataclass
class NamingRunReport:
    """Execution summary for a pipeline run."""

    resolved_path: Path
    unresolved_path: Path
    stats: RunStatistics
    batch_count: int
    rejected_records: int
    summary_path: Path | None = None
    failed_batches: list[int] = field(default_factory=list)
    error_paths: list[Path] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "resolved_path": str(self.resolved_path),
            "unresolved_path": str(self.unresolved_path),
            "summary_path": str(self.summary_path) if self.summary_path else None,
            "batch_count": self.batch_count,
            "failed_batches": [index + 1 for index in self.failed_batches],
            "rejected_records": self.rejected_records,
            "error_paths": [str(path) for path in self.error_paths],
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            **self.stats.to_dict(),
        }


class NamingPipeline:
    """Normalize, batch, submit, reconcile and merge one input file."""

    def __init__(
        self,
        config: RunConfig,
        *,
        client: RegistryClient | None = None,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.client = client
        self.logger = logger or logging.getLogger("variantnaming.pipeline")
        self.sleep = sleep

    def run(self) -> NamingRunReport:
        started = time.perf_counter()
        config = self.config
        genome = config.validate()

        if self.client is None:
            credentials = load_credentials(config.credentials_path) if config.naming else None
            self.client = RegistryClient(credentials, include_external_records=config.summary)

        work_dir = config.resolved_work_dir()
        work_dir.mkdir(parents=True, exist_ok=True)
        names = config.output_names()
        self._remove_stale_work_files(work_dir, names.stem)

        self.logger.info(
            (
                "Config: input=%s dialect=%s genome=%s mode=%s block_size=%d workers=%d "
                "output_dir=%s work_dir=%s"
            ),
            config.input_path,
            config.dialect.value,
            genome.value,
            "name" if config.naming else "query",
            config.block_size,
            config.workers,
            config.output_dir,
            work_dir,
        )

        stage_writer = BatchStageWriter(
            work_dir=work_dir,
            error_dir=Path(config.output_dir),
            names=names,
            gzipped=config.gzipped,
            logger=self.logger,
        )
        rejected_path = work_dir / names.rejected()

        with normalize(
            config.input_path,
            config.dialect,
            genome,
            gzipped=config.gzipped,
        ) as normalized:
            header = normalized.header
            with RejectedStreamWriter(
                rejected_path,
                gzipped=config.gzipped,
                header=header if config.include_header else None,
            ) as rejected:
                records = split_records(normalized, rejected)
                batches = make_batches(records, config.block_size)
                artifacts = self._process_batches(batches, header.registry_header, stage_writer)
            rejected_count = rejected.count

        merged = merge(
            artifacts,
            rejected_path,
            MergeOptions(
                output_dir=Path(config.output_dir),
                names=names,
                summary=config.summary,
                rejected_count=rejected_count,
            ),
            logger=self.logger,
        )

        if not config.keep_work_files:
            removed = remove_work_files(
                [rejected_path]
                + [item.resolved_path for item in artifacts]
                + [item.unresolved_path for item in artifacts]
            )
            self.logger.info("Removed %d intermediate files from %s", removed, work_dir)

        elapsed = time.perf_counter() - started
        report = NamingRunReport(
            resolved_path=merged.resolved_path,
            unresolved_path=merged.unresolved_path,
            summary_path=merged.summary_path,
            stats=merged.stats,
            batch_count=merged.batch_count,
            rejected_records=rejected_count,
            failed_batches=merged.failed_batches,
            error_paths=[item.error_path for item in artifacts if item.error_path is not None],
            elapsed_seconds=elapsed,
        )
        self.logger.info(
            (
                "Pipeline complete in %.2fs | batches=%d failed=%d rejected=%d "
                "variants=%d registered=%d unregistered=%d"
            ),
            elapsed,
            report.batch_count,
            len(report.failed_batches),
            rejected_count,
            report.stats.total_variants,
            report.stats.total_registered,
            report.stats.total_unregistered,
        )
        return report

    def _remove_stale_work_files(self, work_dir: Path, stem: str) -> None:
        stale = sorted(work_dir.glob(f"{stem}_tmp-*")) + sorted(work_dir.glob(f"{stem}_rejected_*"))
        if stale:
            self.logger.warning("Removing %d stale intermediate files from %s", len(stale), work_dir)
            remove_work_files(stale)

    def _process_batches(
        self,
        batches: Iterable[Batch],
        registry_header: str,
        stage_writer: BatchStageWriter,
    ) -> list[BatchArtifact]:
        artifacts: list[BatchArtifact] = []
        running = RunStatistics()

        if self.config.workers == 1:
            for batch in batches:
                artifact = self._process_batch(batch, registry_header, stage_writer)
                self._collect(artifact, artifacts, running)
            return artifacts

        # Bounded in-flight window keeps memory at a few batches regardless of input size.
        max_in_flight = self.config.workers * 2
        with futures.ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            pending: set[futures.Future[BatchArtifact]] = set()
            for batch in batches:
                pending.add(executor.submit(self._process_batch, batch, registry_header, stage_writer))
                if len(pending) >= max_in_flight:
                    done, pending = futures.wait(pending, return_when=futures.FIRST_COMPLETED)
                    for future in done:
                        self._collect(future.result(), artifacts, running)
            for future in futures.as_completed(pending):
                self._collect(future.result(), artifacts, running)

        return artifacts

    def _collect(
        self,
        artifact: BatchArtifact,
        artifacts: list[BatchArtifact],
        running: RunStatistics,
    ) -> None:
        artifacts.append(artifact)
        running.merge(artifact.stats)
        self.logger.info(
            (
                "Batch %d complete: records=%d status=%s batch_registered=%d "
                "batch_unregistered=%d totals(variants=%d registered=%d unregistered=%d)"
            ),
            artifact.batch_index + 1,
            artifact.record_count,
            "failed" if artifact.failed else "ok",
            artifact.stats.total_registered,
            artifact.stats.total_unregistered,
            running.total_variants,
            running.total_registered,
            running.total_unregistered,
        )

    def _process_batch(
        self,
        batch: Batch,
        registry_header: str,
        stage_writer: BatchStageWriter,
    ) -> BatchArtifact:
        payload = build_payload(registry_header, batch)
        self.logger.info(
            "Calling registry for batch %d (records %d-%d)",
            batch.index + 1,
            batch.start + 1,
            batch.start + len(batch),
        )
        response = self._submit(payload)
        return stage_writer.write(batch, reconcile(batch, response), payload)

    def _submit(self, payload: str) -> list[RegistryResult] | BatchError:
        attempt = 0
        while True:
            try:
                return self.client.submit(payload, authenticated=self.config.naming)
            except RegistryTimeoutError as exc:
                if attempt >= self.config.max_retries:
                    return exc.to_batch_error()
                delay = self.config.retry_backoff * (2 ** attempt)
                attempt += 1
                self.logger.warning(
                    "Registry timeout, retry %d/%d in %.1fs: %s",
                    attempt,
                    self.config.max_retries,
                    delay,
                    exc.message,
                )
                self.sleep(delay)
            except RegistryError as exc:
                return exc.to_batch_error()
