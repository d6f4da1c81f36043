"""Variant naming pipeline primitives.

This package normalizes VCF and GTEx QTL inputs into single-allele queries,
submits them in bounded batches to the ClinGen Allele Registry, and merges
the reconciled results into ``_CAid``/``_noCAid`` outputs plus a summary.
"""

from .batching import build_payload, make_batches, split_records
from .client import (
    Credentials,
    RegistryClient,
    RegistryError,
    RegistryResponseError,
    RegistryTimeoutError,
    RegistryTransportError,
    load_credentials,
)
from .config import FatalConfigError, InputDialect, OutputNames, ReferenceGenome, RunConfig
from .dialects import NORMALIZERS, normalize, normalizer_for
from .merge import MergeOptions, MergeReport, combine_summaries, merge
from .models import (
    Batch,
    BatchArtifact,
    BatchError,
    CanonicalVariantRecord,
    RejectedRecord,
    RejectionReason,
    Resolved,
    RunStatistics,
    Unresolved,
)
from .pipeline import NamingPipeline, NamingRunReport
from .reconcile import ReconciliationResult, reconcile

__all__ = [
    "Batch",
    "BatchArtifact",
    "BatchError",
    "CanonicalVariantRecord",
    "RejectedRecord",
    "RejectionReason",
    "Resolved",
    "Unresolved",
    "RunStatistics",
    "FatalConfigError",
    "InputDialect",
    "OutputNames",
    "ReferenceGenome",
    "RunConfig",
    "Credentials",
    "RegistryClient",
    "RegistryError",
    "RegistryResponseError",
    "RegistryTimeoutError",
    "RegistryTransportError",
    "load_credentials",
    "build_payload",
    "make_batches",
    "split_records",
    "ReconciliationResult",
    "reconcile",
    "MergeOptions",
    "MergeReport",
    "combine_summaries",
    "merge",
    "NamingPipeline",
    "NamingRunReport",
    "NORMALIZERS",
    "normalizer_for",
    "normalize",
]
