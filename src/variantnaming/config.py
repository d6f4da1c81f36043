"""Configuration contracts for naming pipeline runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


DEFAULT_BLOCK_SIZE = 10_000
DEFAULT_VCF_VERSION = "VCFv4.2"
DEFAULT_REFERENCE_GENOME = "hg38"

REQUIRED_VCF_COLUMNS: tuple[str, ...] = (
    "#CHROM",
    "POS",
    "ID",
    "REF",
    "ALT",
    "QUAL",
    "FILTER",
    "INFO",
)


class FatalConfigError(ValueError):
    """Configuration or input precondition that aborts the whole run."""


class InputDialect(str, Enum):
    """Supported input table layouts."""

    VCF = "vcf"
    GTEX_EGENES = "gtex_egenes"
    GTEX_PAIRS = "gtex_pairs"

    @property
    def is_gtex(self) -> bool:
        return self is not InputDialect.VCF


_GRCH38_CONTIGS: tuple[tuple[str, int, str], ...] = (
    ("1", 248956422, "GRCh38"),
    ("2", 242193529, "GRCh38"),
    ("3", 198295559, "GRCh38"),
    ("4", 190214555, "GRCh38"),
    ("5", 181538259, "GRCh38"),
    ("6", 170805979, "GRCh38"),
    ("7", 159345973, "GRCh38"),
    ("8", 145138636, "GRCh38"),
    ("9", 138394717, "GRCh38"),
    ("10", 133797422, "GRCh38"),
    ("11", 135086622, "GRCh38"),
    ("12", 133275309, "GRCh38"),
    ("13", 114364328, "GRCh38"),
    ("14", 107043718, "GRCh38"),
    ("15", 101991189, "GRCh38"),
    ("16", 90338345, "GRCh38"),
    ("17", 83257441, "GRCh38"),
    ("18", 80373285, "GRCh38"),
    ("19", 58617616, "GRCh38"),
    ("20", 64444167, "GRCh38"),
    ("21", 46709983, "GRCh38"),
    ("22", 50818468, "GRCh38"),
    ("X", 156040895, "GRCh38"),
    ("Y", 57227415, "GRCh38"),
    ("M", 16569, "GRCh38"),
)

_GRCH37_CONTIGS: tuple[tuple[str, int, str], ...] = (
    ("1", 249250621, "gnomAD_GRCh37"),
    ("2", 243199373, "GRCh37"),
    ("3", 198022430, "GRCh37"),
    ("4", 191154276, "GRCh37"),
    ("5", 180915260, "GRCh37"),
    ("6", 171115067, "GRCh37"),
    ("7", 159138663, "GRCh37"),
    ("8", 146364022, "GRCh37"),
    ("9", 141213431, "GRCh37"),
    ("10", 135534747, "GRCh37"),
    ("11", 135006516, "GRCh37"),
    ("12", 133851895, "GRCh37"),
    ("13", 115169878, "GRCh37"),
    ("14", 107349540, "GRCh37"),
    ("15", 102531392, "GRCh37"),
    ("16", 90354753, "GRCh37"),
    ("17", 81195210, "GRCh37"),
    ("18", 78077248, "GRCh37"),
    ("19", 59128983, "GRCh37"),
    ("20", 63025520, "GRCh37"),
    ("21", 48129895, "GRCh37"),
    ("22", 51304566, "GRCh37"),
    ("X", 155270560, "GRCh37"),
    ("Y", 59373566, "GRCh37"),
)


class ReferenceGenome(str, Enum):
    """Reference assemblies the registry header can be built for."""

    GRCH37 = "GRCh37"
    GRCH38 = "GRCh38"

    @classmethod
    def resolve(cls, value: str | ReferenceGenome) -> ReferenceGenome:
        """Map a user-facing alias (``hg19``, ``grch38``...) to an assembly."""

        if isinstance(value, ReferenceGenome):
            return value

        key = str(value).strip().lower()
        if key in {"hg38", "grch38"}:
            return cls.GRCH38
        if key in {"hg19", "grch37"}:
            return cls.GRCH37

        raise FatalConfigError(
            f"Genome version {value!r} is not supported. "
            "Use one of hg19|grch37 or hg38|grch38."
        )

    @property
    def contigs(self) -> tuple[tuple[str, int, str], ...]:
        return _GRCH38_CONTIGS if self is ReferenceGenome.GRCH38 else _GRCH37_CONTIGS


def build_registry_header(
    reference_genome: str | ReferenceGenome,
    vcf_version: str = DEFAULT_VCF_VERSION,
) -> str:
    """Return the VCF header the registry expects in front of every batch."""

    genome = ReferenceGenome.resolve(reference_genome)
    lines = [f"##fileformat={vcf_version}"]
    lines.extend(
        f"##contig=<ID={name},length={length},assembly={assembly}>"
        for name, length, assembly in genome.contigs
    )
    lines.append("\t".join(REQUIRED_VCF_COLUMNS))
    return "\n".join(lines) + "\n"


_GZIP_SUFFIXES = {".gz", ".bgz", ".gzip"}


@dataclass(frozen=True)
class OutputNames:
    """Output and intermediate file names derived from the input path."""

    stem: str
    extension: str
    compressed_extension: str

    @classmethod
    def from_input(cls, input_path: str | Path, *, gzipped: bool) -> OutputNames:
        path = Path(input_path)
        compressed_extension = ""
        if gzipped and path.suffix.lower() in _GZIP_SUFFIXES:
            compressed_extension = path.suffix
            path = Path(path.stem)
        elif gzipped:
            compressed_extension = ".gz"
        return cls(stem=path.stem, extension=path.suffix, compressed_extension=compressed_extension)

    def _stream_name(self, prefix: str, label: str) -> str:
        return f"{prefix}_{label}{self.extension}{self.compressed_extension}"

    def resolved(self, prefix: str | None = None) -> str:
        return self._stream_name(prefix or self.stem, "CAid")

    def unresolved(self, prefix: str | None = None) -> str:
        return self._stream_name(prefix or self.stem, "noCAid")

    def rejected(self) -> str:
        return self._stream_name(f"{self.stem}_rejected", "noCAid")

    def summary(self) -> str:
        return f"{self.stem}_summary.txt"

    def batch_prefix(self, batch_index: int) -> str:
        return f"{self.stem}_tmp-{batch_index + 1}"


@dataclass(frozen=True)
class RunConfig:
    """Recognized options for one naming/query run."""

    input_path: Path
    output_dir: Path = field(default_factory=Path.cwd)
    work_dir: Path | None = None
    dialect: InputDialect = InputDialect.VCF
    gzipped: bool = False
    reference_genome: str = DEFAULT_REFERENCE_GENOME
    block_size: int = DEFAULT_BLOCK_SIZE
    naming: bool = False
    summary: bool = False
    credentials_path: Path | None = None
    include_header: bool = False
    workers: int = 1
    max_retries: int = 0
    retry_backoff: float = 5.0
    keep_work_files: bool = False

    def validate(self) -> ReferenceGenome:
        """Check every fatal precondition; return the resolved genome.

        Nothing here reads the input file, so a bad genome or path aborts the
        run before any line is consumed.
        """

        genome = ReferenceGenome.resolve(self.reference_genome)

        if self.block_size < 1:
            raise FatalConfigError(f"Block size must be >= 1, got {self.block_size}")
        if self.workers < 1:
            raise FatalConfigError(f"Worker count must be >= 1, got {self.workers}")
        if self.max_retries < 0:
            raise FatalConfigError(f"Retry count must be >= 0, got {self.max_retries}")
        if not Path(self.input_path).is_file():
            raise FatalConfigError(f"Input file: {self.input_path} does not exist")
        if not Path(self.output_dir).is_dir():
            raise FatalConfigError(
                f"Output path: {self.output_dir} points to a location that does not exist"
            )
        if self.work_dir is not None and not Path(self.work_dir).is_dir():
            raise FatalConfigError(
                f"Working directory: {self.work_dir} for intermediate files does not exist"
            )
        if self.naming:
            if self.credentials_path is None:
                raise FatalConfigError("Naming mode requires a login file (--login)")
            if not Path(self.credentials_path).is_file():
                raise FatalConfigError(f"Login file: {self.credentials_path} could not be found")

        return genome

    def resolved_work_dir(self) -> Path:
        if self.work_dir is not None:
            return Path(self.work_dir)
        return Path(self.output_dir) / "tmp"

    def output_names(self) -> OutputNames:
        return OutputNames.from_input(self.input_path, gzipped=self.gzipped)
