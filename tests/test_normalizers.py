import gzip
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from variantnaming.adapters import GtexPairsNormalizer, VcfNormalizer  # noqa: E402
from variantnaming.adapters.gtex import _GtexNormalizer  # noqa: E402
from variantnaming.config import FatalConfigError, InputDialect  # noqa: E402
from variantnaming.dialects import normalize, normalizer_for  # noqa: E402
from variantnaming.models import CanonicalVariantRecord, RejectedRecord, RejectionReason  # noqa: E402

VCF_HEADER = (
    "##fileformat=VCFv4.2\n"
    "##source=test\n"
    "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tSAMPLE\n"
)


def _write_vcf(path: Path, rows: list[str], header: str = VCF_HEADER) -> Path:
    path.write_text(header + "".join(f"{row}\n" for row in rows))
    return path


def test_vcf_normalizer_emits_records_and_rejections(tmp_path: Path) -> None:
    path = _write_vcf(
        tmp_path / "in.vcf",
        [
            "chr1\t100\trs1\tA\tG\t50\tPASS\t.\t0/1",
            "chr1\t200\t.\tC\t*\t50\tPASS\t.\t0/1",
            "2\t300\trs3\tT\tA,C\t50\tPASS\t.\t0/1",
            "",
            "X\t400\trs4\tG\tT\t.\t.\t.\t1/1",
        ],
    )

    with normalize(path, "vcf", "hg38") as normalized:
        items = list(normalized)
        header = normalized.header

    assert [type(item) for item in items] == [
        CanonicalVariantRecord,
        RejectedRecord,
        RejectedRecord,
        CanonicalVariantRecord,
    ]
    first = items[0]
    assert first.chromosome == "1"
    assert first.position == 100
    assert first.variant_id == "rs1"
    assert first.source_line == "chr1\t100\trs1\tA\tG\t50\tPASS\t.\t0/1"
    assert items[1].reason is RejectionReason.WILDCARD_ALLELE
    assert items[2].reason is RejectionReason.MULTI_ALLELIC
    assert items[2].source_line == "2\t300\trs3\tT\tA,C\t50\tPASS\t.\t0/1"

    assert header.vcf_version == "VCFv4.2"
    assert header.original_header == VCF_HEADER
    assert header.registry_header.startswith("##fileformat=VCFv4.2\n##contig=<ID=1,")


def test_vcf_normalizer_is_lazy(tmp_path: Path) -> None:
    path = _write_vcf(tmp_path / "in.vcf", ["1\t1\t.\tA\tG\t.\t.\t.", "1\t2\t.\tA\tG\t.\t.\t."])

    with normalize(path, "vcf", "hg19") as normalized:
        first = next(iter(normalized))
        assert first.position == 1
        remaining = list(normalized)

    assert [item.position for item in remaining] == [2]


def test_vcf_header_columns_are_case_insensitive(tmp_path: Path) -> None:
    header = "##fileformat=VCFv4.0\n##chrom\tpos\tid\tref\talt\tqual\tfilter\tinfo\n"
    path = _write_vcf(tmp_path / "lower.vcf", ["1\t10\t.\tA\tC\t.\t.\t."], header=header)

    with normalize(path, "vcf", "hg38") as normalized:
        items = list(normalized)

    assert len(items) == 1
    assert normalized.header.vcf_version == "VCFv4.0"


def test_vcf_missing_required_column_is_fatal(tmp_path: Path) -> None:
    header = "##fileformat=VCFv4.2\n#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\n"
    path = _write_vcf(tmp_path / "in.vcf", ["1\t10\t.\tA\tC\t.\t."], header=header)

    with pytest.raises(FatalConfigError, match="INFO"):
        normalize(path, "vcf", "hg38")


def test_vcf_without_fileformat_or_header_is_fatal(tmp_path: Path) -> None:
    no_version = _write_vcf(
        tmp_path / "no_version.vcf",
        [],
        header="#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n",
    )
    with pytest.raises(FatalConfigError, match="VCF version"):
        normalize(no_version, "vcf", "hg38")

    no_header = _write_vcf(
        tmp_path / "no_header.vcf",
        ["1\t10\t.\tA\tC\t.\t.\t."],
        header="##fileformat=VCFv4.2\n",
    )
    with pytest.raises(FatalConfigError, match="Header"):
        normalize(no_header, "vcf", "hg38")


def test_vcf_short_or_malformed_rows_are_rejected(tmp_path: Path) -> None:
    path = _write_vcf(
        tmp_path / "in.vcf",
        ["1\t10\t.\tA", "1\tabc\t.\tA\tC\t.\t.\t."],
    )

    with normalize(path, "vcf", "hg38") as normalized:
        items = list(normalized)

    assert [item.reason for item in items] == [
        RejectionReason.MISSING_REQUIRED_COLUMN,
        RejectionReason.MISSING_REQUIRED_COLUMN,
    ]


def test_vcf_normalizer_reads_gzip_input(tmp_path: Path) -> None:
    path = tmp_path / "in.vcf.gz"
    with gzip.open(path, "wt") as stream:
        stream.write(VCF_HEADER)
        stream.write("1\t10\t.\tA\tC\t.\t.\t.\t0/1\n")

    with normalize(path, "vcf", "hg38", gzipped=True) as normalized:
        items = list(normalized)

    assert len(items) == 1
    assert items[0].alternate_allele == "C"


def test_gtex_egenes_uses_split_columns(tmp_path: Path) -> None:
    path = tmp_path / "Liver.v8.egenes.txt"
    path.write_text(
        "gene_id\tgene_name\tgene_chr\tvariant_id\tchr\tvariant_pos\tref\talt\tqval\n"
        "ENSG1\tWASH7P\tchr1\tchr1_64764_C_T_b38\tchr1\t64764\tC\tT\t0.01\n"
        "ENSG2\tGENE2\tchr2\tchr2_100_A_*_b38\tchr2\t100\tA\t*\t0.02\n"
    )

    with normalize(path, "gtex_egenes", "hg38") as normalized:
        items = list(normalized)

    record = items[0]
    assert isinstance(record, CanonicalVariantRecord)
    assert record.chromosome == "1"
    assert record.position == 64764
    assert record.variant_id == "chr1_64764_C_T_b38"
    assert record.source_line == "ENSG1\tWASH7P\tchr1\tchr1_64764_C_T_b38\tchr1\t64764\tC\tT\t0.01"
    assert items[1].reason is RejectionReason.WILDCARD_ALLELE
    assert normalized.header.column_header.startswith("gene_id\tgene_name\tgene_chr")


def test_gtex_pairs_splits_variant_id(tmp_path: Path) -> None:
    path = tmp_path / "Liver.v8.signif_variant_gene_pairs.txt"
    path.write_text(
        "variant_id\tgene_id\ttss_distance\tpval_nominal\n"
        "chr1_13550_G_A_b38\tENSG1\t1000\t1e-5\n"
        "chr1_14677_G_A,C_b38\tENSG1\t2000\t1e-6\n"
        "malformed\tENSG1\t3000\t1e-7\n"
    )

    with normalize(path, "gtex_pairs", "hg38") as normalized:
        items = list(normalized)

    assert items[0].to_vcf_line() == "1\t13550\t.\tG\tA\t.\t.\tchr1_13550_G_A_b38"
    assert items[1].reason is RejectionReason.MULTI_ALLELIC
    assert items[2].reason is RejectionReason.MISSING_REQUIRED_COLUMN
    assert items[2].source_line == "malformed\tENSG1\t3000\t1e-7"


def test_gtex_missing_required_column_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "egenes.txt"
    path.write_text("gene_id\tgene_name\tgene_chr\tvariant_id\n")

    with pytest.raises(FatalConfigError, match="variant_pos"):
        normalize(path, "gtex_egenes", "hg38")


def test_gtex_header_only_file_yields_nothing(tmp_path: Path) -> None:
    path = tmp_path / "pairs.txt"
    path.write_text("variant_id\tgene_id\n")

    with normalize(path, "gtex_pairs", "hg38") as normalized:
        assert list(normalized) == []


def test_gtex_rows_with_extra_or_missing_fields_keep_their_lines(tmp_path: Path) -> None:
    path = tmp_path / "pairs.txt"
    lines = [
        "chr1_100_A_G_b38\tENSG1\t0.1\textra",
        "chr1_200_C_T_b38\tENSG2\t0.2",
        "chr1_300_G_C_b38\tENSG3\t0.3\textra\tmore",
        "chr1_400_T_A_b38\tENSG4",
    ]
    path.write_text("variant_id\tgene_id\tpval\n" + "".join(f"{line}\n" for line in lines))

    with normalize(path, "gtex_pairs", "hg38") as normalized:
        items = list(normalized)

    assert [type(item) for item in items] == [CanonicalVariantRecord] * 4
    assert [item.source_line for item in items] == lines
    assert [item.position for item in items] == [100, 200, 300, 400]


def test_gtex_egenes_short_row_is_rejected_verbatim(tmp_path: Path) -> None:
    path = tmp_path / "egenes.txt"
    path.write_text(
        "gene_id\tgene_name\tgene_chr\tvariant_id\tchr\tvariant_pos\tref\talt\n"
        "ENSG1\tWASH7P\tchr1\tchr1_64764_C_T_b38\tchr1\t64764\tC\n"
        "ENSG2\tGENE2\tchr2\tchr2_100_A_G_b38\tchr2\t100\tA\tG\tsurplus\n"
    )

    with normalize(path, "gtex_egenes", "hg38") as normalized:
        items = list(normalized)

    assert isinstance(items[0], RejectedRecord)
    assert items[0].reason is RejectionReason.MISSING_REQUIRED_COLUMN
    assert items[0].source_line == "ENSG1\tWASH7P\tchr1\tchr1_64764_C_T_b38\tchr1\t64764\tC"
    assert items[1].alternate_allele == "G"
    assert items[1].source_line.endswith("\tG\tsurplus")


def test_gtex_rows_span_chunks_in_order(tmp_path: Path) -> None:
    path = tmp_path / "pairs.txt"
    path.write_text(
        "variant_id\tgene_id\n" + "".join(f"chr2_{position}_A_C_b38\tENSG{position}\n" for position in range(1, 8))
    )

    normalizer = GtexPairsNormalizer(input_path=path, reference_genome="hg38", chunksize=3)
    with normalizer.read() as normalized:
        positions = [item.position for item in normalized]

    assert positions == list(range(1, 8))


def test_dialects_dispatch_to_normalizers() -> None:
    assert normalizer_for("vcf") is VcfNormalizer
    assert normalizer_for(" GTEX_PAIRS ") is GtexPairsNormalizer
    assert normalizer_for(InputDialect.VCF) is VcfNormalizer

    with pytest.raises(FatalConfigError, match="Available"):
        normalizer_for("bed")


def test_gtex_layout_without_row_extraction_cannot_be_built(tmp_path: Path) -> None:
    class _HeaderOnly(_GtexNormalizer):
        name = "header_only"

        def _is_header(self, line: str) -> bool:
            return True

    with pytest.raises(TypeError):
        _HeaderOnly(input_path=tmp_path / "x.txt", reference_genome="hg38")
