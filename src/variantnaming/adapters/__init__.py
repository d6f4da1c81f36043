"""Input normalizers for the naming pipeline."""

from .base import InputHeader, InputNormalizer, NormalizedInput
from .gtex import GtexEgenesNormalizer, GtexPairsNormalizer
from .vcf import VcfNormalizer

__all__ = [
    "InputHeader",
    "InputNormalizer",
    "NormalizedInput",
    "VcfNormalizer",
    "GtexEgenesNormalizer",
    "GtexPairsNormalizer",
]
