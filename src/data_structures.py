from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numpy as np


class Encoding(Enum):
    """Concrete FASTQ quality scales"""
    SANGER = "sanger"
    SOLEXA = "solexa"
    ILLUMINA = "illumina"


class NoQuality(Enum):
    """Target-side pseudo encoding: write sequences without qualities"""
    FASTA = "fasta"


class RecordFormat(Enum):
    FASTA = "fasta"
    FASTQ = "fastq"


TargetEncoding = Union[Encoding, NoQuality]

# Option strings accepted on the command line
SOURCE_CHOICES = ('auto', 'fasta', 'sanger', 'solexa', 'illumina')
TARGET_CHOICES = ('fasta', 'sanger', 'solexa', 'illumina')


@dataclass
class FastxRecord:
    identifier: bytes
    sequence: bytes
    quality: Optional[np.ndarray] = None

    @property
    def has_quality(self) -> bool:
        return self.quality is not None


@dataclass
class ConvertOptions:
    source_encoding: Optional[Union[Encoding, NoQuality]] = None
    target_encoding: TargetEncoding = NoQuality.FASTA
    renumber_identifiers: bool = False
    guess_only: bool = False
    keep_with_ns: bool = False
    gzip: bool = False
    legacy_illumina_target: bool = False


def parse_source_encoding(value: str) -> Optional[Union[Encoding, NoQuality]]:
    """
    Map a source option string onto an encoding.
    'auto' means the scale is inferred from the data and is returned as None.
    """
    if value == 'auto':
        return None
    if value == 'fasta':
        return NoQuality.FASTA
    return Encoding(value)


def parse_target_encoding(value: str) -> TargetEncoding:
    if value == 'fasta':
        return NoQuality.FASTA
    return Encoding(value)
