import logging
from typing import Tuple

import numpy as np
from numba import njit

from data_structures import Encoding
from errors import AmbiguousEncodingError, InvalidQualityByteError

logger = logging.getLogger(__name__)

# Printable band covered by the union of all three scales.
#
#  SSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSSS.....................................................
#  ..........................XXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX......................
#  ...............................IIIIIIIIIIIIIIIIIIIIIIIIIIIIIIIIIIIIIIIII......................
#  LLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLLL....................................................
#  !"#$%&'()*+,-./0123456789:;<=>?@ABCDEFGHIJKLMNOPQRSTUVWXYZ[\]^_`abcdefghijklmnopqrstuvwxyz{|}~
#  |                         |    |        |                              |                     |
# 33                        59   64       73                            104                   126
#
# S - Sanger Phred+33, X - Solexa Solexa+64, I - Illumina 1.3+/1.5+ Phred+64,
# L - Illumina 1.8+ Phred+33 (folded into Sanger)
MIN_QUALITY_BYTE = 33
MAX_QUALITY_BYTE = 104

SANGER_CEILING = 74     # Sanger itself stops at 73, Illumina 1.8+ reaches 74
SOLEXA_FLOOR = 59
ILLUMINA_FLOOR = 64


@njit
def narrow_candidates(quality, sanger, solexa, illumina):
    """
    Clear the flags of every scale that cannot produce the given quality bytes.

    WARNING: This function is JIT-compiled with @njit. Do not use Python objects,
    lists, dicts, or advanced numpy operations. Only basic numpy arrays and operations are supported.

    Returns: (position of the first out-of-band byte or -1, sanger, solexa, illumina)
    """
    for i in range(quality.shape[0]):
        c = quality[i]
        if c < MIN_QUALITY_BYTE or c > MAX_QUALITY_BYTE:
            return i, sanger, solexa, illumina
        if c > SANGER_CEILING:
            sanger = False
        if c < SOLEXA_FLOOR:
            solexa = False
        if c < ILLUMINA_FLOOR:
            illumina = False
    return -1, sanger, solexa, illumina


def as_quality_array(quality) -> np.ndarray:
    """View bytes/str/array qualities as an unsigned 8-bit array"""
    if isinstance(quality, np.ndarray):
        return quality.astype(np.uint8, copy=False)
    if isinstance(quality, str):
        quality = quality.encode('ascii')
    return np.frombuffer(bytes(quality), dtype=np.uint8)


class EncodingGuess:
    """
    Tracks which quality scales are still consistent with the qualities seen so far.
    Flags only ever go from True to False.
    """

    def __init__(self):
        self.sanger = True
        self.solexa = True
        self.illumina = True
        self.qualities_seen = 0

    @property
    def candidates(self) -> Tuple[Encoding, ...]:
        flags = ((Encoding.SANGER, self.sanger),
                 (Encoding.SOLEXA, self.solexa),
                 (Encoding.ILLUMINA, self.illumina))
        return tuple(encoding for encoding, possible in flags if possible)

    def update(self, quality) -> None:
        """
        Narrow the candidates with one quality string.
        Raises InvalidQualityByteError on the first byte outside [33, 104]; the guess is then left untouched.
        """
        quality = as_quality_array(quality)
        if quality.shape[0] == 0:
            self.qualities_seen += 1
            return

        position, sanger, solexa, illumina = narrow_candidates(
            quality, self.sanger, self.solexa, self.illumina
        )
        if position >= 0:
            raise InvalidQualityByteError(int(quality[position]), int(position))

        self.sanger = bool(sanger)
        self.solexa = bool(solexa)
        self.illumina = bool(illumina)
        self.qualities_seen += 1

    def finalize(self) -> Encoding:
        """Return the single remaining scale, raise AmbiguousEncodingError otherwise"""
        candidates = self.candidates
        if len(candidates) != 1:
            raise AmbiguousEncodingError(candidates)
        return candidates[0]


def scan_source_encoding(reader) -> Encoding:
    """
    First pass of an auto-detecting run: feed every quality string into a fresh guess.
    Identifiers and sequences are never materialised.
    """
    guess = EncodingGuess()
    for quality in reader.qualities():
        guess.update(quality)

    logger.debug(f"Scanned {guess.qualities_seen:,} quality strings, "
                 f"candidates: {[c.value for c in guess.candidates]}")
    return guess.finalize()
