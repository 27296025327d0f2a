import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from data_structures import Encoding, NoQuality
from errors import UnsupportedConversionError

logger = logging.getLogger(__name__)

# Highest byte a source scale is converted from; everything above falls back to the table default.
SOURCE_MAX_BYTE = 126


@dataclass(frozen=True)
class ScaleProfile:
    first_byte: int       # lowest byte the scale can hold when it is the source
    offset: int           # ASCII offset added to the quality value
    min_score: int
    max_score: int
    low_symbol: int       # table default for bytes at or below the source floor
    high_symbol: int      # table default for bytes above the source floor


SCALE_PROFILES = {
    Encoding.SANGER: ScaleProfile(first_byte=33, offset=33, min_score=0, max_score=93,
                                  low_symbol=33, high_symbol=73),
    Encoding.SOLEXA: ScaleProfile(first_byte=59, offset=64, min_score=-5, max_score=62,
                                  low_symbol=59, high_symbol=104),
    Encoding.ILLUMINA: ScaleProfile(first_byte=64, offset=64, min_score=0, max_score=62,
                                    low_symbol=64, high_symbol=104),
}


def get_conversion_equation(source: Encoding, target: Encoding, legacy_illumina: bool = False) -> str:
    """Returns the probability round trip used for a pair, for logging"""
    to_probability = {
        Encoding.SANGER: "p = 10^(-(x-33)/10)",
        Encoding.SOLEXA: "p = 1/(10^((x-64)/10)+1)",
        Encoding.ILLUMINA: "p = 10^(-(x-64)/10)",
    }[source]
    if target == Encoding.SOLEXA:
        to_quality = "q = clamp(round(-10*log10(p/(1-p))), -5, 62) + 64"
    elif target == Encoding.ILLUMINA and legacy_illumina:
        to_quality = "q = (62 if trunc(-10*log10(p)) != 0 else 0) + 64"
    elif target == Encoding.ILLUMINA:
        to_quality = "q = clamp(round(-10*log10(p)), 0, 62) + 64"
    else:
        to_quality = "q = clamp(round(-10*log10(p)), 0, 93) + 33"
    return f"{to_probability}; {to_quality}"


def error_probability(codes: np.ndarray, source: Encoding) -> np.ndarray:
    """Convert quality bytes of the source scale to error probabilities"""
    codes = codes.astype(np.float64)
    if source == Encoding.SANGER:
        return np.power(10.0, (codes - 33) / -10.0)
    if source == Encoding.SOLEXA:
        return 1.0 / (np.power(10.0, (codes - 64) / 10.0) + 1)
    if source == Encoding.ILLUMINA:
        return np.power(10.0, (codes - 64) / -10.0)
    raise UnsupportedConversionError(f"Cannot build conversion table for unknown source {source!r}.")


def probability_to_quality(p: np.ndarray, target: Encoding, legacy_illumina: bool = False) -> np.ndarray:
    """
    Convert error probabilities to quality bytes of the target scale.

    With legacy_illumina the Illumina branch reproduces the historical fx_convert behaviour:
    the score is truncated toward zero and every non-zero score becomes 62.
    """
    profile = SCALE_PROFILES.get(target)
    if profile is None:
        raise UnsupportedConversionError(f"Cannot build conversion table for unknown target {target!r}.")

    # p == 1 gives infinite log-odds for Solexa; clipping takes care of it
    with np.errstate(divide='ignore'):
        if target == Encoding.SOLEXA:
            scores = -10.0 * np.log10(p / (1.0 - p))
        else:
            scores = -10.0 * np.log10(p)

    if target == Encoding.ILLUMINA and legacy_illumina:
        scores = np.where(np.trunc(scores) != 0, 62, 0)
    else:
        scores = np.clip(np.rint(scores), profile.min_score, profile.max_score)

    return scores.astype(np.int64) + profile.offset


def build_conversion_table(source, target, legacy_illumina: bool = False) -> Optional[np.ndarray]:
    """
    Build the 256 entry quality byte lookup table for a (source, target) pair.
    Returns None when the target carries no qualities.

    The table is total: bytes outside the source range map to the target's
    low or high default symbol. The returned array is read-only.
    """
    if target is NoQuality.FASTA:
        return None
    if source not in SCALE_PROFILES:
        raise UnsupportedConversionError(f"Cannot build conversion table for unknown source {source!r}.")
    if target not in SCALE_PROFILES:
        raise UnsupportedConversionError(f"Cannot build conversion table for unknown target {target!r}.")

    source_profile = SCALE_PROFILES[source]
    target_profile = SCALE_PROFILES[target]
    first = source_profile.first_byte

    # Initialize everything with the minimum or maximum symbol
    table = np.full(256, target_profile.high_symbol, dtype=np.int64)
    table[:first + 1] = target_profile.low_symbol

    codes = np.arange(first, SOURCE_MAX_BYTE + 1)
    p = error_probability(codes, source)
    assert np.all((p >= 0.0) & (p <= 1.0)), "error probability out of [0, 1]"

    table[first:SOURCE_MAX_BYTE + 1] = probability_to_quality(p, target, legacy_illumina)
    assert np.all((table > 0) & (table < 255)), "quality byte out of (0, 255)"

    table = table.astype(np.uint8)
    table.flags.writeable = False

    logger.debug(f"Built {source.value} -> {target.value} table: "
                 f"{get_conversion_equation(source, target, legacy_illumina)}")
    return table


def convert_qualities(quality: np.ndarray, table: np.ndarray) -> np.ndarray:
    """Remap quality bytes through the table in place, preserving length and order"""
    np.take(table, quality, out=quality)
    return quality
