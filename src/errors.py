from typing import Iterable


class FxConvertError(Exception):
    """Base class for every fatal conversion error"""


class UnknownFormatError(FxConvertError):
    """Input is neither FASTA nor FASTQ"""


class InvalidQualityByteError(FxConvertError):
    def __init__(self, value: int, position: int = -1):
        self.value = int(value)
        self.position = position
        super().__init__(f"Invalid quality {self.value}!")


class AmbiguousEncodingError(FxConvertError):
    def __init__(self, candidates: Iterable):
        self.candidates = tuple(candidates)
        if self.candidates:
            names = ", ".join(c.value for c in self.candidates)
            message = f"Could not guess FASTQ quality scale unambiguously! Could be: {names}"
        else:
            message = "Could not guess FASTQ quality scale: no scale is consistent with the qualities"
        super().__init__(message)


class RecordReadError(FxConvertError):
    """Problem reading a record from the input"""


class RecordWriteError(FxConvertError):
    """Problem writing a record to the output"""


class UnsupportedConversionError(FxConvertError):
    """Requested source/target combination cannot be converted"""
