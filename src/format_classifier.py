import logging
from typing import BinaryIO

from data_structures import RecordFormat
from errors import RecordReadError, UnknownFormatError

logger = logging.getLogger(__name__)

RECORD_MARKERS = {
    b'>': RecordFormat.FASTA,
    b'@': RecordFormat.FASTQ,
}


def detect_record_format(handle: BinaryIO) -> RecordFormat:
    """
    Decide between FASTA and FASTQ from the leading record marker.
    Blank lines before the first record are skipped; the marker must open its line.
    The handle position is restored afterwards.
    """
    try:
        start = handle.tell()
        marker = b''
        while True:
            line = handle.readline()
            if not line:
                break
            if line.strip():
                marker = line[:1]
                break
        handle.seek(start)
    except OSError as e:
        raise RecordReadError(f"Problem reading input: {e}") from e

    record_format = RECORD_MARKERS.get(marker)
    if record_format is None:
        raise UnknownFormatError("Cannot determine file format.")

    logger.debug(f"File format is {record_format.value.upper()}.")
    return record_format
