import logging
import shutil
import tempfile
from typing import BinaryIO, Iterator, Tuple

import numpy as np

from data_structures import FastxRecord, RecordFormat
from errors import RecordReadError

logger = logging.getLogger(__name__)

COPY_BUFFER_BYTES = 4 * 1024 * 1024


def open_rewindable(handle: BinaryIO) -> BinaryIO:
    """
    Return a handle that supports seeking back to the start.
    Non-seekable streams (stdin, pipes) are spooled into a temporary file first.
    """
    try:
        if handle.seekable():
            return handle
        spool = tempfile.TemporaryFile()
        shutil.copyfileobj(handle, spool, COPY_BUFFER_BYTES)
        spool.seek(0)
    except OSError as e:
        raise RecordReadError(f"Problem reading input: {e}") from e

    logger.debug("Spooled non-seekable input to a temporary file")
    return spool


def quality_from_bytes(quality: bytes) -> np.ndarray:
    """Writable unsigned 8-bit view of a quality string"""
    return np.frombuffer(bytearray(quality), dtype=np.uint8)


class FastxReader:
    """
    Sequential FASTA/FASTQ record source over a seekable binary handle.
    Records may wrap over several lines; carriage returns are dropped.
    """

    def __init__(self, handle: BinaryIO, record_format: RecordFormat):
        self.handle = handle
        self.record_format = record_format
        self.records_read = 0
        self._start = self._tell()

    def _tell(self) -> int:
        try:
            return self.handle.tell()
        except OSError as e:
            raise RecordReadError(f"Problem reading input: {e}") from e

    def _readline(self) -> bytes:
        try:
            return self.handle.readline()
        except OSError as e:
            raise RecordReadError(f"Problem reading input: {e}") from e

    def _next_nonblank(self) -> bytes:
        while True:
            line = self._readline()
            if not line or line.strip():
                return line

    def _seek(self, position: int) -> None:
        try:
            self.handle.seek(position)
        except OSError as e:
            raise RecordReadError(f"Cannot seek in input: {e}") from e

    def _followed_by_sequence(self) -> bool:
        """Peek whether the next line is a sequence line, leaving the position unchanged"""
        position = self._tell()
        line = self._readline().rstrip(b'\r\n')
        self._seek(position)
        return bool(line) and not line.startswith((b'@', b'+'))

    def rewind(self) -> None:
        """Go back to the first record"""
        try:
            self.handle.seek(self._start)
        except OSError as e:
            raise RecordReadError(f"Cannot rewind input: {e}") from e
        self.records_read = 0

    def _iter_fastq(self) -> Iterator[Tuple[bytes, bytes, bytes]]:
        while True:
            line = self._next_nonblank()
            if not line:
                return

            header = line.rstrip(b'\r\n')
            record_number = self.records_read + 1
            if not header.startswith(b'@'):
                raise RecordReadError(f"Problem reading FASTQ file: record {record_number} "
                                      f"does not start with '@'")

            sequence_parts = []
            while True:
                line = self._readline()
                if not line:
                    raise RecordReadError(f"Problem reading FASTQ file: record {record_number} "
                                          f"ends before its '+' line")
                line = line.rstrip(b'\r\n')
                if line.startswith(b'+'):
                    break
                sequence_parts.append(line)
            sequence = b''.join(sequence_parts)

            # Quality may wrap too, keep reading until it is as long as the sequence.
            # A continuation line that looks like the next header ends a short quality.
            quality_parts = []
            quality_length = 0
            while quality_length < len(sequence):
                position = self._tell()
                line = self._readline()
                if not line:
                    break
                if quality_parts and line.startswith(b'@') and self._followed_by_sequence():
                    self._seek(position)
                    break
                line = line.rstrip(b'\r\n')
                quality_parts.append(line)
                quality_length += len(line)
            quality = b''.join(quality_parts)

            if len(quality) != len(sequence):
                truncated = " (truncated record?)" if len(quality) < len(sequence) else ""
                raise RecordReadError(f"Problem reading FASTQ file: record {record_number} has "
                                      f"{len(sequence)} bases but {len(quality)} qualities{truncated}")

            self.records_read += 1
            yield header[1:], sequence, quality

    def _iter_fasta(self) -> Iterator[Tuple[bytes, bytes]]:
        line = self._next_nonblank()
        while line:
            header = line.rstrip(b'\r\n')
            if not header.startswith(b'>'):
                raise RecordReadError(f"Problem reading FASTA file: record {self.records_read + 1} "
                                      f"does not start with '>'")
            sequence_parts = []
            while True:
                line = self._readline()
                if not line or line.startswith(b'>'):
                    break
                sequence_parts.append(line.strip())

            self.records_read += 1
            yield header[1:], b''.join(sequence_parts)

    def records(self) -> Iterator[FastxRecord]:
        if self.record_format == RecordFormat.FASTQ:
            for identifier, sequence, quality in self._iter_fastq():
                yield FastxRecord(identifier, sequence, quality_from_bytes(quality))
        else:
            for identifier, sequence in self._iter_fasta():
                yield FastxRecord(identifier, sequence)

    def qualities(self) -> Iterator[np.ndarray]:
        """Quality strings only, for the encoding scan"""
        if self.record_format != RecordFormat.FASTQ:
            return
        for _, _, quality in self._iter_fastq():
            yield np.frombuffer(quality, dtype=np.uint8)
