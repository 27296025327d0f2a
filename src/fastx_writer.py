from typing import BinaryIO

from data_structures import FastxRecord
from errors import RecordWriteError


class FastxWriter:
    """
    Writes records as FASTQ when they carry qualities, as FASTA otherwise.
    Sequences are written on a single line.
    """

    def __init__(self, outfile: BinaryIO):
        self.outfile = outfile
        self.records_written = 0

    def write(self, record: FastxRecord) -> None:
        if record.has_quality:
            chunks = (b'@', record.identifier, b'\n', record.sequence, b'\n+\n',
                      record.quality.tobytes(), b'\n')
        else:
            chunks = (b'>', record.identifier, b'\n', record.sequence, b'\n')

        try:
            self.outfile.write(b''.join(chunks))
        except OSError as e:
            file_type = "FASTQ" if record.has_quality else "FASTA"
            raise RecordWriteError(f"Problem writing {file_type} file: {e}") from e
        self.records_written += 1

    def write_line(self, line: str) -> None:
        try:
            self.outfile.write(line.encode('ascii'))
        except OSError as e:
            raise RecordWriteError(f"Problem writing output: {e}") from e

    def flush(self) -> None:
        try:
            self.outfile.flush()
        except OSError as e:
            raise RecordWriteError(f"Problem writing output: {e}") from e
