"""
Pytest configuration and shared fixtures.
"""

import io

import pytest


class NonSeekableStream(io.RawIOBase):
    """Byte stream that refuses to seek, like a pipe"""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    def readable(self):
        return True

    def seekable(self):
        return False

    def readinto(self, b):
        chunk = self._buffer.read(len(b))
        b[:len(chunk)] = chunk
        return len(chunk)


class FailingStream(io.RawIOBase):
    """Stream whose reads and writes always fail"""

    def readable(self):
        return True

    def writable(self):
        return True

    def seekable(self):
        return True

    def tell(self):
        return 0

    def readline(self, size=-1):
        raise OSError("device not ready")

    def write(self, b):
        raise OSError("disk full")


@pytest.fixture
def non_seekable():
    return NonSeekableStream


@pytest.fixture
def failing_stream():
    return FailingStream()


@pytest.fixture
def sanger_fastq():
    """Phred+33 reads, '#' is below every Phred+64 floor"""
    return (b"@read1 lane=1\n"
            b"ACGTACGTAC\n"
            b"+\n"
            b"#####IIIII\n"
            b"@read2\n"
            b"GGGCCCAAAT\n"
            b"+read2\n"
            b"IIIII5555#\n")


@pytest.fixture
def solexa_fastq():
    """Solexa+64 reads, ';' (Solexa -5) together with 'h' (Solexa 40)"""
    return (b"@sol1\n"
            b"ACGTA\n"
            b"+\n"
            b";@Ihh\n"
            b"@sol2\n"
            b"TTTTT\n"
            b"+\n"
            b"hhhhh\n")


@pytest.fixture
def ambiguous_fastq():
    return (b"@amb1\n"
            b"ACGT\n"
            b"+\n"
            b"FFFF\n")


@pytest.fixture
def simple_fasta():
    return (b">seq1 first\n"
            b"ACGTACGT\n"
            b"ACGT\n"
            b">seq2\n"
            b"NNNNAC\n")
